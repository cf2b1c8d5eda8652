"""Core: configuration, constants and exception handlers."""
