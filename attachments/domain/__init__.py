"""Domain layer: attachment entity, enums and exceptions (no infrastructure imports)."""
