"""Infrastructure: storage backends and SQL persistence."""
