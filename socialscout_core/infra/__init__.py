"""Infrastructure helpers (database)."""
