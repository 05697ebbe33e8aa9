"""Key-value storage backends (JSON file, SQLite, in-memory)."""
