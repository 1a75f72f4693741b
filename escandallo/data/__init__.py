"""Domain models, legacy-record migration and the SQLite collection store."""
