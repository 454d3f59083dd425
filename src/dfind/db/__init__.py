"""Storage layer: driver contract, SQLite backend and the Store facade."""
