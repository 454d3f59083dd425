"""dfind - index filesystem paths into SQLite and search them."""

__version__ = "0.1.0"
