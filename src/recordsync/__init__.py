"""recordsync - keep a relational database and AppSheet tables in agreement."""

__version__ = "0.1.0"
