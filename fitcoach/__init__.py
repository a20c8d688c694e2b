"""Records, SQLite repositories, password and token helpers, and Flask views for a trainer and trainee coaching service."""

__version__ = "0.1.0"