"""
Database connection management.

Provides SQLite connection for data persistence.
"""

import sqlite3
from pathlib import Path

DEFAULT_DB_PATH = "daily_wrapped.db"

# Seconds a writer waits on a locked database before giving up
BUSY_TIMEOUT = 30.0


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Create and return a SQLite database connection.

    Connections are opened per operation and are not shared across threads.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLite connection that waits up to BUSY_TIMEOUT seconds on a locked
        database
    """
    path = Path(db_path)
    return sqlite3.connect(str(path), timeout=BUSY_TIMEOUT)
