"""
Repository pattern for data access.

Handles the usage event ledger and schema creation.
"""

from datetime import datetime
from typing import FrozenSet, List, Optional

from daily_wrapped.core.clock import from_epoch_ms, to_epoch_ms
from .db import DEFAULT_DB_PATH, get_connection
from .models import UsageEvent

_EVENT_COLUMNS = (
    "user_id, created_at, prompt_tokens, completion_tokens, total_tokens, "
    "cost, message_count, model, provider"
)


class UsageRepository:
    """Repository for reading usage events.

    This class provides a higher-level interface to the database operations,
    making it easier to work with usage data in a type-safe manner.
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        """Initialize the repository with a database path.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path

    def get_user_events(
        self,
        user_id: str,
        since: Optional[datetime] = None,
    ) -> List[UsageEvent]:
        """Get a user's events, optionally only those at or after `since`.

        Args:
            user_id: User to fetch events for
            since: Optional inclusive lower bound on created_at

        Returns:
            List of usage events ordered by created_at (oldest first)
        """
        conn = get_connection(self.db_path)
        try:
            query = f"SELECT {_EVENT_COLUMNS} FROM usage_event WHERE user_id = ?"
            params = [user_id]
            if since is not None:
                query += " AND created_at >= ?"
                params.append(to_epoch_ms(since))
            query += " ORDER BY created_at ASC, id ASC"

            cursor = conn.execute(query, params)
            return [_row_to_event(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def get_active_user_ids(self, cutoff: datetime) -> FrozenSet[str]:
        """Get every distinct user with at least one event at or after `cutoff`.

        Args:
            cutoff: Inclusive lower bound on created_at

        Returns:
            Set of user ids
        """
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute(
                "SELECT DISTINCT user_id FROM usage_event WHERE created_at >= ?",
                (to_epoch_ms(cutoff),),
            )
            return frozenset(row[0] for row in cursor.fetchall())
        finally:
            conn.close()

    def has_user(self, user_id: str) -> bool:
        """True if the ledger has ever recorded an event for `user_id`."""
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute(
                "SELECT 1 FROM usage_event WHERE user_id = ? LIMIT 1", (user_id,)
            )
            return cursor.fetchone() is not None
        finally:
            conn.close()


def initialize_schema(db_path: str = DEFAULT_DB_PATH) -> None:
    """Create the usage_event and daily_snapshot tables if they don't exist.

    usage_event is an append-only ledger. daily_snapshot holds at most one
    row per (user_id, date) and is range-scannable by expires_at.

    Args:
        db_path: Path to SQLite database file
    """
    conn = get_connection(db_path)
    try:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS usage_event (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                created_at INTEGER NOT NULL,
                prompt_tokens INTEGER NOT NULL,
                completion_tokens INTEGER NOT NULL,
                total_tokens INTEGER NOT NULL,
                cost REAL NOT NULL,
                message_count INTEGER,
                model TEXT,
                provider TEXT
            )
        """)
        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_usage_event_user_created
            ON usage_event (user_id, created_at)
        """)
        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_usage_event_created
            ON usage_event (created_at)
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS daily_snapshot (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id TEXT NOT NULL,
                date TEXT NOT NULL,
                design_index INTEGER NOT NULL,
                artifact_ref TEXT,
                generated_at INTEGER NOT NULL,
                expires_at INTEGER NOT NULL,
                stats_json TEXT NOT NULL,
                UNIQUE (user_id, date)
            )
        """)
        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_daily_snapshot_expires
            ON daily_snapshot (expires_at)
        """)
        conn.commit()
    finally:
        conn.close()


def insert_usage_event(event: UsageEvent, db_path: str = DEFAULT_DB_PATH) -> None:
    """Append a single usage event to the ledger.

    Args:
        event: The usage event to record
        db_path: Path to SQLite database file
    """
    insert_usage_events([event], db_path)


def insert_usage_events(events: List[UsageEvent], db_path: str = DEFAULT_DB_PATH) -> None:
    """Append multiple usage events atomically.

    All events are inserted in a single transaction to ensure consistency.

    Args:
        events: List of usage events to record
        db_path: Path to SQLite database file
    """
    if not events:
        return

    conn = get_connection(db_path)
    try:
        conn.execute("BEGIN TRANSACTION")
        conn.executemany(
            f"INSERT INTO usage_event ({_EVENT_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            [
                (
                    event.user_id,
                    to_epoch_ms(event.created_at),
                    event.prompt_tokens,
                    event.completion_tokens,
                    event.total_tokens,
                    event.cost,
                    event.message_count,
                    event.model,
                    event.provider,
                )
                for event in events
            ],
        )
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _row_to_event(row) -> UsageEvent:
    return UsageEvent(
        user_id=row[0],
        created_at=from_epoch_ms(row[1]),
        prompt_tokens=row[2],
        completion_tokens=row[3],
        total_tokens=row[4],
        cost=row[5],
        message_count=row[6],
        model=row[7],
        provider=row[8],
    )
