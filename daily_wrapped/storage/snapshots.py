"""
SQL access for the daily_snapshot table.

Functions here take an open connection so callers can compose them into
a single transaction. They never commit.
"""

import json
import sqlite3
from datetime import datetime
from typing import List, Optional

from daily_wrapped.core.clock import from_epoch_ms, to_epoch_ms
from .models import AggregateStats, Snapshot

_SNAPSHOT_COLUMNS = (
    "id, user_id, date, design_index, artifact_ref, generated_at, expires_at, stats_json"
)


def find_snapshot(conn: sqlite3.Connection, user_id: str, date: str) -> Optional[Snapshot]:
    """Return the snapshot stored for (user_id, date), if any."""
    cursor = conn.execute(
        f"SELECT {_SNAPSHOT_COLUMNS} FROM daily_snapshot WHERE user_id = ? AND date = ?",
        (user_id, date),
    )
    row = cursor.fetchone()
    return _row_to_snapshot(row) if row else None


def insert_snapshot(conn: sqlite3.Connection, snapshot: Snapshot) -> Snapshot:
    """Insert a snapshot and return it with its storage id."""
    cursor = conn.execute(
        """
        INSERT INTO daily_snapshot
        (user_id, date, design_index, artifact_ref, generated_at, expires_at, stats_json)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (
            snapshot.user_id,
            snapshot.date,
            snapshot.design_index,
            snapshot.artifact_ref,
            to_epoch_ms(snapshot.generated_at),
            to_epoch_ms(snapshot.expires_at),
            json.dumps(snapshot.stats.to_dict(), sort_keys=True),
        ),
    )
    return Snapshot(
        id=cursor.lastrowid,
        user_id=snapshot.user_id,
        date=snapshot.date,
        design_index=snapshot.design_index,
        artifact_ref=snapshot.artifact_ref,
        generated_at=snapshot.generated_at,
        expires_at=snapshot.expires_at,
        stats=snapshot.stats,
    )


def delete_snapshot(conn: sqlite3.Connection, snapshot_id: int) -> bool:
    """Delete a snapshot by id. Returns whether a row was removed."""
    cursor = conn.execute("DELETE FROM daily_snapshot WHERE id = ?", (snapshot_id,))
    return cursor.rowcount > 0


def delete_snapshot_if_expired(conn: sqlite3.Connection, snapshot_id: int, now: datetime) -> bool:
    """Delete a snapshot by id only if it is still expired as of `now`."""
    cursor = conn.execute(
        "DELETE FROM daily_snapshot WHERE id = ? AND expires_at < ?",
        (snapshot_id, to_epoch_ms(now)),
    )
    return cursor.rowcount > 0


def list_expired_snapshots(conn: sqlite3.Connection, now: datetime) -> List[Snapshot]:
    """List snapshots with expires_at strictly before `now`, oldest first."""
    cursor = conn.execute(
        f"""
        SELECT {_SNAPSHOT_COLUMNS} FROM daily_snapshot
        WHERE expires_at < ?
        ORDER BY expires_at ASC, id ASC
        """,
        (to_epoch_ms(now),),
    )
    return [_row_to_snapshot(row) for row in cursor.fetchall()]


def count_snapshots(conn: sqlite3.Connection, user_id: Optional[str] = None) -> int:
    """Count stored snapshots, optionally for one user."""
    if user_id is None:
        cursor = conn.execute("SELECT COUNT(*) FROM daily_snapshot")
    else:
        cursor = conn.execute(
            "SELECT COUNT(*) FROM daily_snapshot WHERE user_id = ?", (user_id,)
        )
    return cursor.fetchone()[0]


def _row_to_snapshot(row) -> Snapshot:
    return Snapshot(
        id=row[0],
        user_id=row[1],
        date=row[2],
        design_index=row[3],
        artifact_ref=row[4],
        generated_at=from_epoch_ms(row[5]),
        expires_at=from_epoch_ms(row[6]),
        stats=AggregateStats.from_dict(json.loads(row[7])),
    )
