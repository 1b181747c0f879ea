"""
Snapshot lifecycle management.

Keeps at most one live snapshot per (user, date) and releases the artifact
owned by any snapshot it removes.

Ordering of a replace:
1. Find, delete and insert inside one SQLite write transaction
2. Commit
3. Release the superseded artifact

Committing before releasing means a crash can leave an unreferenced
artifact behind, but never a record that points at a deleted artifact.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Tuple

from daily_wrapped.core.clock import Clock, from_epoch_ms, to_epoch_ms
from daily_wrapped.storage.artifacts import ArtifactStore
from daily_wrapped.storage.db import DEFAULT_DB_PATH, get_connection
from daily_wrapped.storage.models import SNAPSHOT_TTL, AggregateStats, Snapshot
from daily_wrapped.storage.snapshots import delete_snapshot, find_snapshot, insert_snapshot

logger = logging.getLogger(__name__)


class _KeyLockRegistry:
    """One lock per (user_id, date) key, kept only while it has holders or waiters."""

    def __init__(self):
        self._guard = threading.Lock()
        # key -> [lock, number of holders and waiters]
        self._locks: Dict[Tuple[str, str], List] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, user_id: str, date: str) -> Iterator[None]:
        key = (user_id, date)
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]


def release_artifact(store: ArtifactStore, ref: Optional[str]) -> bool:
    """Release an artifact, logging instead of raising on failure.

    Every exception from the store is logged and swallowed; callers may
    run this after a commit.

    Returns:
        True if the artifact was released, False if there was nothing to
        release or the store refused
    """
    if not ref:
        return False
    try:
        store.delete(ref)
    except Exception as e:
        logger.warning("Failed to release artifact %s: %s", ref, e)
        return False
    return True


class SnapshotLifecycleManager:
    """Create-or-replace and delete for daily snapshots.

    Calls for the same key serialize on an in-process lock, and every
    write runs under BEGIN IMMEDIATE so writers in other processes
    serialize on the database lock. The last call to commit wins.
    """

    def __init__(
        self,
        artifact_store: ArtifactStore,
        clock: Clock,
        db_path: str = DEFAULT_DB_PATH,
    ):
        self.artifact_store = artifact_store
        self.clock = clock
        self.db_path = db_path
        self._locks = _KeyLockRegistry()

    def create_or_replace(
        self,
        user_id: str,
        date: str,
        design_index: int,
        stats: AggregateStats,
        artifact_ref: Optional[str] = None,
    ) -> Snapshot:
        """Persist the snapshot for (user_id, date), replacing any existing one.

        Args:
            user_id: Owner of the snapshot
            date: Fixed-zone calendar date (YYYY-MM-DD)
            design_index: Presentation selector
            stats: Aggregated window stats
            artifact_ref: Optional reference to a stored artifact

        Returns:
            The newly stored Snapshot

        Raises:
            sqlite3.Error: Storage failures, after rolling back
        """
        # Truncate to milliseconds so the stored record round-trips exactly
        generated_at = from_epoch_ms(to_epoch_ms(self.clock.now()))
        new_snapshot = Snapshot(
            user_id=user_id,
            date=date,
            design_index=design_index,
            artifact_ref=artifact_ref,
            generated_at=generated_at,
            expires_at=generated_at + SNAPSHOT_TTL,
            stats=stats,
        )

        with self._locks.hold(user_id, date):
            conn = get_connection(self.db_path)
            try:
                conn.execute("BEGIN IMMEDIATE")
                existing = find_snapshot(conn, user_id, date)
                if existing is not None:
                    delete_snapshot(conn, existing.id)
                stored = insert_snapshot(conn, new_snapshot)
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            finally:
                conn.close()

        if existing is not None:
            logger.info("Replaced snapshot for user=%s date=%s", user_id, date)
            if existing.artifact_ref != artifact_ref:
                release_artifact(self.artifact_store, existing.artifact_ref)
        else:
            logger.info("Created snapshot for user=%s date=%s", user_id, date)
        return stored

    def delete(self, user_id: str, date: str) -> bool:
        """Remove the snapshot for (user_id, date) and release its artifact.

        Returns:
            True if a snapshot existed
        """
        with self._locks.hold(user_id, date):
            conn = get_connection(self.db_path)
            try:
                conn.execute("BEGIN IMMEDIATE")
                existing = find_snapshot(conn, user_id, date)
                if existing is not None:
                    delete_snapshot(conn, existing.id)
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            finally:
                conn.close()

        if existing is None:
            return False
        release_artifact(self.artifact_store, existing.artifact_ref)
        logger.info("Deleted snapshot for user=%s date=%s", user_id, date)
        return True

    def get(self, user_id: str, date: str) -> Optional[Snapshot]:
        """Return the stored snapshot for (user_id, date), if any."""
        conn = get_connection(self.db_path)
        try:
            return find_snapshot(conn, user_id, date)
        finally:
            conn.close()
