"""
Expired snapshot reclamation.
"""

import logging
from datetime import datetime

from daily_wrapped.core.clock import ensure_utc
from daily_wrapped.core.lifecycle import release_artifact
from daily_wrapped.storage.artifacts import ArtifactStore
from daily_wrapped.storage.db import DEFAULT_DB_PATH, get_connection
from daily_wrapped.storage.snapshots import (
    count_snapshots,
    delete_snapshot_if_expired,
    list_expired_snapshots,
)

logger = logging.getLogger(__name__)


class ExpirySweeper:
    """Deletes snapshots whose TTL has elapsed, whoever created them."""

    def __init__(self, artifact_store: ArtifactStore, db_path: str = DEFAULT_DB_PATH):
        self.artifact_store = artifact_store
        self.db_path = db_path

    def sweep(self, now: datetime) -> int:
        """Reclaim every snapshot with expires_at strictly before `now`.

        Candidates are read once, oldest expiry first. Each one is deleted
        by id with the expiry re-checked, so a row replaced mid-sweep is
        left alone. Artifacts are released after the delete commits.

        Args:
            now: Reference instant

        Returns:
            Number of snapshots deleted
        """
        now = ensure_utc(now)
        conn = get_connection(self.db_path)
        try:
            candidates = list_expired_snapshots(conn, now)
            reclaimed = 0
            for snapshot in candidates:
                conn.execute("BEGIN IMMEDIATE")
                try:
                    deleted = delete_snapshot_if_expired(conn, snapshot.id, now)
                    conn.commit()
                except Exception:
                    conn.rollback()
                    raise
                if deleted:
                    release_artifact(self.artifact_store, snapshot.artifact_ref)
                    reclaimed += 1
            remaining = count_snapshots(conn)
        finally:
            conn.close()

        if reclaimed:
            logger.info("Swept %d expired snapshot(s), %d remaining", reclaimed, remaining)
        return reclaimed
