"""
Read and batch API for daily wrapped snapshots.

Presentation-facing reads degrade to None on storage errors so a caller
can show a fallback. Batch operations propagate storage errors for the
external scheduler to retry. Clock errors always propagate.
"""

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, FrozenSet, Optional

from daily_wrapped.config.loader import WrappedConfig
from daily_wrapped.core.active_users import find_active_users
from daily_wrapped.core.aggregation import compute_window_stats, window_start
from daily_wrapped.core.clock import Clock
from daily_wrapped.core.errors import ArtifactStoreError
from daily_wrapped.core.lifecycle import SnapshotLifecycleManager
from daily_wrapped.core.sweeper import ExpirySweeper
from daily_wrapped.storage.artifacts import LocalArtifactStore
from daily_wrapped.storage.models import AggregateStats, Snapshot
from daily_wrapped.storage.repository import UsageRepository

logger = logging.getLogger(__name__)

UserResolver = Callable[[str], Optional[str]]


@dataclass(frozen=True)
class SnapshotView:
    """Today's snapshot as returned to the presentation layer."""
    snapshot: Snapshot
    time_until_expiry: timedelta
    next_generation_at: datetime
    artifact_location: Optional[str] = None


@dataclass(frozen=True)
class Countdown:
    """Time remaining until the next batch generation."""
    next_generation_at: datetime
    time_until_next: timedelta
    current_date: str


class WrappedService:
    """Entry point tying the aggregator, lifecycle manager and sweeper together.

    Args:
        repository: Usage event repository
        lifecycle: Snapshot lifecycle manager
        sweeper: Expiry sweeper
        clock: Fixed-zone clock
        config: Loaded configuration
        resolve_user: Maps an external identity to a user id, or None if
            unknown. Defaults to accepting any non-blank id the usage
            ledger has recorded. May raise sqlite3.Error.
    """

    def __init__(
        self,
        repository: UsageRepository,
        lifecycle: SnapshotLifecycleManager,
        sweeper: ExpirySweeper,
        clock: Clock,
        config: WrappedConfig,
        resolve_user: Optional[UserResolver] = None,
    ):
        self.repository = repository
        self.lifecycle = lifecycle
        self.sweeper = sweeper
        self.clock = clock
        self.config = config
        self.resolve_user = resolve_user or self._resolve_from_ledger

    def _resolve_from_ledger(self, user_id: str) -> Optional[str]:
        if not user_id or not user_id.strip():
            return None
        return user_id if self.repository.has_user(user_id) else None

    # Read API

    def get_snapshot(self, user_id: str) -> Optional[SnapshotView]:
        """Today's live snapshot for the user, or None.

        A record whose TTL has elapsed but which the sweeper has not yet
        removed is not live and reads as None.
        """
        now = self.clock.now()
        today = self.clock.calendar_date(now)
        try:
            resolved = self.resolve_user(user_id)
            if resolved is None:
                return None
            snapshot = self.lifecycle.get(resolved, today)
        except sqlite3.Error as e:
            logger.warning("Snapshot lookup failed for user=%s: %s", user_id, e)
            return None
        if snapshot is None or snapshot.is_expired(now):
            return None

        location = None
        if snapshot.artifact_ref:
            try:
                location = self.lifecycle.artifact_store.locate(snapshot.artifact_ref)
            except ArtifactStoreError as e:
                logger.warning("Artifact lookup failed for user=%s: %s", resolved, e)

        return SnapshotView(
            snapshot=snapshot,
            time_until_expiry=snapshot.expires_at - now,
            next_generation_at=self.next_generation_at(now),
            artifact_location=location,
        )

    def get_stats(self, user_id: str) -> Optional[AggregateStats]:
        """Recompute the user's window stats on demand.

        Returns None only when the user cannot be resolved or the ledger
        is unreadable; a known user idle for the last 24 hours gets
        all-zero stats.
        """
        try:
            resolved = self.resolve_user(user_id)
            if resolved is None:
                return None
            return self.compute_window_stats(resolved)
        except sqlite3.Error as e:
            logger.warning("Stats computation failed for user=%s: %s", user_id, e)
            return None

    def countdown(self) -> Countdown:
        """Next generation instant, time until it, and today's date."""
        now = self.clock.now()
        next_run = self.next_generation_at(now)
        return Countdown(
            next_generation_at=next_run,
            time_until_next=next_run - now,
            current_date=self.clock.calendar_date(now),
        )

    def next_generation_at(self, now: datetime) -> datetime:
        """Next scheduled batch run strictly after `now`."""
        schedule = self.config.schedule
        return self.clock.next_daily_run_after(now, schedule.hour, schedule.minute)

    # Batch API

    def compute_window_stats(self, user_id: str, now: Optional[datetime] = None) -> AggregateStats:
        """Aggregate the user's last 24 hours of events."""
        now = now or self.clock.now()
        events = self.repository.get_user_events(user_id, since=window_start(now))
        return compute_window_stats(events, now)

    def active_users(self, cutoff: datetime) -> FrozenSet[str]:
        """Users with any event at or after `cutoff`."""
        return find_active_users(cutoff, self.repository)

    def create_or_replace(
        self,
        user_id: str,
        date: str,
        design_index: int,
        stats: AggregateStats,
        artifact_ref: Optional[str] = None,
    ) -> Snapshot:
        """Persist the day's snapshot, superseding any existing one."""
        return self.lifecycle.create_or_replace(
            user_id=user_id,
            date=date,
            design_index=design_index,
            stats=stats,
            artifact_ref=artifact_ref,
        )

    def sweep_expired(self, now: Optional[datetime] = None) -> int:
        """Reclaim snapshots whose TTL has elapsed."""
        return self.sweeper.sweep(now or self.clock.now())


def build_service(config: WrappedConfig, clock: Optional[Clock] = None) -> WrappedService:
    """Wire a WrappedService from configuration.

    Raises:
        ClockError: If the configured timezone cannot be resolved
    """
    clock = clock or Clock(config.schedule.timezone)
    db_path = config.storage.db_path
    artifact_store = LocalArtifactStore(config.storage.artifact_dir)
    return WrappedService(
        repository=UsageRepository(db_path),
        lifecycle=SnapshotLifecycleManager(artifact_store, clock, db_path=db_path),
        sweeper=ExpirySweeper(artifact_store, db_path=db_path),
        clock=clock,
        config=config,
    )
