"""
Active user lookup for batch fan-out.
"""

from datetime import datetime
from typing import FrozenSet, Iterable

from daily_wrapped.core.clock import ensure_utc
from daily_wrapped.storage.models import UsageEvent
from daily_wrapped.storage.repository import UsageRepository


def collect_active_users(events: Iterable[UsageEvent], cutoff: datetime) -> FrozenSet[str]:
    """Distinct users with at least one event at or after `cutoff`."""
    cutoff = ensure_utc(cutoff)
    return frozenset(e.user_id for e in events if e.created_at >= cutoff)


def find_active_users(cutoff: datetime, repository: UsageRepository) -> FrozenSet[str]:
    """Distinct users with ledger activity at or after `cutoff`."""
    return repository.get_active_user_ids(ensure_utc(cutoff))
