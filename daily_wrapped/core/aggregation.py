"""
Rolling 24-hour window aggregation.

Reduces a user's usage events into the totals and rankings shown on the
daily wrapped card.
"""

from datetime import datetime, timedelta
from typing import Dict, Iterable, List

from daily_wrapped.core.clock import ensure_utc
from daily_wrapped.core.providers import UNKNOWN, resolve_provider
from daily_wrapped.core.ranking import TOP_N, rank_top_n
from daily_wrapped.storage.models import AggregateStats, UsageEvent

WINDOW = timedelta(hours=24)


def window_start(now: datetime) -> datetime:
    """Inclusive lower bound of the window ending at `now`."""
    return ensure_utc(now) - WINDOW


def compute_window_stats(events: Iterable[UsageEvent], now: datetime) -> AggregateStats:
    """Aggregate events created in the 24 hours before `now`.

    Events are folded in chronological order so that first-seen order,
    which breaks ranking ties, does not depend on how the caller fetched
    them. An empty window yields all-zero stats.

    Args:
        events: The user's events (may include events outside the window)
        now: Reference instant

    Returns:
        AggregateStats with top-5 models and providers
    """
    cutoff = window_start(now)
    # sorted() is stable, so events sharing a timestamp keep input order
    in_window: List[UsageEvent] = sorted(
        (e for e in events if e.created_at >= cutoff),
        key=lambda e: e.created_at,
    )

    total_tokens = 0
    prompt_tokens = 0
    completion_tokens = 0
    total_messages = 0
    cost = 0.0
    model_tokens: Dict[str, int] = {}
    provider_tokens: Dict[str, int] = {}

    for event in in_window:
        total_tokens += event.total_tokens
        prompt_tokens += event.prompt_tokens
        completion_tokens += event.completion_tokens
        total_messages += event.message_count or 0
        cost += event.cost

        model = event.model or UNKNOWN
        model_tokens[model] = model_tokens.get(model, 0) + event.total_tokens

        provider = resolve_provider(event.provider, event.model)
        provider_tokens[provider] = provider_tokens.get(provider, 0) + event.total_tokens

    return AggregateStats(
        total_tokens=total_tokens,
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_messages=total_messages,
        session_count=len(in_window),
        cost=cost,
        top_models=rank_top_n(model_tokens, TOP_N),
        top_providers=rank_top_n(provider_tokens, TOP_N),
    )
