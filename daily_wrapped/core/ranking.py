"""
Top-N ranking of token contributors.
"""

from typing import Mapping, Tuple

from daily_wrapped.storage.models import TokenShare

TOP_N = 5


def rank_top_n(token_map: Mapping[str, int], limit: int = TOP_N) -> Tuple[TokenShare, ...]:
    """Rank keys by token sum, descending, keeping the first `limit`.

    Ties keep the mapping's insertion order. The aggregator inserts keys
    in chronological first-seen order, so equal sums rank the key that
    appeared earliest in the window first.

    Args:
        token_map: Key to token sum, in first-seen order
        limit: Maximum number of entries to return

    Returns:
        Tuple of TokenShare sorted by tokens (non-increasing)

    Raises:
        ValueError: If limit is negative
    """
    if limit < 0:
        raise ValueError("limit cannot be negative")

    # sorted() is stable, which preserves first-seen order for ties
    ranked = sorted(token_map.items(), key=lambda item: item[1], reverse=True)
    return tuple(TokenShare(key=key, tokens=tokens) for key, tokens in ranked[:limit])
