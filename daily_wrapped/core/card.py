"""
Plain-text wrapped card rendering.

The default renderer for snapshot artifacts. Image templates live outside
this package and plug in through the same renderer signature.
"""

from typing import Callable

from daily_wrapped.storage.models import AggregateStats

DESIGN_COUNT = 10

Renderer = Callable[[AggregateStats, str, int], bytes]

_DESIGN_BANNERS = (
    "MINIMAL DARK",
    "BIG NUMBERS",
    "RECEIPT",
    "NEWSPAPER",
    "TERMINAL",
    "NEON",
    "BLUEPRINT",
    "POSTER",
    "GRADIENT",
    "STAMP",
)


def format_number(n: float) -> str:
    """Compact token count: 1.2M, 3.4K, or the plain number with separators."""
    if n >= 1_000_000:
        return f"{n / 1_000_000:.1f}M"
    if n >= 1_000:
        return f"{n / 1_000:.1f}K"
    return f"{n:,}"


def format_cost(cost: float) -> str:
    """Dollar amount with two decimals."""
    return f"${cost:.2f}"


def render_text_card(stats: AggregateStats, date: str, design_index: int) -> bytes:
    """Render a wrapped card as UTF-8 text.

    Args:
        stats: Window stats to display
        date: Calendar date the card is for
        design_index: Design selector (wraps around the available banners)

    Returns:
        Encoded card contents
    """
    banner = _DESIGN_BANNERS[design_index % len(_DESIGN_BANNERS)]
    lines = [
        f"DAILY WRAPPED / {banner}",
        date,
        "",
        f"Tokens    {format_number(stats.total_tokens)}",
        f"Messages  {format_number(stats.total_messages)}",
        f"Sessions  {stats.session_count}",
        f"Cost      {format_cost(stats.cost)}",
    ]
    if stats.top_models:
        lines.append("")
        lines.append("Top models")
        for rank, share in enumerate(stats.top_models, start=1):
            lines.append(f"  {rank}. {share.key}  {format_number(share.tokens)}")
    if stats.top_providers:
        lines.append("")
        lines.append("Top providers")
        for rank, share in enumerate(stats.top_providers, start=1):
            lines.append(f"  {rank}. {share.key}  {format_number(share.tokens)}")
    return ("\n".join(lines) + "\n").encode("utf-8")
