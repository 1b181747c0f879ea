"""
Unit tests for rolling-window aggregation.

Tests window filtering, totals, model/provider maps and ranking ties.
"""

from datetime import datetime, timedelta, timezone

from daily_wrapped.core.aggregation import WINDOW, compute_window_stats, window_start
from daily_wrapped.storage.models import AggregateStats, TokenShare, UsageEvent

NOW = datetime(2024, 6, 15, 17, 0, tzinfo=timezone.utc)


def make_event(
    hours_ago: float = 1,
    model=None,
    total_tokens: int = 100,
    provider=None,
    message_count=None,
    cost: float = 0.0,
    user_id: str = "u1",
) -> UsageEvent:
    prompt = total_tokens // 2
    return UsageEvent(
        user_id=user_id,
        created_at=NOW - timedelta(hours=hours_ago),
        prompt_tokens=prompt,
        completion_tokens=total_tokens - prompt,
        total_tokens=total_tokens,
        cost=cost,
        message_count=message_count,
        model=model,
        provider=provider,
    )


class TestEndToEndScenario:
    """Test the documented three-event scenario."""

    def test_gpt4_and_claude3(self):
        """Two gpt-4 events and one claude-3 event."""
        events = [
            make_event(hours_ago=3, model="gpt-4", total_tokens=100),
            make_event(hours_ago=2, model="gpt-4", total_tokens=50),
            make_event(hours_ago=1, model="claude-3", total_tokens=200),
        ]

        stats = compute_window_stats(events, NOW)

        assert stats.total_tokens == 350
        assert stats.session_count == 3
        assert stats.top_models == (TokenShare("claude-3", 200), TokenShare("gpt-4", 150))
        assert stats.top_providers == (TokenShare("anthropic", 200), TokenShare("openai", 150))


class TestWindowFiltering:
    """Test the 24-hour lower bound."""

    def test_window_is_24_hours(self):
        """The window start is exactly 24 hours back."""
        assert WINDOW == timedelta(hours=24)
        assert window_start(NOW) == NOW - timedelta(hours=24)

    def test_lower_bound_inclusive(self):
        """An event exactly 24 hours old is counted."""
        stats = compute_window_stats([make_event(hours_ago=24, model="gpt-4")], NOW)
        assert stats.session_count == 1

    def test_older_events_excluded(self):
        """An event one millisecond older than the window is dropped."""
        event = UsageEvent(
            user_id="u1",
            created_at=NOW - timedelta(hours=24, milliseconds=1),
            prompt_tokens=1,
            completion_tokens=1,
            total_tokens=2,
            cost=0.0,
        )
        stats = compute_window_stats([event], NOW)
        assert stats == AggregateStats()

    def test_mixed_window(self):
        """Only in-window events contribute."""
        events = [
            make_event(hours_ago=30, model="gpt-4", total_tokens=1000, cost=5.0),
            make_event(hours_ago=2, model="gpt-4", total_tokens=10, cost=0.5),
        ]
        stats = compute_window_stats(events, NOW)
        assert stats.total_tokens == 10
        assert stats.cost == 0.5
        assert stats.session_count == 1


class TestTotals:
    """Test summed counters."""

    def test_sums_all_counters(self):
        """Tokens, messages and cost are summed."""
        events = [
            make_event(total_tokens=100, message_count=4, cost=0.25),
            make_event(total_tokens=300, message_count=6, cost=0.75),
        ]
        stats = compute_window_stats(events, NOW)
        assert stats.total_tokens == 400
        assert stats.prompt_tokens == 200
        assert stats.completion_tokens == 200
        assert stats.total_messages == 10
        assert stats.cost == 1.0
        assert stats.session_count == 2

    def test_missing_message_count_is_zero(self):
        """Absent message counts contribute nothing."""
        events = [make_event(message_count=None), make_event(message_count=3)]
        assert compute_window_stats(events, NOW).total_messages == 3

    def test_empty_input_yields_zero_stats(self):
        """No events is not an error."""
        stats = compute_window_stats([], NOW)
        assert stats == AggregateStats()
        assert stats.top_models == ()
        assert stats.top_providers == ()

    def test_deterministic(self):
        """The same events give the same stats regardless of input order."""
        events = [
            make_event(hours_ago=i, model=f"model-{i % 3}", total_tokens=10 * i)
            for i in range(1, 10)
        ]
        assert compute_window_stats(events, NOW) == compute_window_stats(list(reversed(events)), NOW)


class TestModelAndProviderMaps:
    """Test per-key token maps."""

    def test_missing_model_keyed_unknown(self):
        """Events without a model are grouped under "unknown"."""
        stats = compute_window_stats([make_event(model=None, total_tokens=42)], NOW)
        assert stats.top_models == (TokenShare("unknown", 42),)
        assert stats.top_providers == (TokenShare("unknown", 42),)

    def test_explicit_provider_used(self):
        """An explicit provider overrides inference."""
        stats = compute_window_stats([make_event(model="gpt-4o", provider="azure")], NOW)
        assert stats.top_providers == (TokenShare("azure", 100),)

    def test_providers_merge_across_models(self):
        """Different models from one provider add up."""
        events = [
            make_event(model="gpt-4o", total_tokens=100),
            make_event(model="o1-mini", total_tokens=50),
            make_event(model="claude-3-haiku", total_tokens=120),
        ]
        stats = compute_window_stats(events, NOW)
        assert stats.top_providers == (TokenShare("openai", 150), TokenShare("anthropic", 120))

    def test_sum_invariant_with_truncation(self):
        """total_tokens covers every model, not only the top five."""
        events = [
            make_event(model=f"model-{i}", total_tokens=(i + 1) * 10)
            for i in range(8)
        ]
        stats = compute_window_stats(events, NOW)
        assert stats.total_tokens == sum(e.total_tokens for e in events)
        assert len(stats.top_models) == 5
        assert sum(s.tokens for s in stats.top_models) < stats.total_tokens

    def test_top_lists_bounded_and_sorted(self):
        """Both top lists are at most five long and non-increasing."""
        models = ["claude-3", "gpt-4", "gemini", "mistral", "deepseek", "llama", "other", "palm"]
        events = [make_event(model=m, total_tokens=(i * 37) % 200 + 1) for i, m in enumerate(models)]
        stats = compute_window_stats(events, NOW)
        for ranking in (stats.top_models, stats.top_providers):
            assert len(ranking) <= 5
            tokens = [s.tokens for s in ranking]
            assert tokens == sorted(tokens, reverse=True)

    def test_ties_broken_by_first_seen(self):
        """With equal sums, the model seen earliest in the window ranks first."""
        events = [
            make_event(hours_ago=1, model="later-model", total_tokens=100),
            make_event(hours_ago=5, model="earlier-model", total_tokens=100),
        ]
        stats = compute_window_stats(events, NOW)
        assert [s.key for s in stats.top_models] == ["earlier-model", "later-model"]
