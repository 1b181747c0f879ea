# daily_wrapped/demo/seed_demo_data.py

from datetime import datetime, timedelta
from typing import List, Optional

from daily_wrapped.core.clock import ensure_utc
from daily_wrapped.storage.db import DEFAULT_DB_PATH
from daily_wrapped.storage.models import UsageEvent
from daily_wrapped.storage.repository import initialize_schema, insert_usage_events


def build_demo_events(now: datetime) -> List[UsageEvent]:
    """Events for three users: two active today, one idle for two days."""
    now = ensure_utc(now)

    def event(user_id, hours_ago, model, prompt, completion, cost, messages=None, provider=None):
        return UsageEvent(
            user_id=user_id,
            created_at=now - timedelta(hours=hours_ago),
            prompt_tokens=prompt,
            completion_tokens=completion,
            total_tokens=prompt + completion,
            cost=cost,
            message_count=messages,
            model=model,
            provider=provider,
        )

    return [
        event("alice", 1, "claude-3-opus", 4200, 1800, 0.20, messages=12),
        event("alice", 3, "gpt-4o", 2500, 900, 0.02, messages=6),
        event("alice", 5, "gemini-1.5-pro", 1200, 400, 0.01, messages=4),
        event("alice", 20, "claude-3-opus", 800, 300, 0.04, messages=2),
        event("bob", 2, "deepseek-chat", 6000, 2000, 0.01, messages=20),
        event("bob", 8, "llama-3-70b", 1500, 700, 0.00),
        event("bob", 12, "internal-tuned", 900, 100, 0.00, provider="acme"),
        event("carol", 50, "mistral-large", 3000, 1000, 0.03, messages=8),
    ]


def seed_demo_events(db_path: str = DEFAULT_DB_PATH, now: Optional[datetime] = None) -> int:
    """Create the schema and insert demo events. Returns the number inserted."""
    initialize_schema(db_path)
    events = build_demo_events(now or datetime.now().astimezone())
    insert_usage_events(events, db_path)
    return len(events)
