"""
Data models for storage layer.

Defines usage events, aggregate stats and daily snapshots.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple

from daily_wrapped.core.clock import ensure_utc

SNAPSHOT_TTL = timedelta(hours=24)


@dataclass(frozen=True)
class UsageEvent:
    """Immutable record of one LLM usage session for a user.

    Events are owned by the usage ledger. The wrapped core only reads them.
    """
    user_id: str
    created_at: datetime
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    cost: float
    message_count: Optional[int] = None
    model: Optional[str] = None
    provider: Optional[str] = None

    def __post_init__(self):
        """Normalize timestamp to UTC and reject negative counters."""
        if not self.user_id:
            raise ValueError("user_id is required")
        object.__setattr__(self, "created_at", ensure_utc(self.created_at))
        for name in ("prompt_tokens", "completion_tokens", "total_tokens", "cost"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative")
        if self.message_count is not None and self.message_count < 0:
            raise ValueError("message_count cannot be negative")


@dataclass(frozen=True)
class TokenShare:
    """A ranked (key, tokens) entry in a top list."""
    key: str
    tokens: int


@dataclass(frozen=True)
class AggregateStats:
    """Rolling-window usage totals for one user.

    `top_models` and `top_providers` are truncated rankings; `total_tokens`
    is the sum over the complete model map.
    """
    total_tokens: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_messages: int = 0
    session_count: int = 0
    cost: float = 0.0
    top_models: Tuple[TokenShare, ...] = field(default_factory=tuple)
    top_providers: Tuple[TokenShare, ...] = field(default_factory=tuple)

    def __post_init__(self):
        """Validate counters are non-negative."""
        for name in ("total_tokens", "prompt_tokens", "completion_tokens",
                     "total_messages", "session_count", "cost"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the persisted JSON shape."""
        return {
            "totalTokens": self.total_tokens,
            "promptTokens": self.prompt_tokens,
            "completionTokens": self.completion_tokens,
            "totalMessages": self.total_messages,
            "sessionCount": self.session_count,
            "cost": self.cost,
            "topModels": [{"model": s.key, "tokens": s.tokens} for s in self.top_models],
            "topProviders": [{"provider": s.key, "tokens": s.tokens} for s in self.top_providers],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AggregateStats":
        """Deserialize from the persisted JSON shape.

        Records written before session counting existed carry no
        `sessionCount`; it reads back as 0.
        """
        return cls(
            total_tokens=data["totalTokens"],
            prompt_tokens=data["promptTokens"],
            completion_tokens=data["completionTokens"],
            total_messages=data["totalMessages"],
            session_count=data.get("sessionCount", 0),
            cost=data["cost"],
            top_models=tuple(TokenShare(m["model"], m["tokens"]) for m in data.get("topModels", [])),
            top_providers=tuple(
                TokenShare(p["provider"], p["tokens"]) for p in data.get("topProviders", [])
            ),
        )


@dataclass(frozen=True)
class Snapshot:
    """The daily wrapped record for one user and one Pacific Time date.

    A snapshot is only ever replaced as a whole. It exclusively owns its
    artifact reference.
    """
    user_id: str
    date: str
    design_index: int
    generated_at: datetime
    expires_at: datetime
    stats: AggregateStats
    artifact_ref: Optional[str] = None
    id: Optional[int] = None

    def __post_init__(self):
        """Normalize timestamps and enforce the fixed TTL."""
        object.__setattr__(self, "generated_at", ensure_utc(self.generated_at))
        object.__setattr__(self, "expires_at", ensure_utc(self.expires_at))
        if self.expires_at - self.generated_at != SNAPSHOT_TTL:
            raise ValueError("expires_at must be generated_at + 24h")
        if self.design_index < 0:
            raise ValueError("design_index cannot be negative")

    def is_expired(self, now: datetime) -> bool:
        """True once the TTL has strictly elapsed."""
        return self.expires_at < ensure_utc(now)
