"""
Recording OpenAI client wrapper.

Appends a usage event for every successful chat completion.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from openai import OpenAI

from ..core.pricing import estimate_cost
from ..storage.db import DEFAULT_DB_PATH
from ..storage.models import UsageEvent
from ..storage.repository import insert_usage_event


class RecordingOpenAI:
    """OpenAI client wrapper that records usage events for one user.

    Failures are loud: an API error or a ledger write error propagates.
    """

    def __init__(self, user_id: str, model: str, db_path: Optional[str] = None):
        """Initialize recording OpenAI client.

        Args:
            user_id: User the usage is attributed to (required)
            model: OpenAI model name (required)
            db_path: Database file path (defaults to "daily_wrapped.db")

        Raises:
            ValueError: If user_id or model is missing/empty
        """
        if not user_id or not user_id.strip():
            raise ValueError("user_id is required and cannot be empty")
        if not model or not model.strip():
            raise ValueError("model is required and cannot be empty")

        self.user_id = user_id
        self.model = model
        self.db_path = db_path or DEFAULT_DB_PATH
        self.client = OpenAI()

    def chat(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs: Any
    ) -> Any:
        """Create a chat completion and record its usage.

        The recorded message count is the request messages plus the reply.

        Args:
            messages: List of message dictionaries (required)
            temperature: Sampling temperature (optional)
            max_tokens: Maximum tokens to generate (optional)
            **kwargs: Additional OpenAI parameters

        Returns:
            OpenAI chat completion response, unchanged

        Raises:
            ValueError: If messages is empty or the response has no usage
        """
        if not messages:
            raise ValueError("messages is required and cannot be empty")

        response = self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
            **kwargs
        )

        usage = response.usage
        if not usage:
            raise ValueError("OpenAI response missing usage information")

        event = UsageEvent(
            user_id=self.user_id,
            created_at=datetime.now(timezone.utc),
            prompt_tokens=usage.prompt_tokens,
            completion_tokens=usage.completion_tokens,
            total_tokens=usage.total_tokens,
            cost=estimate_cost(self.model, usage.prompt_tokens, usage.completion_tokens),
            message_count=len(messages) + 1,
            model=self.model,
            provider="openai",
        )
        insert_usage_event(event, self.db_path)

        return response
