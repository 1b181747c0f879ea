"""
SDK for Daily Wrapped.

Records usage events from application code into the ledger.
"""

from .openai_client import RecordingOpenAI

__all__ = ["RecordingOpenAI"]
