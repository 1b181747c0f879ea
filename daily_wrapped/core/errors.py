"""
Exception types for Daily Wrapped.
"""

from typing import Optional


class WrappedError(Exception):
    """Base class for all Daily Wrapped errors."""


class ClockError(WrappedError):
    """Raised when fixed-zone date/time arithmetic cannot be performed.

    Scheduling must never silently fall back to UTC, so this always
    propagates to the caller.
    """


class ArtifactStoreError(WrappedError):
    """Raised when an artifact cannot be stored, located or released."""
    def __init__(self, message: str, artifact_ref: Optional[str] = None):
        super().__init__(message)
        self.artifact_ref = artifact_ref
