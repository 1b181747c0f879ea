"""
Daily Wrapped.

Rolling 24-hour LLM usage snapshots, one per user per Pacific Time day.
"""

__version__ = "0.1.0"
