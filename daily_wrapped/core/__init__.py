"""
Core modules for Daily Wrapped.

This package contains window aggregation, top-N ranking, snapshot
lifecycle management, expiry sweeping and Pacific Time scheduling.
"""
