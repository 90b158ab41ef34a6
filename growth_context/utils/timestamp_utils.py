"""
Timestamp utilities for consistent time handling across the system.
"""

import time
from datetime import datetime


def now() -> datetime:
    """Current local time as a naive datetime."""
    return datetime.now()


def to_iso(value: datetime) -> str:
    """Render a datetime as an ISO-8601 string."""
    return value.isoformat()


def from_iso(value: str) -> datetime:
    """Parse an ISO-8601 string, accepting a trailing 'Z'."""
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    return datetime.fromisoformat(value)


def monotonic_ms() -> float:
    """Monotonic clock in milliseconds, used for TTL bookkeeping."""
    return time.monotonic() * 1000.0
