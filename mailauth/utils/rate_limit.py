"""
In-memory admission control keyed by source address.

Each source key gets a fixed window: the first request opens it with a
count of 1 and an expiry of ``now + window_seconds``; later requests in the
same window increment the count until ``limit`` is reached, after which
they are refused without touching the entry.  Expiry is checked lazily on
access by comparing the monotonic clock with the stored expiry, so no
timers are involved.

The store is process-wide and guarded by a lock, so concurrent requests
handled by a threaded WSGI server never lose an increment.  With several
worker processes each process keeps its own counts.

Usage:
    from mailauth.utils.rate_limit import admit_request

    # Inside a Flask route:
    if not admit_request(source_key, limit=3, window_seconds=1800):
        raise AdmissionRejected(...)
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Final

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_LIMIT: Final[int] = 3
DEFAULT_WINDOW_SECONDS: Final[int] = 30 * 60

# Bucket used when the transport supplies no source address.
UNKNOWN_SOURCE: Final[str] = "unknown"


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------


@dataclass
class RateLimitEntry:
    """Request count for one source key within its current window."""

    source_key: str
    count: int
    window_expiry: float

    def expired(self, now: float) -> bool:
        return now >= self.window_expiry


_entries: dict[str, RateLimitEntry] = {}
_lock = threading.Lock()


# ---------------------------------------------------------------------------
# Public interface
# ---------------------------------------------------------------------------


def normalize_source_key(value: str | None) -> str:
    """Return the admission key for a raw source address value."""
    value = (value or "").strip()
    return value or UNKNOWN_SOURCE


def admit_request(
    source_key: str,
    limit: int = DEFAULT_LIMIT,
    window_seconds: float = DEFAULT_WINDOW_SECONDS,
    now: float | None = None,
) -> bool:
    """Count a request for *source_key* and return whether it is admitted.

    Args:
        source_key: Caller address (see normalize_source_key).
        limit:      Requests admitted per window.
        window_seconds: Window length, measured from the first request.
        now:        Monotonic timestamp; defaults to time.monotonic().

    Returns:
        True  - the request is admitted and counted.
        False - the window is exhausted; the entry is left unchanged.
    """
    if now is None:
        now = time.monotonic()

    with _lock:
        entry = _entries.get(source_key)

        if entry is None or entry.expired(now):
            _sweep_expired(now)
            _entries[source_key] = RateLimitEntry(
                source_key=source_key,
                count=1,
                window_expiry=now + window_seconds,
            )
            return True

        if entry.count >= limit:
            logger.warning(
                "Rate limit active: source=%r count=%d remaining=%ds",
                source_key,
                entry.count,
                int(entry.window_expiry - now),
            )
            return False

        entry.count += 1
        return True


def get_entry(source_key: str, now: float | None = None) -> RateLimitEntry | None:
    """Return a copy of the live entry for *source_key*, or None if absent/expired."""
    if now is None:
        now = time.monotonic()
    with _lock:
        entry = _entries.get(source_key)
        if entry is None or entry.expired(now):
            return None
        return RateLimitEntry(entry.source_key, entry.count, entry.window_expiry)


def reset_rate_limit(source_key: str) -> None:
    """Clear the rate-limit record for a specific source key."""
    with _lock:
        _entries.pop(source_key, None)


def clear_all_rate_limits() -> None:
    """Remove all rate-limit records.

    The store is already empty after a process restart, so this is mainly
    for test isolation.
    """
    with _lock:
        _entries.clear()


def _sweep_expired(now: float) -> None:
    # Caller holds _lock.
    for key in [k for k, e in _entries.items() if e.expired(now)]:
        del _entries[key]
