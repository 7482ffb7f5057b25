"""
Rate Limiter for Chat Bot Messages.

Prevents abuse by limiting how many requests an identity can make
within a time window. Defaults to 5 requests per 60-second window.

Each identity gets its own entry with its own lock, so callers with
different identities never wait on each other. The shared map lock is
only taken to look up or insert an entry.

Entries are kept for the lifetime of the limiter unless `max_entries`
is set, in which case expired entries are purged once the map is full.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

DEFAULT_MAX_REQUESTS = 5
DEFAULT_WINDOW_SECONDS = 60.0


@dataclass
class RateLimitEntry:
    """Rate limiting state for a single identity."""

    count: int = 0
    reset_at: float = 0.0
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


@dataclass
class RateLimiter:
    """
    Rate limiter with per-identity tracking.

    Args:
        max_requests: Maximum requests allowed per window (default: 5)
        window_seconds: Time window in seconds (default: 60)
        max_entries: Identities to track before purging expired ones
            (default: None, never purge)
        clock: Monotonic time source, replaceable in tests
    """

    max_requests: int = DEFAULT_MAX_REQUESTS
    window_seconds: float = DEFAULT_WINDOW_SECONDS
    max_entries: Optional[int] = None
    clock: Callable[[], float] = time.monotonic
    _entries: Dict[str, RateLimitEntry] = field(default_factory=dict, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def _get_entry(self, identity: str) -> RateLimitEntry:
        """Get or lazily create the entry for an identity."""
        with self._lock:
            entry = self._entries.get(identity)
            if entry is None:
                now = self.clock()
                if self.max_entries is not None and len(self._entries) >= self.max_entries:
                    self._cleanup(now)
                entry = RateLimitEntry(count=0, reset_at=now + self.window_seconds)
                self._entries[identity] = entry
            return entry

    def is_allowed(self, identity: str) -> bool:
        """
        Check if a request from identity is allowed, counting it if so.

        A request that is refused is not counted.

        Args:
            identity: Resolved sender identity

        Returns:
            True if request is allowed, False if rate limited
        """
        entry = self._get_entry(identity)

        with entry.lock:
            now = self.clock()

            # Window elapsed: start a new one
            if now > entry.reset_at:
                entry.count = 0
                entry.reset_at = now + self.window_seconds

            if entry.count >= self.max_requests:
                return False

            entry.count += 1
            return True

    def get_remaining(self, identity: str) -> int:
        """
        Get remaining requests for an identity in the current window.

        Args:
            identity: Resolved sender identity

        Returns:
            Number of remaining requests (0 if rate limited)
        """
        with self._lock:
            entry = self._entries.get(identity)

        if entry is None:
            return self.max_requests

        with entry.lock:
            if self.clock() > entry.reset_at:
                return self.max_requests
            return max(0, self.max_requests - entry.count)

    def get_reset_time(self, identity: str) -> float:
        """
        Get seconds until the window resets for an identity.

        Args:
            identity: Resolved sender identity

        Returns:
            Seconds until reset (0 if unknown or already expired)
        """
        with self._lock:
            entry = self._entries.get(identity)

        if entry is None:
            return 0.0

        with entry.lock:
            return max(0.0, entry.reset_at - self.clock())

    def reset(self, identity: Optional[str] = None) -> None:
        """
        Reset rate limits.

        Args:
            identity: Specific identity to reset, or None to reset all
        """
        with self._lock:
            if identity is not None:
                self._entries.pop(identity, None)
            else:
                self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, identity: object) -> bool:
        with self._lock:
            return identity in self._entries

    def _cleanup(self, now: float) -> None:
        """Remove expired entries. Caller holds the map lock."""
        expired = [
            identity
            for identity, entry in self._entries.items()
            if now > entry.reset_at
        ]
        for identity in expired:
            del self._entries[identity]
