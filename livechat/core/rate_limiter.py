"""Rate Limiter — sliding-window post counter with a punitive cooldown.

Invariants:
    - Per nickname the limiter is either Open or Throttled(until)
    - A rejected attempt is never recorded in the window
    - Cooldown ends only by elapsed time (no reset call exists)
    - refund() takes back one accepted attempt whose post failed to persist;
      it never shortens a cooldown
    - The first attempt after a cooldown expires starts a fresh window
    - All table mutations happen under one lock (atomic per key)

Design Decisions:
    - Time is an argument, not read from a clock: deterministic tests, no sleeping
    - In-memory dict, lost on restart: worst case is a brief limiter reset
      (ADR: single-process deployment, shared limiter store out of scope)
    - Idle entries pruned once the table passes max_tracked so memory stays bounded
"""

import math
import threading
from collections import deque
from dataclasses import dataclass, field
from enum import Enum


class LimiterState(str, Enum):
    OPEN = "open"
    THROTTLED = "throttled"


@dataclass
class RateLimitState:
    """Recent accepted post times plus an optional cooldown deadline."""
    timestamps: deque[float] = field(default_factory=deque)
    cooldown_until: float | None = None


@dataclass(frozen=True)
class RateDecision:
    allowed: bool
    cooldown_seconds: int = 0
    retry_at: float | None = None


class RateLimiter:
    """Tracks post attempts per key. Thread-safe, no IO."""

    def __init__(
        self,
        max_posts: int = 5,
        window_seconds: float = 10.0,
        cooldown_seconds: float = 60.0,
        max_tracked: int = 10_000,
    ):
        self.max_posts = max_posts
        self.window_seconds = window_seconds
        self.cooldown_seconds = cooldown_seconds
        self.max_tracked = max_tracked
        self._entries: dict[str, RateLimitState] = {}
        self._lock = threading.Lock()

    def check(self, key: str, now: float) -> RateDecision:
        """Evaluate (and on success record) one post attempt at time `now`."""
        with self._lock:
            entry = self._entries.setdefault(key, RateLimitState())
            self._drop_expired(entry, now)

            if entry.cooldown_until is not None:
                if now < entry.cooldown_until:
                    return _reject(now, entry.cooldown_until - now)
                entry.cooldown_until = None
                entry.timestamps.clear()

            if len(entry.timestamps) >= self.max_posts:
                entry.cooldown_until = now + self.cooldown_seconds
                return _reject(now, self.cooldown_seconds)

            entry.timestamps.append(now)
            if len(self._entries) > self.max_tracked:
                self._prune(now)
            return RateDecision(allowed=True)

    def refund(self, key: str, at: float) -> bool:
        """Drop an accepted attempt recorded at `at` whose post was never stored.

        Only the window entry is removed; a running cooldown stays in place.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or at not in entry.timestamps:
                return False
            entry.timestamps.remove(at)
            return True

    def state(self, key: str, now: float) -> LimiterState:
        with self._lock:
            entry = self._entries.get(key)
            if entry and entry.cooldown_until is not None and now < entry.cooldown_until:
                return LimiterState.THROTTLED
            return LimiterState.OPEN

    def __len__(self) -> int:
        return len(self._entries)

    def _drop_expired(self, entry: RateLimitState, now: float) -> None:
        while entry.timestamps and now - entry.timestamps[0] >= self.window_seconds:
            entry.timestamps.popleft()

    def _prune(self, now: float) -> None:
        """Forget keys with an empty window and no live cooldown. Lock held."""
        for key in list(self._entries):
            entry = self._entries[key]
            self._drop_expired(entry, now)
            cooling = entry.cooldown_until is not None and now < entry.cooldown_until
            if not entry.timestamps and not cooling:
                del self._entries[key]


def _reject(now: float, remaining: float) -> RateDecision:
    seconds = math.ceil(remaining)
    return RateDecision(
        allowed=False, cooldown_seconds=seconds, retry_at=now + seconds,
    )
