"""Session health monitor for browser automation.

Tracks a rolling window of task outcomes (ok, timeout, detached, captcha...)
and computes a health score. Cluster workers use it to recycle a browser
whose session is dying, and callers can use it to adaptively add delays.
"""
import collections
import time

from .errors import ErrorKind, classify_error

# Event weights: positive events add, negative events subtract.
# Every failure weighs at most -0.5 so a window of pure failures scores < 0.3.
_WEIGHTS = {
    "ok": 1.0,
    "captcha": -0.5,
    "rate_limited": -0.5,
    "timeout": -0.6,
    "navigation": -0.6,
    "target_closed": -0.5,
    "detached": -0.5,
    "unknown": -0.5,
    "fatal": -1.0,
}

# minimum events before the score alone can stop a session
_MIN_EVENTS = 5


class HealthMonitor:
    """Rolling-window health scorer for a browser session."""

    def __init__(self, window: int = 20):
        self._events: collections.deque[tuple[float, str]] = collections.deque(maxlen=window)
        self._window = window

    def record(self, event: str):
        """Record an event. Known events are the keys of ``_WEIGHTS``."""
        self._events.append((time.monotonic(), event))

    def record_error(self, exc: BaseException) -> ErrorKind:
        """Record the classified kind of *exc* and return it."""
        kind = classify_error(exc)
        self.record(kind.value)
        return kind

    def reset(self):
        self._events.clear()

    @property
    def score(self) -> float:
        """Health score from 0.0 (dead) to 1.0 (healthy).

        Recent events are weighted 2x compared to older ones.
        Score is normalized to [0, 1] range.
        """
        if not self._events:
            return 1.0

        n = len(self._events)
        midpoint = n // 2
        total_weight = 0.0
        total_possible = 0.0

        for i, (_ts, event) in enumerate(self._events):
            recency = 2.0 if i >= midpoint else 1.0
            total_weight += _WEIGHTS.get(event, 0.0) * recency
            total_possible += recency

        # total_weight ranges from -total_possible to +total_possible
        raw = (total_weight + total_possible) / (2 * total_possible)
        return max(0.0, min(1.0, raw))

    @property
    def should_stop(self) -> bool:
        """True if the session is dead: 3+ fatal events, or score < 0.3 over 5+ events."""
        n_fatal = sum(1 for _, ev in self._events if ev == "fatal")
        if n_fatal >= 3:
            return True
        return len(self._events) >= _MIN_EVENTS and self.score < 0.3

    @property
    def should_backoff(self) -> bool:
        """True if the session is degraded (score < 0.6). Caller should slow down."""
        return self.score < 0.6

    @property
    def stats(self) -> dict:
        """Return event counts for logging."""
        counts: dict[str, int] = {}
        for _, ev in self._events:
            counts[ev] = counts.get(ev, 0) + 1
        return {"score": round(self.score, 2), "events": counts, "total": len(self._events)}
