"""Fixed-window request limiter keyed by client address.

Counts are kept in process memory, so limits apply per worker.
"""
from __future__ import annotations
import time
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, Tuple
from fastapi import Request
from template_service.core.errors import RateLimited

RATE_LIMIT_MESSAGE = "Too many requests, please try again later."


@dataclass
class FixedWindowRateLimiter:
    max_requests: int = 5
    window_seconds: float = 60.0
    clock: Callable[[], float] = time.monotonic
    _windows: Dict[str, Tuple[float, int]] = field(default_factory=dict, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    _last_sweep: float = field(default=float("-inf"), repr=False)

    @property
    def tracked_clients(self) -> int:
        return len(self._windows)

    def _sweep(self, now: float) -> None:
        # Runs at most once per window.
        if now - self._last_sweep < self.window_seconds:
            return
        self._windows = {
            key: window for key, window in self._windows.items()
            if now - window[0] < self.window_seconds
        }
        self._last_sweep = now

    def hit(self, key: str) -> bool:
        """Record one request for ``key``; return False once the window is full."""
        now = self.clock()
        with self._lock:
            self._sweep(now)
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.window_seconds:
                started, count = now, 0
            if count >= self.max_requests:
                self._windows[key] = (started, count)
                return False
            self._windows[key] = (started, count + 1)
            return True

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


def enforce_rate_limit(request: Request) -> None:
    """FastAPI dependency applying the app's limiter to the calling client."""
    limiter: FixedWindowRateLimiter = request.app.state.rate_limiter
    key = request.client.host if request.client else "unknown"
    if not limiter.hit(key):
        raise RateLimited(RATE_LIMIT_MESSAGE)
