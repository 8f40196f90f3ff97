"""
Fixed-window attempt limiter for credential endpoints.

Counts attempts per key (e.g. ``login_<ip>``) inside a window that opens
with the first attempt. Once the window's budget is spent, further
attempts are refused until the window expires.

Note: State is in-process. Multiple workers each keep their own counters.
"""

import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional


@dataclass
class AttemptWindow:
    count: int
    first_attempt: float
    last_attempt: float


@dataclass(frozen=True)
class AttemptDecision:
    """
    Outcome of a single ``hit``.

    Attributes:
        allowed: Whether the attempt may proceed
        remaining: Attempts left in the current window
        reset_at: Epoch seconds when the window closes
        retry_after: Whole seconds until the window closes (0 when allowed)
    """
    allowed: bool
    remaining: int
    reset_at: float
    retry_after: int = 0


class AttemptLimiter:
    """
    Per-key fixed-window limiter.

    Attributes:
        max_attempts: Attempts allowed per window
        window_seconds: Window length
    """

    def __init__(
        self,
        max_attempts: int,
        window_seconds: float,
        clock: Optional[Callable[[], float]] = None,
    ):
        if max_attempts <= 0:
            raise ValueError("max_attempts must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._clock = clock or time.time
        self._windows: Dict[str, AttemptWindow] = {}

    def _expire(self, now: float) -> None:
        expired = [
            key for key, window in self._windows.items()
            if now - window.first_attempt > self.window_seconds
        ]
        for key in expired:
            del self._windows[key]

    def hit(self, key: str) -> AttemptDecision:
        """
        Record an attempt for ``key`` and decide whether it is allowed.

        Refused attempts do not extend the window.
        """
        now = self._clock()
        self._expire(now)

        window = self._windows.get(key)
        if window is None:
            window = AttemptWindow(count=1, first_attempt=now, last_attempt=now)
            self._windows[key] = window
            return AttemptDecision(
                allowed=True,
                remaining=self.max_attempts - 1,
                reset_at=now + self.window_seconds,
            )

        reset_at = window.first_attempt + self.window_seconds

        if window.count >= self.max_attempts:
            return AttemptDecision(
                allowed=False,
                remaining=0,
                reset_at=reset_at,
                retry_after=max(1, math.ceil(reset_at - now)),
            )

        window.count += 1
        window.last_attempt = now
        return AttemptDecision(
            allowed=True,
            remaining=self.max_attempts - window.count,
            reset_at=reset_at,
        )

    def reset(self, key: Optional[str] = None) -> None:
        """Forget one key, or every key when called without arguments."""
        if key is None:
            self._windows.clear()
        else:
            self._windows.pop(key, None)
