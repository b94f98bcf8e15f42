"""Wall-clock budget threaded through traversal and matching calls."""

from __future__ import annotations

import time
from typing import Callable, Optional


class Deadline:
    """Best-effort cancellation token checked between files, never mid-read."""

    def __init__(
        self,
        expires_at: Optional[float],
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._expires_at = expires_at
        self._clock = clock

    @classmethod
    def after_ms(
        cls, timeout_ms: int | float, *, clock: Callable[[], float] = time.monotonic
    ) -> "Deadline":
        return cls(clock() + timeout_ms / 1000.0, clock=clock)

    def expired(self) -> bool:
        if self._expires_at is None:
            return False
        return self._clock() > self._expires_at

    def remaining(self) -> Optional[float]:
        """Seconds left, ``None`` when unbounded."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())


__all__ = ["Deadline"]
