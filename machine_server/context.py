"""Cancellation and deadline propagation for a single creation request."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from machine_server.errors import CreationCancelledError

Clock = Callable[[], float]


class CreationContext:
    """Carries a cancel signal and an optional deadline into driver and store calls.

    Drivers doing long-running work should call ``raise_if_done`` between
    steps, or block on ``wait`` instead of ``time.sleep`` so that a cancel
    wakes them up.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self._clock = clock
        self._cancelled = threading.Event()
        self._deadline: float | None = None
        if timeout_seconds is not None:
            self._deadline = clock() + timeout_seconds

    @classmethod
    def background(cls) -> CreationContext:
        return cls()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and self._clock() >= self._deadline

    @property
    def done(self) -> bool:
        return self.cancelled or self.expired

    def cancel(self) -> None:
        self._cancelled.set()

    def remaining(self) -> float | None:
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock())

    def raise_if_done(self) -> None:
        if self.cancelled:
            raise CreationCancelledError("host creation was cancelled")
        if self.expired:
            raise CreationCancelledError("host creation deadline exceeded")

    def wait(self, seconds: float) -> bool:
        """Block for up to ``seconds``; return True when interrupted by cancel or deadline."""
        remaining = self.remaining()
        timeout = seconds if remaining is None else min(seconds, remaining)
        self._cancelled.wait(max(0.0, timeout))
        return self.done
