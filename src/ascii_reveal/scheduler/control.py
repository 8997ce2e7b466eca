"""Per-frame scheduling primitives.

The animator only needs "run this callback before the next display refresh
and give me a handle I can cancel". Hosts inject an implementation; tests use
``ManualFrameScheduler`` to advance time deterministically.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, List, Optional, Protocol

FrameCallback = Callable[[float], None]


class FrameHandle:
    """Cancellable reference to one scheduled frame callback."""

    def __init__(self, callback: FrameCallback) -> None:
        self.callback = callback
        self._cancelled = False
        self._fired = False

    @property
    def active(self) -> bool:
        return not (self._cancelled or self._fired)

    def cancel(self) -> None:
        self._cancelled = True

    def _fire(self, timestamp_ms: float) -> None:
        if not self.active:
            return
        self._fired = True
        self.callback(timestamp_ms)


class FrameScheduler(Protocol):
    def now(self) -> float:
        ...

    def request_frame(self, callback: FrameCallback) -> FrameHandle:
        ...


class ManualFrameScheduler:
    """Frame scheduler whose clock only moves when told to."""

    def __init__(self, start_ms: float = 0.0) -> None:
        self.lock = threading.Lock()
        self._now = float(start_ms)
        self._queue: List[FrameHandle] = []

    def now(self) -> float:
        with self.lock:
            return self._now

    def request_frame(self, callback: FrameCallback) -> FrameHandle:
        handle = FrameHandle(callback)
        with self.lock:
            self._queue.append(handle)
        return handle

    @property
    def pending(self) -> int:
        with self.lock:
            return sum(1 for handle in self._queue if handle.active)

    def advance_to(self, timestamp_ms: float) -> int:
        """Move the clock and run callbacks queued before this call.

        Callbacks requested while running are deferred to the next frame.
        Returns the number of callbacks that ran.
        """

        with self.lock:
            self._now = max(self._now, float(timestamp_ms))
            batch, self._queue = self._queue, []
            now = self._now
        ran = 0
        for handle in batch:
            if handle.active:
                handle._fire(now)
                ran += 1
        return ran

    def advance(self, delta_ms: float) -> int:
        return self.advance_to(self.now() + delta_ms)


class RealtimeFrameScheduler(ManualFrameScheduler):
    """Refresh-rate loop driven by a monotonic clock on the calling thread."""

    def __init__(self, fps: int = 60) -> None:
        if fps <= 0:
            raise ValueError("fps must be positive.")
        self.interval_s = 1.0 / fps
        self._origin = time.perf_counter()
        super().__init__(start_ms=0.0)

    def _clock_ms(self) -> float:
        return (time.perf_counter() - self._origin) * 1000.0

    def now(self) -> float:
        return self._clock_ms()

    def run(self, until: Optional[Callable[[], bool]] = None, timeout_s: Optional[float] = None) -> None:
        """Service frames until ``until()`` is true, or nothing is pending."""

        deadline = None if timeout_s is None else time.perf_counter() + timeout_s
        while True:
            if until is not None and until():
                return
            if until is None and self.pending == 0:
                return
            if deadline is not None and time.perf_counter() >= deadline:
                return
            time.sleep(self.interval_s)
            self.advance_to(self._clock_ms())
