"""Scramble-to-settle reveal animation."""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import numpy as np

from ascii_reveal.data import GlyphGrid, RenderFrame
from ascii_reveal.errors import InvalidConfigurationError
from ascii_reveal.scheduler.control import FrameHandle, FrameScheduler


@dataclass(frozen=True)
class RevealSchedule:
    """Order in which non-blank cells settle."""

    order: Tuple[int, ...]

    def __len__(self) -> int:
        return len(self.order)

    @classmethod
    def generate(cls, grid: GlyphGrid, rng: np.random.Generator) -> "RevealSchedule":
        """Uniformly shuffle the non-blank cell indices."""

        indices = np.array(grid.non_blank_indices(), dtype=np.int64)
        return cls(order=tuple(int(index) for index in rng.permutation(indices)))


def reveal_progress(elapsed_ms: float, settle_duration_ms: float) -> float:
    """Fraction of the schedule due at ``elapsed_ms``, clamped to [0, 1]."""

    return min(max(elapsed_ms / settle_duration_ms, 0.0), 1.0)


def _report_error(exc: BaseException) -> None:
    print(f"Reveal animation stopped: {exc}", file=sys.stderr)


class RevealAnimation:
    """One hover-triggered reveal run over a fixed grid.

    All state belongs to this run. Cancelling discards it; a new hover needs a
    new instance.
    """

    def __init__(
        self,
        grid: GlyphGrid,
        settle_duration_ms: float,
        scheduler: FrameScheduler,
        scramble_chars: str,
        rng: Optional[np.random.Generator] = None,
        on_frame: Optional[Callable[[RenderFrame], None]] = None,
        on_finish: Optional[Callable[[], None]] = None,
        on_error: Optional[Callable[[BaseException], None]] = None,
    ) -> None:
        if not settle_duration_ms > 0:
            raise InvalidConfigurationError(
                f"settle_duration_ms must be positive, got {settle_duration_ms!r}."
            )
        if not scramble_chars:
            raise InvalidConfigurationError("scramble_chars must not be empty.")
        self.grid = grid
        self.settle_duration_ms = float(settle_duration_ms)
        self.scheduler = scheduler
        self.scramble = np.array(list(scramble_chars), dtype="<U1")
        self.rng = rng if rng is not None else np.random.default_rng()
        self.on_frame = on_frame
        self.on_finish = on_finish
        self.on_error = on_error or _report_error

        self.schedule: Optional[RevealSchedule] = None
        self.settled: Optional[np.ndarray] = None
        self.settled_count = 0
        self.progress = 0.0
        self.last_frame: Optional[RenderFrame] = None
        self.error: Optional[BaseException] = None
        self._final = grid.as_array()
        self._visible = np.array([not char.isspace() for char in self._final], dtype=bool)
        self._handle: Optional[FrameHandle] = None
        self._start_ms = 0.0
        self._running = False
        self._finished = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def total(self) -> int:
        return len(self.schedule) if self.schedule is not None else 0

    def start(self) -> "RevealAnimation":
        if self._running or self._finished:
            raise RuntimeError("Reveal animation already started.")
        self.schedule = RevealSchedule.generate(self.grid, self.rng)
        self.settled = np.zeros(self.grid.size, dtype=bool)
        self.settled_count = 0
        self.progress = 0.0
        self._start_ms = self.scheduler.now()
        self._running = True
        if not self.schedule.order:
            self._complete()
            return self
        self._handle = self.scheduler.request_frame(self._tick)
        return self

    def cancel(self) -> None:
        """Stop the callback chain and drop run state. Safe to call repeatedly."""

        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._running = False
        self.schedule = None
        self.settled = None
        self.settled_count = 0
        self.progress = 0.0

    def _tick(self, timestamp_ms: float) -> None:
        self._handle = None
        if not self._running:
            return
        try:
            self.progress = reveal_progress(timestamp_ms - self._start_ms, self.settle_duration_ms)
            self._settle_up_to(math.floor(self.progress * self.total))
            if self.progress >= 1.0:
                self._complete()
                return
            self._emit(self._compose())
            if not self._running:
                # Cancelled from inside on_frame.
                return
            self._handle =self.scheduler.request_frame(self._tick)
        except Exception as exc:  # noqa: BLE001
            self.cancel()
            self.error = exc
            self.on_error(exc)

    def _settle_up_to(self, target: int) -> None:
        assert self.schedule is not None and self.settled is not None
        target = min(target, self.total)
        while self.settled_count < target:
            self.settled[self.schedule.order[self.settled_count]] = True
            self.settled_count += 1

    def _compose(self) -> RenderFrame:
        assert self.settled is not None
        cells = self._final.copy()
        scrambled = self._visible & ~self.settled
        count = int(np.count_nonzero(scrambled))
        if count:
            cells[scrambled] = self.scramble[self.rng.integers(0, len(self.scramble), size=count)]
        cols = self.grid.cols
        flat = "".join(cells.tolist())
        lines = tuple(flat[row * cols:(row + 1) * cols] for row in range(self.grid.rows))
        return RenderFrame(
            cols=cols,
            rows=self.grid.rows,
            lines=lines,
            settled_count=self.settled_count,
            total=self.total,
            progress=self.progress,
            complete=False,
        )

    def _complete(self) -> None:
        self._settle_up_to(self.total)
        self.progress = 1.0
        self._running = False
        self._finished = True
        self._emit(RenderFrame.from_grid(self.grid, self.total))
        if self.on_finish:
            self.on_finish()

    def _emit(self, frame: RenderFrame) -> None:
        self.last_frame = frame
        if self.on_frame:
            self.on_frame(frame)
