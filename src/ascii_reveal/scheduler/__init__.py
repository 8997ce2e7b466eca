"""Frame scheduling and reveal animation."""

from ascii_reveal.scheduler.control import (
    FrameHandle,
    FrameScheduler,
    ManualFrameScheduler,
    RealtimeFrameScheduler,
)
from ascii_reveal.scheduler.reveal import RevealAnimation, RevealSchedule, reveal_progress

__all__ = [
    "FrameHandle",
    "FrameScheduler",
    "ManualFrameScheduler",
    "RealtimeFrameScheduler",
    "RevealAnimation",
    "RevealSchedule",
    "reveal_progress",
]
