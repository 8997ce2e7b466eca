"""Diagnostics and profiling."""

from ascii_reveal.diagnostics.tracker import FrameRecord, FrameTracker, Timer

__all__ = ["FrameRecord", "FrameTracker", "Timer"]
