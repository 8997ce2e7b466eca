"""Frame timing diagnostics for reveal rendering."""

from __future__ import annotations

import csv
import json
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import List, Optional

from ascii_reveal.data import RenderFrame


@dataclass
class FrameRecord:
    """Timing and settlement metrics for a single frame."""

    frame: int
    timestamp_ms: float
    settled: int
    total: int
    progress: float
    render_ms: float


@dataclass
class FrameTracker:
    """Collects per-frame records and exports them as JSON/CSV."""

    enable_profiling: bool = False
    profile_output: Optional[Path] = None
    records: List[FrameRecord] = field(default_factory=list)

    def track_frame(self, frame: RenderFrame, timestamp_ms: float, render_s: float) -> None:
        if not self.enable_profiling:
            return
        self.records.append(
            FrameRecord(
                frame=len(self.records),
                timestamp_ms=timestamp_ms,
                settled=frame.settled_count,
                total=frame.total,
                progress=frame.progress,
                render_ms=render_s * 1000.0,
            )
        )

    def export(self) -> None:
        """Export frame records to JSON and a sibling CSV if configured."""

        if not self.records or not self.profile_output:
            return

        self.profile_output.parent.mkdir(parents=True, exist_ok=True)
        payload = [asdict(record) for record in self.records]
        self.profile_output.write_text(json.dumps(payload, indent=2))

        csv_path = self.profile_output.with_suffix(".csv")
        with csv_path.open("w", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=list(payload[0].keys()))
            writer.writeheader()
            for row in payload:
                writer.writerow(row)


class Timer:
    """Simple context timer for profiling blocks."""

    def __init__(self) -> None:
        self.start = 0.0
        self.elapsed = 0.0

    def __enter__(self) -> "Timer":
        self.start = time.perf_counter()
        return self

    def __exit__(self, *_exc: object) -> None:
        self.elapsed = time.perf_counter() - self.start
