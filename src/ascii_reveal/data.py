"""Core data structures shared by the grid builder, animator and compositor."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

import numpy as np


@dataclass(frozen=True, eq=False)
class SourceImage:
    """Decoded raster in straight-alpha RGBA uint8 (H x W x 4)."""

    width: int
    height: int
    pixels: np.ndarray
    source_key: str = ""

    @classmethod
    def from_array(cls, rgba: np.ndarray, source_key: str = "") -> "SourceImage":
        if rgba.ndim != 3 or rgba.shape[2] != 4:
            raise ValueError(f"Expected an H x W x 4 RGBA array, got shape {rgba.shape}.")
        pixels = np.array(rgba, dtype=np.uint8, copy=True)
        pixels.setflags(write=False)
        return cls(width=int(pixels.shape[1]), height=int(pixels.shape[0]), pixels=pixels, source_key=source_key)


@dataclass(frozen=True)
class GlyphGrid:
    """Immutable cols x rows character grid.

    Cells are addressed row-major: ``index = row * cols + col``.
    """

    cols: int
    rows: int
    lines: Tuple[str, ...]

    def __post_init__(self) -> None:
        if len(self.lines) != self.rows:
            raise ValueError(f"Grid has {len(self.lines)} lines, expected {self.rows}.")
        for line in self.lines:
            if len(line) != self.cols:
                raise ValueError(f"Grid line has {len(line)} cells, expected {self.cols}.")

    @property
    def size(self) -> int:
        return self.cols * self.rows

    def cell(self, index: int) -> str:
        row, col = divmod(index, self.cols)
        return self.lines[row][col]

    def non_blank_indices(self) -> List[int]:
        """Indices of cells holding a visible glyph, in ascending order."""

        return [
            row * self.cols + col
            for row, line in enumerate(self.lines)
            for col, char in enumerate(line)
            if not char.isspace()
        ]

    def as_array(self) -> np.ndarray:
        """Return the flattened cells as a numpy unicode array."""

        return np.array(list("".join(self.lines)), dtype="<U1")

    def to_text(self) -> str:
        return "\n".join(self.lines)


@dataclass(frozen=True)
class GridBuild:
    """Grid plus the source dimensions the overlay must match."""

    grid: GlyphGrid
    source_width: int
    source_height: int


@dataclass(frozen=True)
class RenderFrame:
    """Transient output of one animation tick."""

    cols: int
    rows: int
    lines: Tuple[str, ...]
    settled_count: int
    total: int
    progress: float
    complete: bool

    @classmethod
    def from_grid(cls, grid: GlyphGrid, total: int) -> "RenderFrame":
        return cls(
            cols=grid.cols,
            rows=grid.rows,
            lines=grid.lines,
            settled_count=total,
            total=total,
            progress=1.0,
            complete=True,
        )

    def to_text(self) -> str:
        return "\n".join(self.lines)
