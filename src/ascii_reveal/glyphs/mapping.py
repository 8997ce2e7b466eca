"""Pixel sampling and brightness-to-glyph mapping."""

from __future__ import annotations

import numpy as np
from PIL import Image

from ascii_reveal.config.schema import DEFAULT_SCRAMBLE_EXTRA
from ascii_reveal.data import GlyphGrid, GridBuild, SourceImage
from ascii_reveal.errors import InvalidConfigurationError

# Glyphs are taller than they are wide.
ROW_ASPECT = 1.8
# ROW_ASPECT as an exact fraction, so rows never lose a cell to float rounding.
_ROW_ASPECT_NUM, _ROW_ASPECT_DEN = 9, 5
ALPHA_CUTOFF = 128
_LUMA = np.array([0.299, 0.587, 0.114], dtype=np.float64)


def grid_dimensions(width: int, height: int, resolution: int) -> tuple[int, int]:
    """Return (cols, rows) for an image at the given cell resolution."""

    cols = width // resolution
    rows = (height * _ROW_ASPECT_DEN) // (resolution * _ROW_ASPECT_NUM)
    return cols, rows


def _sample_cells(image: SourceImage, cols: int, rows: int) -> np.ndarray:
    """Average the image down to one RGBA pixel per cell."""

    pil_image = Image.fromarray(np.ascontiguousarray(image.pixels))
    resized = pil_image.resize((cols, rows), resample=Image.BOX)
    return np.asarray(resized).astype(np.float64)


def brightness(rgb: np.ndarray) -> np.ndarray:
    """Perceived brightness in [0, 1] for 0..255 RGB values."""

    return np.clip((np.asarray(rgb, dtype=np.float64)[..., :3] @ _LUMA) / 255.0, 0.0, 1.0)


def glyph_indices(rgb: np.ndarray, ramp_length: int) -> np.ndarray:
    """Map RGB values to indices into a ramp of the given length."""

    idx = np.floor(brightness(rgb) * (ramp_length - 1)).astype(np.int64)
    return np.clip(idx, 0, ramp_length - 1)


def build_glyph_grid(image: SourceImage, resolution: int, char_set: str) -> GridBuild:
    """Convert an image into a brightness glyph grid.

    Cells whose sampled alpha is below 128 become spaces. The result depends
    only on the image, resolution and character set.
    """

    if isinstance(resolution, bool) or not isinstance(resolution, int) or resolution <= 0:
        raise InvalidConfigurationError(f"resolution must be a positive integer, got {resolution!r}.")
    if not char_set:
        raise InvalidConfigurationError("char_set must contain at least one character.")

    cols, rows = grid_dimensions(image.width, image.height, resolution)
    if cols == 0 or rows == 0:
        empty = GlyphGrid(cols=cols, rows=rows, lines=tuple(" " * cols for _ in range(rows)))
        return GridBuild(grid=empty, source_width=image.width, source_height=image.height)

    sampled = _sample_cells(image, cols, rows)
    ramp = np.array(list(char_set), dtype="<U1")
    chars = ramp[glyph_indices(sampled[..., :3], len(char_set))]
    chars[sampled[..., 3] < ALPHA_CUTOFF] = " "

    lines = tuple("".join(row) for row in chars)
    grid = GlyphGrid(cols=cols, rows=rows, lines=lines)
    return GridBuild(grid=grid, source_width=image.width, source_height=image.height)


def scramble_alphabet(char_set: str, extra: str = DEFAULT_SCRAMBLE_EXTRA) -> str:
    """Ramp glyphs plus punctuation noise, de-duplicated, without whitespace."""

    seen: dict[str, None] = {}
    for char in char_set + extra:
        if not char.isspace():
            seen.setdefault(char, None)
    if not seen:
        raise InvalidConfigurationError("Scramble alphabet would be empty.")
    return "".join(seen)
