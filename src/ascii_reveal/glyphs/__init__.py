"""Glyph grid construction."""

from ascii_reveal.glyphs.mapping import (
    ALPHA_CUTOFF,
    ROW_ASPECT,
    brightness,
    build_glyph_grid,
    glyph_indices,
    grid_dimensions,
    scramble_alphabet,
)

__all__ = [
    "ALPHA_CUTOFF",
    "ROW_ASPECT",
    "brightness",
    "build_glyph_grid",
    "glyph_indices",
    "grid_dimensions",
    "scramble_alphabet",
]
