"""Offscreen glyph surfaces sized to the source image."""

from __future__ import annotations

from functools import lru_cache
from typing import Tuple, Union

from PIL import Image, ImageDraw, ImageFont

from ascii_reveal.data import GlyphGrid, RenderFrame

FONT_SCALE = 1.2
_MONO_FONTS = ("DejaVuSansMono.ttf", "Menlo.ttc", "Consolas.ttf", "LiberationMono-Regular.ttf")

Color = Tuple[int, int, int, int]


@lru_cache(maxsize=64)
def _load_font(size: int) -> ImageFont.ImageFont:
    """Return a monospace font at ``size`` px, falling back to Pillow's default."""

    for name in _MONO_FONTS:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def cell_geometry(width: int, height: int, cols: int, rows: int) -> Tuple[float, float, int]:
    """Return (cell_width, cell_height, font_size) for a surface."""

    cell_w = width / cols
    cell_h = height / rows
    font_size = max(1, int(min(cell_w, cell_h) * FONT_SCALE))
    return cell_w, cell_h, font_size


def render_surface(
    frame: Union[GlyphGrid, RenderFrame],
    width: int,
    height: int,
    foreground: Color = (255, 255, 255, 255),
    background: Color = (0, 0, 0, 0),
) -> Image.Image:
    """Draw a grid or animation frame at the original image's pixel size.

    The returned surface can replace the source image one-for-one, so the
    display box and any cover/crop fitting stay unchanged.
    """

    surface = Image.new("RGBA", (width, height), background)
    if frame.cols == 0 or frame.rows == 0:
        return surface

    cell_w, cell_h, font_size = cell_geometry(width, height, frame.cols, frame.rows)
    font = _load_font(font_size)
    draw = ImageDraw.Draw(surface)
    for row, line in enumerate(frame.lines):
        cy = (row + 0.5) * cell_h
        for col, char in enumerate(line):
            if char.isspace():
                continue
            left, top, right, bottom = draw.textbbox((0, 0), char, font=font)
            cx = (col + 0.5) * cell_w
            draw.text(
                (cx - (left + right) / 2.0, cy - (top + bottom) / 2.0),
                char,
                font=font,
                fill=foreground,
            )
    return surface
