"""Glyph surface rendering."""

from ascii_reveal.compositor.surface import FONT_SCALE, cell_geometry, render_surface

__all__ = ["FONT_SCALE", "cell_geometry", "render_surface"]
