"""Image-to-ASCII grids with a hover-triggered scramble reveal."""

from ascii_reveal.config import RendererConfig
from ascii_reveal.data import GlyphGrid, GridBuild, RenderFrame, SourceImage
from ascii_reveal.errors import ImageLoadError, InvalidConfigurationError
from ascii_reveal.glyphs import build_glyph_grid
from ascii_reveal.renderer import AsciiRenderer, RendererState, render_reveal_frames
from ascii_reveal.scheduler import ManualFrameScheduler, RevealAnimation, RevealSchedule

__all__ = [
    "AsciiRenderer",
    "GlyphGrid",
    "GridBuild",
    "ImageLoadError",
    "InvalidConfigurationError",
    "ManualFrameScheduler",
    "RenderFrame",
    "RendererConfig",
    "RendererState",
    "RevealAnimation",
    "RevealSchedule",
    "SourceImage",
    "build_glyph_grid",
    "render_reveal_frames",
]
