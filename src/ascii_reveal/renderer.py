"""Hover-driven ASCII renderer state machine."""

from __future__ import annotations

import sys
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple, Union

import numpy as np
from PIL import Image

from ascii_reveal.compositor import render_surface
from ascii_reveal.config.schema import RendererConfig
from ascii_reveal.data import GlyphGrid, GridBuild, RenderFrame, SourceImage
from ascii_reveal.errors import ImageLoadError
from ascii_reveal.glyphs import build_glyph_grid, scramble_alphabet
from ascii_reveal.io import ImageSource, load_source_image, source_key
from ascii_reveal.scheduler import FrameScheduler, ManualFrameScheduler, RevealAnimation


class RendererState(Enum):
    UNLOADED = "unloaded"
    LOADED = "loaded"
    IDLE = "idle"
    ANIMATING = "animating"
    FAILED = "failed"


@dataclass(frozen=True)
class _CacheEntry:
    image: SourceImage
    build: GridBuild


def _report_error(exc: BaseException) -> None:
    print(f"ASCII overlay disabled: {exc}", file=sys.stderr)


class AsciiRenderer:
    """Owns one image's grid and its hover reveal lifecycle.

    ``UNLOADED -> LOADED -> IDLE <-> ANIMATING``. A failed load moves to
    ``FAILED``; the host keeps showing the plain image and hover does nothing.
    Frame callbacks come from the injected scheduler, so every state change
    happens on the scheduler's thread.
    """

    def __init__(
        self,
        scheduler: FrameScheduler,
        config: Optional[RendererConfig] = None,
        loader: Callable[[ImageSource], SourceImage] = load_source_image,
        rng: Optional[np.random.Generator] = None,
        on_frame: Optional[Callable[[RenderFrame], None]] = None,
        on_error: Optional[Callable[[BaseException], None]] = None,
    ) -> None:
        self.config = (config or RendererConfig()).validate()
        self.scheduler = scheduler
        self.loader = loader
        self.rng = rng if rng is not None else np.random.default_rng()
        self.on_frame = on_frame
        self.on_error = on_error or _report_error
        self.scramble_chars = scramble_alphabet(self.config.char_set, self.config.scramble_extra)

        self.state = RendererState.UNLOADED
        self.hovered = False
        self.image: Optional[SourceImage] = None
        self.build: Optional[GridBuild] = None
        self.animation: Optional[RevealAnimation] = None
        self.last_frame: Optional[RenderFrame] = None
        self.error: Optional[BaseException] = None
        self.source_key: Optional[str] = None
        self._cache: Dict[str, _CacheEntry] = {}
        self._load_token = 0
        self._surface_cache: Optional[Tuple[RenderFrame, Image.Image]] = None

    @property
    def grid(self) -> Optional[GlyphGrid]:
        return self.build.grid if self.build else None

    # Loading -----------------------------------------------------------

    def _begin_load(self, source: ImageSource) -> Tuple[int, str]:
        self.cancel()
        self._load_token += 1
        self.state = RendererState.UNLOADED
        self.image = None
        self.build = None
        self.error = None
        self.last_frame = None
        self.source_key = source_key(source)
        return self._load_token, self.source_key

    def load(self, source: ImageSource) -> RendererState:
        """Load and build synchronously."""

        token, key = self._begin_load(source)
        if key in self._cache:
            self._complete_load(token, key, self._cache[key].image, None)
            return self.state
        image, error = self._run_loader(source, key)
        self._complete_load(token, key, image, error)
        return self.state

    def load_in_background(self, source: ImageSource) -> Optional[threading.Thread]:
        """Decode on a worker thread and deliver completion through the scheduler.

        The hover state at completion time decides whether a reveal starts.
        Returns the worker thread, or None on a cache hit.
        """

        token, key = self._begin_load(source)
        if key in self._cache:
            self._complete_load(token, key, self._cache[key].image, None)
            return None

        def _run() -> None:
            image, error = self._run_loader(source, key)
            self.scheduler.request_frame(lambda _ts: self._complete_load(token, key, image, error))

        thread = threading.Thread(target=_run, daemon=True)
        thread.start()
        return thread

    def _run_loader(self, source: ImageSource, key: str) -> Tuple[Optional[SourceImage], Optional[ImageLoadError]]:
        """Run the loader, reporting any failure as an ImageLoadError."""

        try:
            return self.loader(source), None
        except ImageLoadError as exc:
            return None, exc
        except Exception as exc:
            error = ImageLoadError(f"Could not load {key}: {exc}")
            error.__cause__ = exc
            return None, error

    def _complete_load(
        self,
        token: int,
        key: str,
        image: Optional[SourceImage],
        error: Optional[ImageLoadError],
    ) -> None:
        if token != self._load_token:
            # Superseded by a newer load or by teardown.
            return
        if error is not None or image is None:
            self._fail(error or ImageLoadError(f"No image data for {key}"))
            return

        entry = self._cache.get(key)
        if entry is None:
            build = build_glyph_grid(image, self.config.resolution, self.config.char_set)
            entry = _CacheEntry(image=image, build=build)
            self._cache[key] = entry
        self.image = entry.image
        self.build = entry.build
        self.state = RendererState.LOADED
        # Loaded -> Idle needs no setup.
        self.state = RendererState.IDLE
        if self.hovered:
            self._start_reveal()

    def _fail(self, error: ImageLoadError) -> None:
        self.state = RendererState.FAILED
        self.error = error
        self.on_error(error)

    # Hover -------------------------------------------------------------

    def hover_enter(self) -> None:
        self.hovered = True
        if self.state in (RendererState.IDLE, RendererState.ANIMATING):
            self._start_reveal()

    def hover_exit(self) -> None:
        self.hovered = False
        self.cancel()

    def cancel(self) -> None:
        """Stop any running reveal. Safe to call at any time, any number of times."""

        if self.animation is not None:
            self.animation.cancel()
            self.animation = None
        if self.state is RendererState.ANIMATING:
            self.state = RendererState.IDLE

    def teardown(self) -> None:
        """Cancel pending frames and release the image and grid cache."""

        self.hovered = False
        self.cancel()
        self._load_token += 1
        self.state = RendererState.UNLOADED
        self.image = None
        self.build = None
        self.last_frame = None
        self._surface_cache = None
        self._cache.clear()

    def _start_reveal(self) -> None:
        assert self.build is not None
        self.cancel()
        self.last_frame = None
        self.state = RendererState.ANIMATING
        animation = RevealAnimation(
            grid=self.build.grid,
            settle_duration_ms=self.config.settle_duration_ms,
            scheduler=self.scheduler,
            scramble_chars=self.scramble_chars,
            rng=self.rng,
            on_frame=self._handle_frame,
            on_finish=self._handle_finish,
            on_error=self._handle_animation_error,
        )
        self.animation = animation
        animation.start()

    def _handle_frame(self, frame: RenderFrame) -> None:
        self.last_frame = frame
        if self.on_frame:
            self.on_frame(frame)

    def _handle_finish(self) -> None:
        self.animation = None
        self.state = RendererState.IDLE

    def _handle_animation_error(self, exc: BaseException) -> None:
        self.animation = None
        self.error = exc
        if self.state is RendererState.ANIMATING:
            self.state = RendererState.IDLE
        self.on_error(exc)

    # Display -----------------------------------------------------------

    @property
    def showing_overlay(self) -> bool:
        return (
            self.hovered
            and self.build is not None
            and self.last_frame is not None
            and self.state in (RendererState.IDLE, RendererState.ANIMATING)
        )

    def surface(self) -> Optional[Image.Image]:
        """Return the overlay to show, or None when the plain image should show."""

        if not self.showing_overlay:
            return None
        assert self.build is not None and self.last_frame is not None
        frame = self.last_frame
        if self._surface_cache is None or self._surface_cache[0] is not frame:
            image = render_surface(
                frame,
                self.build.source_width,
                self.build.source_height,
                foreground=self.config.foreground,
                background=self.config.background,
            )
            self._surface_cache = (frame, image)
        return self._surface_cache[1]


def render_reveal_frames(
    grid: Union[GlyphGrid, GridBuild],
    config: RendererConfig,
    fps: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
) -> List[Tuple[float, RenderFrame]]:
    """Run a complete reveal offline and return (timestamp_ms, frame) pairs."""

    if isinstance(grid, GridBuild):
        grid = grid.grid
    config.validate()
    step_ms = 1000.0 / (fps or config.fps)
    scheduler = ManualFrameScheduler()
    frames: List[Tuple[float, RenderFrame]] = []
    errors: List[BaseException] = []
    animation = RevealAnimation(
        grid=grid,
        settle_duration_ms=config.settle_duration_ms,
        scheduler=scheduler,
        scramble_chars=scramble_alphabet(config.char_set, config.scramble_extra),
        rng=rng,
        on_frame=lambda frame: frames.append((scheduler.now(), frame)),
        on_error=errors.append,
    )
    animation.start()
    while animation.running:
        scheduler.advance(step_ms)
    if errors:
        raise errors[0]
    return frames
