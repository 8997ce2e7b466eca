import io
import threading
from typing import List

import numpy as np
import pytest
from PIL import Image

from ascii_reveal.config import RendererConfig
from ascii_reveal.data import SourceImage
from ascii_reveal.errors import ImageLoadError, InvalidConfigurationError
from ascii_reveal.renderer import AsciiRenderer, RendererState, render_reveal_frames
from ascii_reveal.scheduler import ManualFrameScheduler

from conftest import solid_image

CONFIG = RendererConfig(resolution=4, settle_duration_ms=200.0)


def _gradient(key: str = "mem://gradient") -> SourceImage:
    ramp = np.linspace(0, 255, 32, dtype=np.uint8)
    pixels = np.zeros((32, 32, 4), dtype=np.uint8)
    pixels[..., 0] = ramp[None, :]
    pixels[..., 1] = ramp[None, :]
    pixels[..., 2] = ramp[None, :]
    pixels[..., 3] = 255
    return SourceImage.from_array(pixels, source_key=key)


def _renderer(scheduler, **kwargs) -> AsciiRenderer:
    kwargs.setdefault("rng", np.random.default_rng(5))
    kwargs.setdefault("on_error", lambda exc: None)
    return AsciiRenderer(scheduler, config=CONFIG, **kwargs)


def test_hover_while_unloaded_is_a_no_op() -> None:
    scheduler = ManualFrameScheduler()
    renderer = _renderer(scheduler)

    renderer.hover_enter()

    assert renderer.state is RendererState.UNLOADED
    assert scheduler.pending == 0
    assert renderer.surface() is None


def test_full_hover_cycle_ends_on_the_final_grid() -> None:
    scheduler = ManualFrameScheduler()
    renderer = _renderer(scheduler)

    assert renderer.load(_gradient()) is RendererState.IDLE
    renderer.hover_enter()
    assert renderer.state is RendererState.ANIMATING

    for _ in range(20):
        scheduler.advance(16)

    assert renderer.state is RendererState.IDLE
    assert renderer.last_frame is not None
    assert renderer.last_frame.lines == renderer.grid.lines
    assert scheduler.pending == 0
    surface = renderer.surface()
    assert surface is not None
    assert surface.size == (32, 32)

    renderer.hover_exit()
    assert renderer.surface() is None


def test_hover_exit_cancels_and_rehover_restarts() -> None:
    scheduler = ManualFrameScheduler()
    renderer = _renderer(scheduler)
    renderer.load(_gradient())

    renderer.hover_enter()
    scheduler.advance(120)
    first = renderer.animation
    assert first is not None and first.settled_count > 0

    renderer.hover_exit()
    renderer.hover_exit()
    assert renderer.state is RendererState.IDLE
    assert scheduler.pending == 0

    renderer.hover_enter()
    second = renderer.animation
    assert second is not None and second is not first
    assert second.settled_count == 0
    assert scheduler.pending == 1


def test_load_failure_falls_back_and_disables_hover() -> None:
    scheduler = ManualFrameScheduler()
    errors: List[BaseException] = []

    def broken(_source):
        raise ImageLoadError("cross-origin pixels denied")

    renderer = _renderer(scheduler, loader=broken, on_error=errors.append)

    assert renderer.load("https://example.com/a.png") is RendererState.FAILED
    renderer.hover_enter()

    assert renderer.state is RendererState.FAILED
    assert len(errors) == 1
    assert renderer.surface() is None
    assert scheduler.pending == 0


def test_grid_is_cached_per_source() -> None:
    scheduler = ManualFrameScheduler()
    calls: List[object] = []
    image = _gradient("mem://cached")

    def counting(source):
        calls.append(source)
        return image

    renderer = _renderer(scheduler, loader=counting)
    renderer.load("cached.png")
    grid = renderer.grid
    renderer.load("cached.png")

    assert len(calls) == 1
    assert renderer.grid is grid


def _blocking_loader(release: threading.Event):
    def load(_source):
        release.wait(timeout=5)
        return _gradient()

    return load


def test_background_load_uses_hover_state_at_completion() -> None:
    scheduler = ManualFrameScheduler()
    release = threading.Event()
    renderer = _renderer(scheduler, loader=_blocking_loader(release))

    thread = renderer.load_in_background("slow.png")
    renderer.hover_enter()
    renderer.hover_exit()
    release.set()
    thread.join(timeout=5)
    scheduler.advance(0)

    assert renderer.state is RendererState.IDLE
    assert renderer.animation is None
    assert scheduler.pending == 0


def test_background_load_starts_reveal_when_still_hovered() -> None:
    scheduler = ManualFrameScheduler()
    release = threading.Event()
    renderer = _renderer(scheduler, loader=_blocking_loader(release))

    thread = renderer.load_in_background("slow.png")
    renderer.hover_enter()
    release.set()
    thread.join(timeout=5)
    scheduler.advance(0)

    assert renderer.state is RendererState.ANIMATING
    assert scheduler.pending == 1


def test_teardown_cancels_pending_frames_and_ignores_late_loads() -> None:
    scheduler = ManualFrameScheduler()
    renderer = _renderer(scheduler)
    renderer.load(_gradient())
    renderer.hover_enter()
    scheduler.advance(16)

    renderer.teardown()
    renderer.teardown()

    assert renderer.state is RendererState.UNLOADED
    assert scheduler.pending == 0
    assert renderer.grid is None

    release = threading.Event()
    renderer.loader = _blocking_loader(release)
    thread = renderer.load_in_background("late.png")
    renderer.teardown()
    release.set()
    thread.join(timeout=5)
    scheduler.advance(0)
    assert renderer.state is RendererState.UNLOADED


def test_invalid_configuration_fails_fast() -> None:
    with pytest.raises(InvalidConfigurationError):
        AsciiRenderer(ManualFrameScheduler(), config=RendererConfig(resolution=0))
    with pytest.raises(InvalidConfigurationError):
        AsciiRenderer(ManualFrameScheduler(), config=RendererConfig(settle_duration_ms=0))
    with pytest.raises(InvalidConfigurationError):
        AsciiRenderer(ManualFrameScheduler(), config=RendererConfig(char_set=""))


def test_render_reveal_frames_runs_to_completion() -> None:
    from ascii_reveal.glyphs import build_glyph_grid

    build = build_glyph_grid(_gradient(), CONFIG.resolution, CONFIG.char_set)
    frames = render_reveal_frames(build, CONFIG, fps=50, rng=np.random.default_rng(0))

    timestamps = [timestamp for timestamp, _ in frames]
    assert timestamps == sorted(timestamps)
    assert len(frames) == 10
    assert frames[-1][1].lines == build.grid.lines
    assert all(not frame.complete for _, frame in frames[:-1])


def test_all_transparent_image_reveal_changes_nothing() -> None:
    scheduler = ManualFrameScheduler()
    renderer = _renderer(scheduler)
    renderer.load(solid_image(8, 8, (0, 0, 0, 0), key="mem://clear"))

    renderer.hover_enter()

    assert renderer.state is RendererState.IDLE
    assert scheduler.pending == 0
    assert renderer.last_frame.lines == ("  ",)


def _png_bytes(width: int, height: int) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", (width, height), (200, 200, 200, 255)).save(buffer, format="PNG")
    return buffer.getvalue()


def test_oversized_image_in_background_load_fails_once(monkeypatch) -> None:
    payload = _png_bytes(400, 400)
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10_000)
    scheduler = ManualFrameScheduler()
    errors: List[BaseException] = []
    renderer = AsciiRenderer(scheduler, config=CONFIG, on_error=errors.append)

    thread = renderer.load_in_background(payload)
    thread.join(timeout=5)
    scheduler.advance(0)

    assert renderer.state is RendererState.FAILED
    assert len(errors) == 1
    assert isinstance(errors[0], ImageLoadError)
    assert renderer.surface() is None


def test_unexpected_loader_exception_becomes_load_error() -> None:
    scheduler = ManualFrameScheduler()
    errors: List[BaseException] = []

    def exploding(_source):
        raise RuntimeError("decoder crashed")

    renderer = _renderer(scheduler, loader=exploding, on_error=errors.append)

    assert renderer.load("a.png") is RendererState.FAILED
    thread = renderer.load_in_background("b.png")
    thread.join(timeout=5)
    scheduler.advance(0)

    assert renderer.state is RendererState.FAILED
    assert len(errors) == 2
    assert all(isinstance(error, ImageLoadError) for error in errors)
    assert isinstance(errors[0].__cause__, RuntimeError)


def test_hover_exit_from_frame_callback_leaves_nothing_scheduled() -> None:
    scheduler = ManualFrameScheduler()
    renderer = _renderer(scheduler)
    renderer.on_frame = lambda frame: renderer.hover_exit()
    renderer.load(_gradient())

    renderer.hover_enter()
    scheduler.advance(16)

    assert renderer.state is RendererState.IDLE
    assert scheduler.pending == 0
    scheduler.advance(500)
    assert renderer.state is RendererState.IDLE
