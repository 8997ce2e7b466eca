"""Command-line entry point: render a grid, an overlay and a reveal animation."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List

import numpy as np
from PIL import Image

from ascii_reveal.compositor import render_surface
from ascii_reveal.config import RendererConfig, load_config
from ascii_reveal.diagnostics import FrameTracker, Timer
from ascii_reveal.errors import ImageLoadError, InvalidConfigurationError
from ascii_reveal.glyphs import build_glyph_grid
from ascii_reveal.io import load_source_image, save_image
from ascii_reveal.renderer import AsciiRenderer, RendererState, render_reveal_frames
from ascii_reveal.scheduler import RealtimeFrameScheduler


def _parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="ASCII art reveal renderer")
    parser.add_argument("--image", required=True, help="Image path or http(s) URL")
    parser.add_argument("--output-dir", type=Path, help="Directory for grid.txt, overlay.png and reveal.gif")
    parser.add_argument("--config", type=Path, help="Optional JSON config path")
    parser.add_argument("--resolution", type=int, help="Source pixels per glyph cell")
    parser.add_argument("--charset", type=str, help="Glyph ramp, darkest first")
    parser.add_argument("--settle-ms", type=float, help="Reveal duration in milliseconds")
    parser.add_argument("--fps", type=int, help="Frames per second for the reveal")
    parser.add_argument("--seed", type=int, help="Seed for the reveal order and scramble glyphs")
    parser.add_argument("--no-gif", action="store_true", help="Skip writing reveal.gif")
    parser.add_argument("--play", action="store_true", help="Play the reveal in the terminal")
    parser.add_argument("--enable-profiling", action="store_true", help="Record per-frame timings")
    parser.add_argument("--profile-output", type=Path, help="Write frame timings to JSON/CSV")
    return parser.parse_args(argv)


def _overrides(args: argparse.Namespace) -> Dict[str, Any]:
    renderer: Dict[str, Any] = {}
    if args.resolution is not None:
        renderer["resolution"] = args.resolution
    if args.charset is not None:
        renderer["char_set"] = args.charset
    if args.settle_ms is not None:
        renderer["settle_duration_ms"] = args.settle_ms
    if args.fps is not None:
        renderer["fps"] = args.fps
    return {"renderer": renderer} if renderer else {}


def _play(source: str, config: RendererConfig, rng: np.random.Generator) -> None:
    """Animate the reveal in the terminal as if the pointer had entered."""

    scheduler = RealtimeFrameScheduler(fps=config.fps)

    def draw(frame) -> None:
        sys.stdout.write("\x1b[H\x1b[2J" + frame.to_text() + "\n")
        sys.stdout.flush()

    renderer = AsciiRenderer(scheduler, config=config, rng=rng, on_frame=draw)
    renderer.hover_enter()
    renderer.load_in_background(source)
    scheduler.run(
        until=lambda: renderer.state in (RendererState.IDLE, RendererState.FAILED),
        timeout_s=config.settle_duration_ms / 1000.0 + 30.0,
    )
    renderer.teardown()


def _write_outputs(args: argparse.Namespace, config: RendererConfig, rng: np.random.Generator) -> None:
    output_dir: Path = args.output_dir
    output_dir.mkdir(parents=True, exist_ok=True)
    image = load_source_image(args.image)
    print(f"Source size: {image.width}x{image.height}")

    with Timer() as grid_timer:
        build = build_glyph_grid(image, config.resolution, config.char_set)
    grid = build.grid
    print(f"Grid: {grid.cols}x{grid.rows} cells ({len(grid.non_blank_indices())} visible) in {grid_timer.elapsed*1000:.2f} ms")

    (output_dir / "grid.txt").write_text(grid.to_text() + "\n", encoding="utf-8")
    overlay = render_surface(grid, build.source_width, build.source_height, config.foreground, config.background)
    save_image(output_dir / "overlay.png", overlay)

    if args.no_gif and not (args.enable_profiling or args.profile_output):
        return

    tracker = FrameTracker(
        enable_profiling=bool(args.enable_profiling or args.profile_output),
        profile_output=args.profile_output or (output_dir / "profile.json" if args.enable_profiling else None),
    )
    frames = render_reveal_frames(build, config, rng=rng)
    surfaces: List[Image.Image] = []
    for timestamp, frame in frames:
        with Timer() as frame_timer:
            surface = render_surface(frame, build.source_width, build.source_height, config.foreground, config.background)
        tracker.track_frame(frame, timestamp, frame_timer.elapsed)
        surfaces.append(surface)
    tracker.export()
    print(f"Reveal: {len(frames)} frames at {config.fps} fps")

    if not args.no_gif and surfaces:
        # GIF frame durations are whole milliseconds.
        duration = max(1, round(1000 / config.fps))
        base = Image.new("RGBA", surfaces[0].size, (0, 0, 0, 255))
        gif_frames = [Image.alpha_composite(base, surface).convert("P") for surface in surfaces]
        gif_frames[0].save(
            output_dir / "reveal.gif",
            save_all=True,
            append_images=gif_frames[1:],
            duration=duration,
            loop=0,
        )
        print(f"Wrote {output_dir / 'reveal.gif'}")


def main(argv: List[str] | None = None) -> int:
    args = _parse_args(argv)
    try:
        config = load_config(args.config, _overrides(args)).renderer
    except InvalidConfigurationError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2
    rng = np.random.default_rng(args.seed)

    try:
        if args.output_dir:
            _write_outputs(args, config, rng)
        if args.play:
            _play(args.image, config, rng)
        if not args.output_dir and not args.play:
            image = load_source_image(args.image)
            print(build_glyph_grid(image, config.resolution, config.char_set).grid.to_text())
    except ImageLoadError as exc:
        print(f"Could not load image: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
