"""Unified entrypoint for CLI and UI usage."""

from __future__ import annotations

import argparse
from pathlib import Path

from ascii_reveal.config import load_config
from ascii_reveal.main import main as cli_main
from ascii_reveal.ui.app import create_app


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="ASCII reveal launcher")
    subparsers = parser.add_subparsers(dest="command")

    ui_parser = subparsers.add_parser("ui", help="Launch the gallery web UI")
    ui_parser.add_argument("--host", default="127.0.0.1", help="UI host")
    ui_parser.add_argument("--port", type=int, default=5000, help="UI port")
    ui_parser.add_argument("--gallery-dir", type=Path, help="Directory of gallery images")
    ui_parser.add_argument("--config", type=Path, help="Optional JSON config path")
    ui_parser.add_argument("--debug", action="store_true", help="Enable Flask debug mode")

    cli_parser = subparsers.add_parser("cli", help="Run the ASCII renderer CLI")
    cli_parser.add_argument("cli_args", nargs=argparse.REMAINDER, help="Arguments passed to the CLI")

    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    if args.command in (None, "ui"):
        overrides = {}
        if getattr(args, "gallery_dir", None):
            overrides = {"site": {"gallery_dir": str(args.gallery_dir)}}
        config = load_config(getattr(args, "config", None), overrides)
        app = create_app(site=config.site, renderer=config.renderer)
        app.run(
            host=getattr(args, "host", "127.0.0.1"),
            port=getattr(args, "port", 5000),
            debug=bool(getattr(args, "debug", False)),
        )
        return

    if args.command == "cli":
        raise SystemExit(cli_main(args.cli_args))

    raise SystemExit(f"Unknown command: {args.command}")


if __name__ == "__main__":
    main()
