"""Flask gallery UI serving images, ASCII overlays and reveal frames."""

from __future__ import annotations

import io
import sys
import threading
from pathlib import Path
from typing import Dict, List, Optional

from flask import Flask, abort, jsonify, redirect, render_template, request, send_file, url_for

from ascii_reveal.compositor import render_surface
from ascii_reveal.config import RendererConfig, SiteConfig
from ascii_reveal.data import GridBuild
from ascii_reveal.errors import CheckoutValidationError, ImageLoadError, PaymentProviderError
from ascii_reveal.glyphs import build_glyph_grid
from ascii_reveal.io import iter_gallery_images, load_source_image
from ascii_reveal.renderer import render_reveal_frames
from ascii_reveal.shop import PaymentSessionService, create_checkout

_MAX_FPS = 120


class GalleryStore:
    """Per-image grid cache shared by request threads."""

    def __init__(self, site: SiteConfig, renderer: RendererConfig) -> None:
        self.site = site
        self.renderer = renderer
        self.lock = threading.Lock()
        self._builds: Dict[str, GridBuild] = {}

    def images(self) -> List[Path]:
        if not self.site.gallery_dir:
            return []
        return iter_gallery_images(self.site.gallery_dir, self.site.image_extensions)

    def find(self, name: str) -> Path:
        for path in self.images():
            if path.name == name:
                return path
        abort(404)

    def build(self, name: str) -> GridBuild:
        with self.lock:
            cached = self._builds.get(name)
        if cached is not None:
            return cached
        image = load_source_image(self.find(name))
        build = build_glyph_grid(image, self.renderer.resolution, self.renderer.char_set)
        with self.lock:
            self._builds.setdefault(name, build)
            return self._builds[name]


def create_app(
    site: Optional[SiteConfig] = None,
    renderer: Optional[RendererConfig] = None,
    checkout_service: Optional[PaymentSessionService] = None,
) -> Flask:
    site = site or SiteConfig()
    renderer = (renderer or RendererConfig()).validate()
    store = GalleryStore(site, renderer)
    app = Flask(__name__)
    app.config["GALLERY_STORE"] = store

    def _build_or_404(name: str) -> GridBuild:
        try:
            return store.build(name)
        except ImageLoadError as exc:
            # The page falls back to the plain image.
            print(f"ASCII overlay unavailable for {name}: {exc}", file=sys.stderr)
            abort(404)

    @app.route("/")
    def index() -> str:
        names = [path.name for path in store.images()]
        return render_template("index.html", images=names, fps=renderer.fps)

    @app.route("/images/<name>")
    def image(name: str):
        return send_file(store.find(name))

    @app.route("/ascii/<name>.txt")
    def grid_text(name: str):
        build = _build_or_404(name)
        return build.grid.to_text(), 200, {"Content-Type": "text/plain; charset=utf-8"}

    @app.route("/ascii/<name>.png")
    def overlay(name: str):
        build = _build_or_404(name)
        surface = render_surface(
            build.grid,
            build.source_width,
            build.source_height,
            foreground=renderer.foreground,
            background=renderer.background,
        )
        buffer = io.BytesIO()
        surface.save(buffer, format="PNG")
        buffer.seek(0)
        return send_file(buffer, mimetype="image/png")

    @app.route("/reveal/<name>.json")
    def reveal(name: str):
        fps = request.args.get("fps", default=renderer.fps, type=int)
        if fps is None or not 0 < fps <= _MAX_FPS:
            return jsonify({"error": f"fps must be between 1 and {_MAX_FPS}"}), 400
        build = _build_or_404(name)
        frames = render_reveal_frames(build, renderer, fps=fps)
        payload = {
            "cols": build.grid.cols,
            "rows": build.grid.rows,
            "width": build.source_width,
            "height": build.source_height,
            "fps": fps,
            "frames": [{"t": timestamp, "text": frame.to_text()} for timestamp, frame in frames],
        }
        response = jsonify(payload)
        # Every request is a new shuffle.
        response.headers["Cache-Control"] = "no-store"
        return response

    @app.route("/api/checkout", methods=["POST"])
    def checkout():
        if checkout_service is None:
            return jsonify({"error": "Checkout is not configured"}), 503
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({"error": "Expected a JSON object"}), 400
        try:
            session = create_checkout(payload, checkout_service, site.site_url)
        except CheckoutValidationError as exc:
            return jsonify({"error": str(exc)}), 400
        except PaymentProviderError as exc:
            print(f"Checkout error: {exc}", file=sys.stderr)
            return jsonify({"error": "Failed to create checkout session"}), 502
        return jsonify(session.to_json())

    @app.route("/checkout/success")
    def checkout_success():
        return jsonify({"sessionId": request.args.get("session_id")})

    @app.route("/checkout/cancel")
    def checkout_cancel():
        return redirect(url_for("index"))

    return app
