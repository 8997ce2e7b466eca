import io
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from ascii_reveal.config import RendererConfig, SiteConfig
from ascii_reveal.errors import PaymentProviderError
from ascii_reveal.shop import CheckoutSession
from ascii_reveal.ui.app import create_app


class FakeSessionService:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail

    def create_session(self, request, success_url, cancel_url):
        if self.fail:
            raise PaymentProviderError("card declined")
        return CheckoutSession(session_id="cs_42", redirect_url="https://pay.example.com/cs_42")


@pytest.fixture
def gallery(tmp_path: Path) -> Path:
    Image.new("RGBA", (32, 24), (128, 128, 128, 255)).save(tmp_path / "gray.png")
    noise = np.random.default_rng(3).integers(64, 256, size=(64, 64, 3), dtype=np.uint8)
    Image.fromarray(noise).save(tmp_path / "noise.png")
    (tmp_path / "broken.png").write_bytes(b"garbage")
    return tmp_path


def _client(gallery: Path, service=None):
    app = create_app(
        site=SiteConfig(gallery_dir=gallery, site_url="https://shop.example"),
        renderer=RendererConfig(resolution=4, settle_duration_ms=100.0, fps=20),
        checkout_service=service,
    )
    app.config["TESTING"] = True
    return app.test_client()


def test_index_lists_gallery_images(gallery: Path) -> None:
    response = _client(gallery).get("/")

    assert response.status_code == 200
    assert b"gray.png" in response.data
    assert b'data-reveal="/reveal/gray.png.json"' in response.data
    assert b"if (!reveal)" not in response.data


def test_grid_text_and_overlay(gallery: Path) -> None:
    client = _client(gallery)

    text = client.get("/ascii/gray.png.txt")
    assert text.status_code == 200
    lines = text.get_data(as_text=True).split("\n")
    assert len(lines) == 3 and all(len(line) == 8 for line in lines)

    overlay = client.get("/ascii/gray.png.png")
    assert overlay.status_code == 200
    assert Image.open(io.BytesIO(overlay.data)).size == (32, 24)


def test_reveal_frames_end_on_grid(gallery: Path) -> None:
    client = _client(gallery)
    grid = client.get("/ascii/gray.png.txt").get_data(as_text=True)

    payload = client.get("/reveal/gray.png.json").get_json()

    assert payload["fps"] == 20
    assert (payload["width"], payload["height"]) == (32, 24)
    assert payload["frames"][-1]["text"] == grid
    assert len(payload["frames"]) == 2


def test_reveal_rejects_bad_fps(gallery: Path) -> None:
    assert _client(gallery).get("/reveal/gray.png.json?fps=0").status_code == 400


def test_unknown_and_undecodable_images_are_404(gallery: Path) -> None:
    client = _client(gallery)

    assert client.get("/ascii/missing.png.txt").status_code == 404
    assert client.get("/ascii/broken.png.txt").status_code == 404


def test_checkout_flow(gallery: Path) -> None:
    client = _client(gallery, FakeSessionService())

    ok = client.post("/api/checkout", json={"productId": "p1", "title": "Print", "price": 25})
    assert ok.status_code == 200
    assert ok.get_json() == {"sessionId": "cs_42", "url": "https://pay.example.com/cs_42"}

    bad = client.post("/api/checkout", json={"title": "Print"})
    assert bad.status_code == 400


def test_checkout_provider_failure_and_missing_service(gallery: Path) -> None:
    failing = _client(gallery, FakeSessionService(fail=True))
    assert failing.post("/api/checkout", json={"productId": "p", "title": "t", "price": 1}).status_code == 502

    unconfigured = _client(gallery)
    assert unconfigured.post("/api/checkout", json={"productId": "p", "title": "t", "price": 1}).status_code == 503


def test_each_reveal_request_is_a_new_shuffle(gallery: Path) -> None:
    client = _client(gallery)

    first = client.get("/reveal/noise.png.json?fps=100")
    second = client.get("/reveal/noise.png.json?fps=100")

    assert first.headers["Cache-Control"] == "no-store"
    first_frames = [frame["text"] for frame in first.get_json()["frames"]]
    second_frames = [frame["text"] for frame in second.get_json()["frames"]]
    assert len(first_frames) == len(second_frames) == 10
    assert first_frames[-1] == second_frames[-1]
    assert first_frames[:-1] != second_frames[:-1]


def test_checkout_cancel_returns_to_gallery(gallery: Path) -> None:
    response = _client(gallery).get("/checkout/cancel")

    assert response.status_code == 302
    assert response.headers["Location"].endswith("/")
