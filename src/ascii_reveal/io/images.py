"""Image source loading and saving."""

from __future__ import annotations

import hashlib
import io
from pathlib import Path
from typing import Iterable, List, Union

import numpy as np
import requests
from PIL import Image, UnidentifiedImageError

from ascii_reveal.data import SourceImage
from ascii_reveal.errors import ImageLoadError

ImageSource = Union[SourceImage, Image.Image, bytes, str, Path]

_FETCH_TIMEOUT_S = 10.0


def _is_url(source: object) -> bool:
    return isinstance(source, str) and source.lower().startswith(("http://", "https://"))


def source_key(source: ImageSource) -> str:
    """Return a stable cache key for an image reference."""

    if isinstance(source, SourceImage):
        return source.source_key or f"image:{id(source)}"
    if isinstance(source, bytes):
        return "sha1:" + hashlib.sha1(source).hexdigest()
    if isinstance(source, Image.Image):
        return f"pil:{id(source)}"
    if _is_url(source):
        return str(source)
    return str(Path(source).expanduser().resolve())


def _image_to_source(image: Image.Image, key: str) -> SourceImage:
    """Convert a PIL image to a straight-alpha RGBA SourceImage."""

    try:
        rgba = image.convert("RGBA")
        data = np.asarray(rgba)
    except (OSError, ValueError) as exc:
        raise ImageLoadError(f"Could not read pixels from {key}: {exc}") from exc
    return SourceImage.from_array(data, source_key=key)


def _decode(payload: bytes, key: str) -> SourceImage:
    try:
        with Image.open(io.BytesIO(payload)) as image:
            image.load()
            return _image_to_source(image, key)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, SyntaxError) as exc:
        raise ImageLoadError(f"Could not decode image {key}: {exc}") from exc


def _fetch(url: str) -> bytes:
    try:
        response = requests.get(url, timeout=_FETCH_TIMEOUT_S)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise ImageLoadError(f"Could not fetch {url}: {exc}") from exc
    return response.content


def load_source_image(source: ImageSource) -> SourceImage:
    """Load an image reference into a SourceImage.

    Accepts an already decoded SourceImage or PIL image, raw bytes, a
    filesystem path, or an http(s) URL. Every failure to obtain pixel data is
    reported as ImageLoadError.
    """

    if isinstance(source, SourceImage):
        return source
    key = source_key(source)
    if isinstance(source, Image.Image):
        return _image_to_source(source, key)
    if isinstance(source, bytes):
        return _decode(source, key)
    if _is_url(source):
        return _decode(_fetch(str(source)), key)

    path = Path(source).expanduser()
    try:
        payload = path.read_bytes()
    except OSError as exc:
        raise ImageLoadError(f"Could not read {path}: {exc}") from exc
    return _decode(payload, key)


def save_image(path: Path, image: Image.Image) -> None:
    """Save a rendered surface, creating parent directories."""

    path.parent.mkdir(parents=True, exist_ok=True)
    image.save(path)


def iter_gallery_images(directory: Path, extensions: Iterable[str]) -> List[Path]:
    """List gallery images in a deterministic order."""

    suffixes = {ext.lower() for ext in extensions}
    if not directory.exists():
        return []
    return [path for path in sorted(directory.iterdir()) if path.is_file() and path.suffix.lower() in suffixes]
