"""Configuration schema and loading utilities."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ascii_reveal.errors import InvalidConfigurationError

# Darkest first: space for black, "@" for white.
DEFAULT_CHAR_SET = " .,:-;i1tfLCG08@"
DEFAULT_SCRAMBLE_EXTRA = "!#$%&*+=?/\\|<>^~[]{}()_'\"`"

Color = Tuple[int, int, int, int]


@dataclass(frozen=True)
class RendererConfig:
    """Grid building and reveal animation settings."""

    resolution: int = 4
    char_set: str = DEFAULT_CHAR_SET
    settle_duration_ms: float = 2000.0
    scramble_extra: str = DEFAULT_SCRAMBLE_EXTRA
    fps: int = 60
    foreground: Color = (255, 255, 255, 255)
    background: Color = (0, 0, 0, 0)

    def validate(self) -> "RendererConfig":
        """Reject out-of-range values instead of clamping them."""

        if isinstance(self.resolution, bool) or not isinstance(self.resolution, int) or self.resolution <= 0:
            raise InvalidConfigurationError(f"resolution must be a positive integer, got {self.resolution!r}.")
        if not self.char_set:
            raise InvalidConfigurationError("char_set must contain at least one character.")
        if not self.settle_duration_ms > 0:
            raise InvalidConfigurationError(
                f"settle_duration_ms must be positive, got {self.settle_duration_ms!r}."
            )
        if self.fps <= 0:
            raise InvalidConfigurationError(f"fps must be positive, got {self.fps!r}.")
        for name in ("foreground", "background"):
            color = getattr(self, name)
            if len(color) != 4 or any(not 0 <= channel <= 255 for channel in color):
                raise InvalidConfigurationError(f"{name} must be an RGBA tuple in 0..255, got {color!r}.")
        return self


@dataclass(frozen=True)
class SiteConfig:
    """Gallery/shop UI settings."""

    gallery_dir: Optional[Path] = None
    image_extensions: List[str] = field(default_factory=lambda: [".png", ".jpg", ".jpeg", ".webp", ".gif"])
    site_url: str = "http://127.0.0.1:5000"
    currency: str = "usd"


@dataclass(frozen=True)
class Config:
    """Top-level configuration."""

    renderer: RendererConfig = field(default_factory=RendererConfig)
    site: SiteConfig = field(default_factory=SiteConfig)


def _merge_dict(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge overrides into base without mutating either input."""

    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_dict(merged[key], value)
        else:
            merged[key] = value
    return merged


def _color(value: Any, name: str) -> Color:
    try:
        channels = tuple(int(channel) for channel in value)
    except (TypeError, ValueError) as exc:
        raise InvalidConfigurationError(f"{name} must be a sequence of four integers.") from exc
    if len(channels) != 4:
        raise InvalidConfigurationError(f"{name} must have four channels, got {len(channels)}.")
    return channels  # type: ignore[return-value]


def load_config(path: Optional[Path], overrides: Optional[Dict[str, Any]] = None) -> Config:
    """Load configuration from JSON, apply overrides, and validate."""

    base = {
        "renderer": {
            "resolution": 4,
            "char_set": DEFAULT_CHAR_SET,
            "settle_duration_ms": 2000.0,
            "scramble_extra": DEFAULT_SCRAMBLE_EXTRA,
            "fps": 60,
            "foreground": [255, 255, 255, 255],
            "background": [0, 0, 0, 0],
        },
        "site": {
            "gallery_dir": None,
            "image_extensions": [".png", ".jpg", ".jpeg", ".webp", ".gif"],
            "site_url": "http://127.0.0.1:5000",
            "currency": "usd",
        },
    }

    if path:
        raw = json.loads(Path(path).read_text())
        merged = _merge_dict(base, raw)
    else:
        merged = base
    if overrides:
        merged = _merge_dict(merged, overrides)

    renderer_raw = merged["renderer"]
    site_raw = merged["site"]
    resolution = renderer_raw.get("resolution", 4)
    if isinstance(resolution, float) and resolution.is_integer():
        resolution = int(resolution)

    renderer = RendererConfig(
        resolution=resolution,
        char_set=str(renderer_raw.get("char_set", DEFAULT_CHAR_SET)),
        settle_duration_ms=float(renderer_raw.get("settle_duration_ms", 2000.0)),
        scramble_extra=str(renderer_raw.get("scramble_extra", DEFAULT_SCRAMBLE_EXTRA)),
        fps=int(renderer_raw.get("fps", 60)),
        foreground=_color(renderer_raw.get("foreground", [255, 255, 255, 255]), "foreground"),
        background=_color(renderer_raw.get("background", [0, 0, 0, 0]), "background"),
    ).validate()

    site = SiteConfig(
        gallery_dir=Path(site_raw["gallery_dir"]) if site_raw.get("gallery_dir") else None,
        image_extensions=[ext.lower() for ext in site_raw.get("image_extensions", [])],
        site_url=str(site_raw.get("site_url", "http://127.0.0.1:5000")).rstrip("/"),
        currency=str(site_raw.get("currency", "usd")).lower(),
    )
    return Config(renderer=renderer, site=site)
