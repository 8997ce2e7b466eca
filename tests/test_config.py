import json
from pathlib import Path

import pytest

from ascii_reveal.config import DEFAULT_CHAR_SET, RendererConfig, load_config
from ascii_reveal.errors import InvalidConfigurationError


def test_defaults() -> None:
    config = load_config(None)

    assert config.renderer == RendererConfig()
    assert config.renderer.resolution == 4
    assert config.renderer.char_set == DEFAULT_CHAR_SET
    assert config.renderer.settle_duration_ms == 2000.0
    assert config.site.gallery_dir is None


def test_file_values_merge_over_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"renderer": {"resolution": 8}, "site": {"gallery_dir": "photos"}}))

    config = load_config(path)

    assert config.renderer.resolution == 8
    assert config.renderer.settle_duration_ms == 2000.0
    assert config.site.gallery_dir == Path("photos")


def test_overrides_win_over_file(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"renderer": {"resolution": 8, "char_set": " #"}}))

    config = load_config(path, {"renderer": {"resolution": 12}})

    assert config.renderer.resolution == 12
    assert config.renderer.char_set == " #"


@pytest.mark.parametrize(
    "renderer",
    [
        {"resolution": 0},
        {"resolution": 2.5},
        {"char_set": ""},
        {"settle_duration_ms": 0},
        {"settle_duration_ms": -1},
        {"foreground": [255, 255, 255]},
    ],
)
def test_invalid_values_are_rejected_not_clamped(renderer) -> None:
    with pytest.raises(InvalidConfigurationError):
        load_config(None, {"renderer": renderer})
