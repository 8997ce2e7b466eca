from __future__ import annotations

from typing import Tuple

import numpy as np
import pytest

from ascii_reveal.data import GlyphGrid, SourceImage


def solid_image(width: int, height: int, rgba: Tuple[int, int, int, int], key: str = "") -> SourceImage:
    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[...] = rgba
    return SourceImage.from_array(pixels, source_key=key)


@pytest.fixture
def mixed_grid() -> GlyphGrid:
    return GlyphGrid(cols=4, rows=3, lines=("@@ @", " :: ", "i  8"))


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)
