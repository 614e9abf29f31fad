"""
Pytest configuration and shared fixtures for img2ascii tests.
"""

import numpy as np
import pytest
from PIL import Image

from img2ascii.raster import RasterImage


@pytest.fixture
def rng():
    """
    Provide a seeded random generator so failures are reproducible.

    Returns:
        numpy Generator
    """
    return np.random.default_rng(1234)


@pytest.fixture
def random_image(rng):
    """
    Provide a 24x18 RGB image filled with random bytes.

    Returns:
        RasterImage
    """
    return RasterImage(rng.integers(0, 256, size=(18, 24, 3), dtype=np.uint8))


@pytest.fixture
def solid_image():
    """
    Provide a factory for single-color images.

    Returns:
        Callable (width, height, color) -> RasterImage
    """
    def make(width, height, color):
        data = np.empty((height, width, len(color)), dtype=np.uint8)
        data[:, :] = color
        return RasterImage(data)
    return make


@pytest.fixture
def png_path(tmp_path, rng):
    """
    Write a small random RGB PNG to a temporary directory.

    Returns:
        Path to the PNG file
    """
    path = tmp_path / "sample.png"
    pixels = rng.integers(0, 256, size=(40, 64, 3), dtype=np.uint8)
    Image.fromarray(pixels).save(path)
    return path
