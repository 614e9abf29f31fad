#!/usr/bin/env python3
"""
Image to ASCII Art Converter - Raster Images
============================================
This module contains the RasterImage container and the Pillow decoder boundary.

A RasterImage owns one read-only uint8 buffer of shape (height, width, channels).
It is never duplicated implicitly: copying raises, and ownership is handed to
another holder with ``release()``.
"""

import logging
import os
from typing import Optional, Tuple, Union

import numpy as np
from PIL import Image

from img2ascii.constants import LUMA_WEIGHTS


logger = logging.getLogger(__name__)

_MODES_BY_CHANNELS = {1: 'L', 2: 'LA', 3: 'RGB', 4: 'RGBA'}


class RasterImage:
    """Decoded raster buffer with bounds-checked pixel queries."""

    __slots__ = ('_data',)

    def __init__(self, data: Optional[np.ndarray] = None):
        """
        Wrap a decoded pixel buffer.

        Args:
            data: uint8 array of shape (h, w) or (h, w, c) with 1 <= c <= 4,
                  or None for an empty image. The array is taken over, not
                  copied, and marked read-only.

        Raises:
            ValueError: If the array has an unsupported shape or dtype
        """
        if data is not None:
            data = np.asarray(data)
            if data.dtype != np.uint8:
                raise ValueError(f"Expected uint8 samples, got {data.dtype}")
            if data.ndim == 2:
                data = data[:, :, np.newaxis]
            if data.ndim != 3 or not 1 <= data.shape[2] <= 4:
                raise ValueError(f"Unsupported raster shape: {data.shape}")
            data = np.ascontiguousarray(data)
            data.flags.writeable = False
        self._data = data

    @classmethod
    def empty(cls) -> 'RasterImage':
        """Invalid image used to signal failure."""
        return cls(None)

    @classmethod
    def from_pil(cls, image: Image.Image, channels: int = 3) -> 'RasterImage':
        """
        Build a raster from a PIL image.

        Args:
            image: Decoded PIL image
            channels: Desired channel count (1-4), or 0 to keep the image's own
                      layout when it maps to one

        Returns:
            RasterImage holding a copy of the pixel data
        """
        if channels == 0:
            mode = image.mode if image.mode in _MODES_BY_CHANNELS.values() else 'RGB'
        elif channels in _MODES_BY_CHANNELS:
            mode = _MODES_BY_CHANNELS[channels]
        else:
            raise ValueError(f"Unsupported channel count: {channels}")

        if image.mode != mode:
            image = image.convert(mode)
        return cls(np.array(image, dtype=np.uint8))

    # -------------------------------------------------------------------------
    # Ownership
    # -------------------------------------------------------------------------

    def __copy__(self):
        raise TypeError("RasterImage cannot be copied; use release() to transfer it")

    def __deepcopy__(self, memo):
        raise TypeError("RasterImage cannot be copied; use release() to transfer it")

    def release(self) -> 'RasterImage':
        """Transfer the buffer to a new holder, leaving this image empty."""
        moved = RasterImage.__new__(RasterImage)
        moved._data = self._data
        self._data = None
        return moved

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def data(self) -> Optional[np.ndarray]:
        return self._data

    @property
    def width(self) -> int:
        return 0 if self._data is None else self._data.shape[1]

    @property
    def height(self) -> int:
        return 0 if self._data is None else self._data.shape[0]

    @property
    def channels(self) -> int:
        return 0 if self._data is None else self._data.shape[2]

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def is_valid(self) -> bool:
        return self._data is not None and self.width > 0 and self.height > 0

    def byte_size(self) -> int:
        if not self.is_valid():
            return 0
        return self.width * self.height * self.channels

    def __repr__(self) -> str:
        return f"RasterImage(width={self.width}, height={self.height}, channels={self.channels})"

    # -------------------------------------------------------------------------
    # Pixel queries
    # -------------------------------------------------------------------------

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def pixel_rgb(self, x: int, y: int) -> Tuple[int, int, int]:
        """RGB bytes at (x, y); zeros when out of bounds or fewer than 3 channels."""
        if not self.is_valid() or not self.in_bounds(x, y) or self.channels < 3:
            return (0, 0, 0)
        r, g, b = self._data[y, x, :3]
        return int(r), int(g), int(b)

    def pixel_rgba(self, x: int, y: int) -> Tuple[int, int, int, int]:
        """RGBA bytes at (x, y); missing channels read as 0 and alpha as 255."""
        if not self.is_valid() or not self.in_bounds(x, y):
            return (0, 0, 0, 255)
        px = self._data[y, x]
        r = int(px[0])
        g = int(px[1]) if self.channels >= 2 else 0
        b = int(px[2]) if self.channels >= 3 else 0
        a = int(px[3]) if self.channels >= 4 else 255
        return r, g, b, a

    def pixel_rgb_normalized(self, x: int, y: int) -> Tuple[float, float, float]:
        """Display color at (x, y) scaled to [0, 1]."""
        r, g, b = self.color_at(x, y)
        return r / 255.0, g / 255.0, b / 255.0

    def color_at(self, x: int, y: int) -> Tuple[int, int, int]:
        """
        Display color at (x, y).

        Gray and gray+alpha images report their first channel as R, G and B.
        """
        if not self.is_valid() or not self.in_bounds(x, y):
            return (0, 0, 0)
        if self.channels < 3:
            gray = int(self._data[y, x, 0])
            return gray, gray, gray
        r, g, b = self._data[y, x, :3]
        return int(r), int(g), int(b)

    def luminance(self, x: int, y: int) -> float:
        """Perceptual luminance in [0, 1]; 0 outside the image."""
        if not self.is_valid() or not self.in_bounds(x, y):
            return 0.0
        r, g, b = self.pixel_rgb_normalized(x, y)
        return LUMA_WEIGHTS[0] * r + LUMA_WEIGHTS[1] * g + LUMA_WEIGHTS[2] * b

    # -------------------------------------------------------------------------
    # Whole-image views
    # -------------------------------------------------------------------------

    def rgb_array(self) -> np.ndarray:
        """(h, w, 3) uint8 color array, gray channels expanded to RGB."""
        if not self.is_valid():
            return np.zeros((0, 0, 3), dtype=np.uint8)
        if self.channels < 3:
            return np.repeat(self._data[:, :, :1], 3, axis=2)
        return self._data[:, :, :3]

    def rgb_normalized(self) -> np.ndarray:
        """(h, w, 3) float64 color array scaled to [0, 1]."""
        return self.rgb_array().astype(np.float64) / 255.0

    def luminance_map(self) -> np.ndarray:
        """(h, w) float64 luminance of every pixel."""
        rgb = self.rgb_normalized()
        return (LUMA_WEIGHTS[0] * rgb[:, :, 0]
                + LUMA_WEIGHTS[1] * rgb[:, :, 1]
                + LUMA_WEIGHTS[2] * rgb[:, :, 2])


# =============================================================================
# DECODER BOUNDARY
# =============================================================================

def load_image(path: Union[str, os.PathLike], channels: int = 3) -> RasterImage:
    """
    Decode an image file with Pillow.

    Args:
        path: Image file path (any format Pillow can read)
        channels: Desired channel count, 0 to keep the file's own layout

    Returns:
        Decoded RasterImage, or an empty one if the file is missing or unreadable
    """
    if not os.path.isfile(path):
        logger.warning("Image file does not exist: %s", path)
        return RasterImage.empty()

    try:
        with Image.open(path) as image:
            raster = RasterImage.from_pil(image, channels)
    except OSError as e:
        logger.warning("Cannot decode image %s: %s", path, e)
        return RasterImage.empty()

    logger.info("Loaded image %s (%dx%d, %d channels)",
                path, raster.width, raster.height, raster.channels)
    return raster
