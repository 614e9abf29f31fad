#!/usr/bin/env python3
"""
Image to ASCII Art Converter - Resampling
=========================================
Bilinear resampling of a RasterImage onto the character grid.

Cells whose source coordinate lands within one pixel of the far right or
bottom edge have no complete interpolation quad and are left as background
(all channels zero).
"""

import logging
from typing import Tuple

import numpy as np

from img2ascii.constants import VERTICAL_COMPENSATION
from img2ascii.raster import RasterImage


logger = logging.getLogger(__name__)

# Absorbs the round-off of the /255 -> *255 round trip so exact byte values
# survive truncation.
_TRUNCATE_EPSILON = 1e-6


def fit_dimensions(width: int, height: int,
                   vertical_compensation: float = VERTICAL_COMPENSATION) -> Tuple[int, int]:
    """Grid size to sample for a requested output size in character cells."""
    return width, int(height * vertical_compensation)


def resample(src: RasterImage, target_width: int, target_height: int) -> RasterImage:
    """
    Resample an image with bilinear interpolation.

    Args:
        src: Source image
        target_width: Output width in pixels
        target_height: Output height in pixels

    Returns:
        New RasterImage with the source's channel count, or an empty image if
        the source is invalid or a target dimension is not positive
    """
    if not src.is_valid() or target_width <= 0 or target_height <= 0:
        logger.warning("Cannot resample %r to %dx%d", src, target_width, target_height)
        return RasterImage.empty()

    w, h = src.width, src.height
    scale_x = w / target_width
    scale_y = h / target_height

    src_x = np.arange(target_width, dtype=np.float64) * scale_x
    src_y = np.arange(target_height, dtype=np.float64) * scale_y

    # Background band along the far edges
    valid_x = src_x < w - 1
    valid_y = src_y < h - 1

    x0 = np.clip(src_x.astype(np.int64), 0, max(w - 2, 0))
    y0 = np.clip(src_y.astype(np.int64), 0, max(h - 2, 0))
    x1 = np.minimum(x0 + 1, w - 1)
    y1 = np.minimum(y0 + 1, h - 1)

    fx = np.clip(src_x - x0, 0.0, 1.0)[np.newaxis, :, np.newaxis]
    fy = np.clip(src_y - y0, 0.0, 1.0)[:, np.newaxis, np.newaxis]

    samples = src.data.astype(np.float64) / 255.0
    v00 = samples[y0[:, None], x0[None, :]]
    v10 = samples[y0[:, None], x1[None, :]]
    v01 = samples[y1[:, None], x0[None, :]]
    v11 = samples[y1[:, None], x1[None, :]]

    top = v00 * (1 - fx) + v10 * fx
    bottom = v01 * (1 - fx) + v11 * fx
    blended = top * (1 - fy) + bottom * fy

    out = np.floor(blended * 255.0 + _TRUNCATE_EPSILON)
    out = np.clip(out, 0, 255).astype(np.uint8)
    out[~(valid_y[:, None] & valid_x[None, :])] = 0

    logger.debug("Resampled %dx%d -> %dx%d", w, h, target_width, target_height)
    return RasterImage(out)
