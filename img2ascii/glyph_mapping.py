#!/usr/bin/env python3
"""
Image to ASCII Art Converter - Glyph Mapping
============================================
This module turns a resampled image (plus optional hue and edge data) into
one GlyphCell per pixel.

Character selection, lowest to highest precedence:

1. brightness: gamma-corrected luminance quantized onto the density ramp
2. hue mode: the HSV value channel quantized onto the ramp, then the
   emphasis glyph for pixels accepted by the hue predicate
3. edge mode: a direction glyph for pixels whose edge magnitude exceeds
   the threshold
"""

import logging
import math
from typing import Callable, List, NamedTuple, Optional, Tuple

import numpy as np

from img2ascii.color_space import ColorEngine, ReferenceColorEngine
from img2ascii.constants import (
    CharacterSet, DIRECTION_CHARS, EDGE_THRESHOLD, EMPHASIS_CHAR, HUE_BAND,
    LUMINANCE_GAMMA, SATURATION_THRESHOLD,
)
from img2ascii.edge_detection import EdgeField
from img2ascii.raster import RasterImage


logger = logging.getLogger(__name__)

# (hue, saturation) arrays -> boolean mask of emphasized pixels
HuePredicate = Callable[[np.ndarray, np.ndarray], np.ndarray]


class GlyphCell(NamedTuple):
    """One output character with the color of its source pixel."""
    char: str
    r: int
    g: int
    b: int


class HueBandPredicate:
    """Accepts saturated pixels whose hue lies in a half-open band."""

    def __init__(self, band: Tuple[float, float] = HUE_BAND,
                 saturation_threshold: float = SATURATION_THRESHOLD):
        self.band = band
        self.saturation_threshold = saturation_threshold

    def __call__(self, hue: np.ndarray, saturation: np.ndarray) -> np.ndarray:
        low, high = self.band
        return (saturation > self.saturation_threshold) & (hue >= low) & (hue < high)


def direction_char(angle: float) -> str:
    """
    Glyph for an edge orientation in degrees.

    The angle is folded into [0, 180) before bucketing.
    """
    angle = math.fmod(angle, 180.0)
    if angle < 0:
        angle += 180.0

    if angle < 22.5 or angle >= 157.5:
        return DIRECTION_CHARS['horizontal']
    if angle < 67.5:
        return DIRECTION_CHARS['diagonal_up']
    if angle < 112.5:
        return DIRECTION_CHARS['vertical']
    return DIRECTION_CHARS['diagonal_down']


def quantize(values: np.ndarray, levels: int) -> np.ndarray:
    """Map [0, 1] values onto ramp indices, truncating."""
    idx = (np.clip(values, 0.0, 1.0) * (levels - 1)).astype(np.int64)
    return np.clip(idx, 0, levels - 1)


class GlyphMapper:
    """Chooses characters for every pixel of a resampled image."""

    def __init__(self,
                 charset: str = CharacterSet.DETAILED,
                 gamma: float = LUMINANCE_GAMMA,
                 edge_threshold: float = EDGE_THRESHOLD,
                 color_engine: Optional[ColorEngine] = None,
                 hue_predicate: Optional[HuePredicate] = None,
                 emphasis_char: str = EMPHASIS_CHAR):
        if not charset:
            raise ValueError("Character ramp must not be empty")
        self.charset = charset
        self.gamma = gamma
        self.edge_threshold = edge_threshold
        self.color_engine = color_engine or ReferenceColorEngine()
        self.hue_predicate = hue_predicate or HueBandPredicate()
        self.emphasis_char = emphasis_char

    def convert_hsv(self, image: RasterImage) -> np.ndarray:
        """(h * w, 3) HSV rows of an image, row-major."""
        return self.color_engine.convert_batch(image.rgb_normalized().reshape(-1, 3))

    def brightness_levels(self, image: RasterImage) -> np.ndarray:
        """Ramp index of every pixel from gamma-corrected luminance."""
        luma = np.power(image.luminance_map(), self.gamma)
        return quantize(luma, len(self.charset))

    def map(self, image: RasterImage,
            edges: Optional[EdgeField] = None,
            use_edges: bool = True,
            use_hue: bool = False,
            hsv: Optional[np.ndarray] = None) -> List[GlyphCell]:
        """
        Map an image to glyph cells.

        Args:
            image: Resampled image
            edges: Edge field of the same image, if edge mode is wanted
            use_edges: Apply direction glyphs where edges are strong
            use_hue: Use HSV value and the hue predicate
            hsv: Precomputed output of convert_hsv(image), optional

        Returns:
            Row-major list of width * height cells, empty if the image is invalid
        """
        if not image.is_valid():
            logger.warning("Glyph mapping skipped: invalid image %r", image)
            return []

        width, height = image.width, image.height
        ramp = np.array(list(self.charset))
        levels = len(self.charset)

        chars = ramp[self.brightness_levels(image)]

        if use_hue:
            if hsv is None:
                hsv = self.convert_hsv(image)
            hsv = hsv.reshape(height, width, 3)
            chars = ramp[quantize(hsv[:, :, 2], levels)]
            emphasized = self.hue_predicate(hsv[:, :, 0], hsv[:, :, 1])
            chars[emphasized] = self.emphasis_char

        if use_edges and edges is not None and edges.is_valid():
            strong = self._edge_mask(edges, width, height)
            for y, x in zip(*np.nonzero(strong)):
                chars[y, x] = direction_char(float(edges.angle[y, x]))

        rows = chars.tolist()
        colors = image.rgb_array().tolist()
        return [
            GlyphCell(rows[y][x], *colors[y][x])
            for y in range(height)
            for x in range(width)
        ]

    def _edge_mask(self, edges: EdgeField, width: int, height: int) -> np.ndarray:
        # Pixels outside the field count as no edge
        mask = np.zeros((height, width), dtype=bool)
        h = min(height, edges.height)
        w = min(width, edges.width)
        mask[:h, :w] = edges.magnitude[:h, :w] > self.edge_threshold
        return mask

    @staticmethod
    def to_lines(cells: List[GlyphCell], width: int) -> List[str]:
        """Join cells into text rows."""
        if width <= 0:
            return []
        return [
            ''.join(cell.char for cell in cells[i:i + width])
            for i in range(0, len(cells), width)
        ]
