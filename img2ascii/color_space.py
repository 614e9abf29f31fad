#!/usr/bin/env python3
"""
Image to ASCII Art Converter - Color Space Conversion
=====================================================
Batch RGB -> HSV conversion with two interchangeable engines.

Both engines take an (N, 3) array of normalized RGB triples and return an
(N, 3) array of (hue, saturation, value) rows in the same order:

- hue in degrees [0, 360), 0 for achromatic pixels
- saturation and value in [0, 1]

When several channels share the maximum, red wins over green and green over
blue when picking the hue sector.
"""

import logging
import math
from typing import NamedTuple, Optional, Sequence, Union

import numpy as np

from img2ascii.constants import Backend


logger = logging.getLogger(__name__)

RgbBatch = Union[np.ndarray, Sequence[Sequence[float]]]


class HsvSample(NamedTuple):
    """One converted pixel."""
    h: float
    s: float
    v: float


def _as_batch(rgb: RgbBatch) -> np.ndarray:
    arr = np.asarray(rgb, dtype=np.float64)
    if arr.size == 0:
        return arr.reshape(0, 3)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ValueError(f"Expected an (N, 3) batch of RGB triples, got shape {arr.shape}")
    return arr


class ColorEngine:
    """Interface of an RGB -> HSV batch converter."""

    backend: Backend

    def convert_batch(self, rgb: RgbBatch) -> np.ndarray:
        raise NotImplementedError


class ReferenceColorEngine(ColorEngine):
    """Portable per-triple implementation."""

    backend = Backend.REFERENCE

    @staticmethod
    def convert_one(r: float, g: float, b: float) -> HsvSample:
        max_val = max(r, g, b)
        min_val = min(r, g, b)
        delta = max_val - min_val

        s = delta / max_val if max_val != 0.0 else 0.0

        if delta == 0.0:
            h = 0.0
        elif max_val == r:
            h = 60.0 * math.fmod((g - b) / delta + 6.0, 6.0)
        elif max_val == g:
            h = 60.0 * ((b - r) / delta + 2.0)
        else:
            h = 60.0 * ((r - g) / delta + 4.0)

        return HsvSample(h, s, max_val)

    def convert_batch(self, rgb: RgbBatch) -> np.ndarray:
        batch = _as_batch(rgb)
        out = np.empty_like(batch)
        for i, (r, g, b) in enumerate(batch.tolist()):
            out[i] = self.convert_one(r, g, b)
        return out


class AcceleratedColorEngine(ColorEngine):
    """Vectorized numpy implementation."""

    backend = Backend.ACCELERATED

    def convert_batch(self, rgb: RgbBatch) -> np.ndarray:
        batch = _as_batch(rgb)
        r, g, b = batch[:, 0], batch[:, 1], batch[:, 2]

        max_val = batch.max(axis=1)
        min_val = batch.min(axis=1)
        delta = max_val - min_val

        with np.errstate(divide='ignore', invalid='ignore'):
            s = np.where(max_val != 0.0, delta / max_val, 0.0)
            safe_delta = np.where(delta == 0.0, 1.0, delta)
            h_r = 60.0 * np.fmod((g - b) / safe_delta + 6.0, 6.0)
            h_g = 60.0 * ((b - r) / safe_delta + 2.0)
            h_b = 60.0 * ((r - g) / safe_delta + 4.0)

        # np.select picks the first matching condition: r, then g, then b
        h = np.select(
            [delta == 0.0, max_val == r, max_val == g],
            [0.0, h_r, h_g],
            default=h_b,
        )

        return np.stack([h, s, max_val], axis=1)


_ENGINES = {
    Backend.REFERENCE: ReferenceColorEngine,
    Backend.ACCELERATED: AcceleratedColorEngine,
}


def get_color_engine(backend: Union[Backend, str]) -> ColorEngine:
    """Instantiate the color engine for a backend."""
    if isinstance(backend, str):
        backend = Backend.from_name(backend)
    try:
        engine_cls = _ENGINES[backend]
    except KeyError:
        raise ValueError(f"Unknown color backend: {backend}") from None
    logger.debug("Using %s color engine", backend.value)
    return engine_cls()


def rgb_to_hsv(r: float, g: float, b: float,
               engine: Optional[ColorEngine] = None) -> HsvSample:
    """Convert a single normalized RGB triple (a batch of one)."""
    engine = engine or ReferenceColorEngine()
    h, s, v = engine.convert_batch([[r, g, b]])[0]
    return HsvSample(float(h), float(s), float(v))
