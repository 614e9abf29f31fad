#!/usr/bin/env python3
"""
Image to ASCII Art Converter - Edge Detection
=============================================
This module contains the EdgeDetector class for Sobel edge detection.

Interior rows are split into contiguous row-blocks and handed to a thread
pool. Every worker writes only its own rows of the magnitude and angle
arrays; normalization by the image-wide maximum runs after all workers have
joined, so the result does not depend on the number of workers.

Angles follow the legacy fold: ``atan2`` in degrees, plus 180 when negative.
The field therefore holds undirected orientation in [0, 180] rather than a
full direction.
"""

import logging
import math
import os
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Tuple, Union

import numpy as np
from scipy import ndimage

from img2ascii.constants import Backend, DEFAULT_BLOCK_SIZE, MAX_THREADS
from img2ascii.raster import RasterImage


logger = logging.getLogger(__name__)

SOBEL_X = np.array([[-1, 0, 1], [-2, 0, 2], [-1, 0, 1]], dtype=np.float64)
SOBEL_Y = np.array([[-1, -2, -1], [0, 0, 0], [1, 2, 1]], dtype=np.float64)


# =============================================================================
# EDGE FIELD
# =============================================================================

class EdgeField:
    """Per-pixel edge magnitude (normalized) and orientation (degrees)."""

    __slots__ = ('magnitude', 'angle')

    def __init__(self, magnitude: Optional[np.ndarray] = None,
                 angle: Optional[np.ndarray] = None):
        self.magnitude = magnitude
        self.angle = angle

    @classmethod
    def zeros(cls, width: int, height: int) -> 'EdgeField':
        return cls(np.zeros((height, width), dtype=np.float64),
                   np.zeros((height, width), dtype=np.float64))

    @classmethod
    def empty(cls) -> 'EdgeField':
        return cls(None, None)

    def __copy__(self):
        raise TypeError("EdgeField cannot be copied; use release() to transfer it")

    def __deepcopy__(self, memo):
        raise TypeError("EdgeField cannot be copied; use release() to transfer it")

    def release(self) -> 'EdgeField':
        """Transfer both arrays to a new holder, leaving this field empty."""
        moved = EdgeField(self.magnitude, self.angle)
        self.magnitude = None
        self.angle = None
        return moved

    @property
    def width(self) -> int:
        return 0 if self.magnitude is None else self.magnitude.shape[1]

    @property
    def height(self) -> int:
        return 0 if self.magnitude is None else self.magnitude.shape[0]

    def is_valid(self) -> bool:
        return (self.magnitude is not None and self.angle is not None
                and self.width > 0 and self.height > 0)

    def edge_at(self, x: int, y: int) -> Tuple[float, float]:
        """(magnitude, angle) at a pixel; zeros outside the field."""
        if not self.is_valid() or not (0 <= x < self.width and 0 <= y < self.height):
            return (0.0, 0.0)
        return float(self.magnitude[y, x]), float(self.angle[y, x])


# =============================================================================
# GRADIENT ENGINES
# =============================================================================

class GradientEngine:
    """
    Computes magnitude and angle for one block of interior rows.

    ``compute_block(luma, start, end)`` returns two arrays of shape
    (end - start, width) for rows [start, end). Columns 0 and width - 1 are
    zero. Callers guarantee 1 <= start < end <= height - 1.
    """

    backend: Backend

    def compute_block(self, luma: np.ndarray, start: int, end: int) -> Tuple[np.ndarray, np.ndarray]:
        raise NotImplementedError


class ReferenceGradientEngine(GradientEngine):
    """Explicit per-pixel Sobel loops."""

    backend = Backend.REFERENCE

    def compute_block(self, luma: np.ndarray, start: int, end: int) -> Tuple[np.ndarray, np.ndarray]:
        width = luma.shape[1]
        kx = SOBEL_X.tolist()
        ky = SOBEL_Y.tolist()
        # Rows start-1 .. end, so rows[i] is image row start - 1 + i
        rows = luma[start - 1:end + 1].tolist()

        magnitude = np.zeros((end - start, width), dtype=np.float64)
        angle = np.zeros((end - start, width), dtype=np.float64)

        for i in range(end - start):
            for x in range(1, width - 1):
                gx = 0.0
                gy = 0.0
                for dy in range(3):
                    row = rows[i + dy]
                    for dx in range(3):
                        pixel = row[x - 1 + dx]
                        gx += pixel * kx[dy][dx]
                        gy += pixel * ky[dy][dx]

                deg = math.degrees(math.atan2(gy, gx))
                if deg < 0:
                    deg += 180.0

                magnitude[i, x] = math.sqrt(gx * gx + gy * gy)
                angle[i, x] = deg

        return magnitude, angle


class AcceleratedGradientEngine(GradientEngine):
    """Vectorized Sobel using scipy.ndimage on the block plus a one-row halo."""

    backend = Backend.ACCELERATED

    def compute_block(self, luma: np.ndarray, start: int, end: int) -> Tuple[np.ndarray, np.ndarray]:
        width = luma.shape[1]
        window = luma[start - 1:end + 1]

        # correlate, not convolve: the kernels are applied without flipping
        gx = ndimage.correlate(window, SOBEL_X, mode='nearest')[1:-1]
        gy = ndimage.correlate(window, SOBEL_Y, mode='nearest')[1:-1]

        magnitude = np.zeros((end - start, width), dtype=np.float64)
        angle = np.zeros((end - start, width), dtype=np.float64)

        inner_gx = gx[:, 1:width - 1]
        inner_gy = gy[:, 1:width - 1]
        deg = np.degrees(np.arctan2(inner_gy, inner_gx))
        deg[deg < 0] += 180.0

        magnitude[:, 1:width - 1] = np.sqrt(inner_gx ** 2 + inner_gy ** 2)
        angle[:, 1:width - 1] = deg

        return magnitude, angle


_ENGINES = {
    Backend.REFERENCE: ReferenceGradientEngine,
    Backend.ACCELERATED: AcceleratedGradientEngine,
}


def get_gradient_engine(backend: Union[Backend, str]) -> GradientEngine:
    """Instantiate the gradient engine for a backend."""
    if isinstance(backend, str):
        backend = Backend.from_name(backend)
    try:
        engine_cls = _ENGINES[backend]
    except KeyError:
        raise ValueError(f"Unknown edge backend: {backend}") from None
    logger.debug("Using %s gradient engine", backend.value)
    return engine_cls()


# =============================================================================
# PARTITIONING
# =============================================================================

def resolve_thread_count(requested: int) -> int:
    """
    Effective worker count.

    0 or a negative value means one worker per available CPU. The result is
    clamped to [1, MAX_THREADS].
    """
    if requested <= 0:
        requested = os.cpu_count() or 1
    return max(1, min(MAX_THREADS, requested))


def partition_rows(height: int, workers: int,
                   block_size: int = DEFAULT_BLOCK_SIZE) -> List[Tuple[int, int]]:
    """
    Split the interior rows [1, height - 1) into contiguous row-blocks.

    Args:
        height: Image height
        workers: Maximum number of blocks
        block_size: Minimum rows per block (the last block may be shorter)

    Returns:
        List of (start, end) half-open row ranges, in order
    """
    first, last = 1, height - 1
    rows = last - first
    if rows <= 0:
        return []

    block_size = max(1, block_size)
    count = max(1, min(workers, -(-rows // block_size)))
    step = -(-rows // count)

    blocks = []
    for start in range(first, last, step):
        blocks.append((start, min(start + step, last)))
    return blocks


# =============================================================================
# DETECTOR
# =============================================================================

class EdgeDetector:
    """Row-block parallel Sobel edge detector."""

    def __init__(self, engine: Optional[GradientEngine] = None, threads: int = 0):
        """
        Args:
            engine: Gradient engine (reference engine if None)
            threads: Worker count, 0 for one per CPU
        """
        self.engine = engine or ReferenceGradientEngine()
        self.threads = resolve_thread_count(threads)

    def detect(self, image: RasterImage, block_size: int = DEFAULT_BLOCK_SIZE) -> EdgeField:
        """
        Detect edges in an image.

        Args:
            image: Source image (usually the resampled grid)
            block_size: Minimum number of rows handed to one worker

        Returns:
            EdgeField with magnitudes normalized to [0, 1], or an empty field
            if the image is invalid
        """
        if not image.is_valid():
            logger.warning("Edge detection skipped: invalid image %r", image)
            return EdgeField.empty()

        width, height = image.width, image.height
        edges = EdgeField.zeros(width, height)
        if width < 3:
            return edges

        luma = image.luminance_map()
        blocks = partition_rows(height, self.threads, block_size)
        logger.debug("Sobel on %dx%d: %d block(s) %s, %s engine",
                     width, height, len(blocks), blocks, self.engine.backend.value)

        def run(block: Tuple[int, int]) -> None:
            start, end = block
            magnitude, angle = self.engine.compute_block(luma, start, end)
            edges.magnitude[start:end] = magnitude
            edges.angle[start:end] = angle

        if len(blocks) > 1:
            with ThreadPoolExecutor(max_workers=len(blocks)) as executor:
                futures = [executor.submit(run, block) for block in blocks]
                # Join barrier; re-raises any worker exception
                for future in futures:
                    future.result()
        else:
            for block in blocks:
                run(block)

        max_magnitude = float(edges.magnitude.max())
        if max_magnitude > 0.0:
            edges.magnitude /= max_magnitude

        return edges


def detect_edges(image: RasterImage, backend: Union[Backend, str] = Backend.REFERENCE,
                 threads: int = 0, block_size: int = DEFAULT_BLOCK_SIZE) -> EdgeField:
    """Convenience wrapper building a detector for one run."""
    detector = EdgeDetector(get_gradient_engine(backend), threads)
    return detector.detect(image, block_size)
