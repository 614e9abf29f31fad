#!/usr/bin/env python3
"""
Image to ASCII Art Converter - Configuration
============================================
Explicit pipeline configuration. One instance is built before a run and
passed to the generator; nothing in the pipeline reads global flags.
"""

from dataclasses import dataclass, replace
from typing import Tuple

from img2ascii.constants import (
    Backend, CharacterSet, ColorMode, DEFAULT_BLOCK_SIZE, DEFAULT_HEIGHT,
    DEFAULT_WIDTH, EDGE_THRESHOLD, EMPHASIS_CHAR, HUE_BAND, LUMINANCE_GAMMA,
    MAX_THREADS, SATURATION_THRESHOLD, VERTICAL_COMPENSATION,
)


@dataclass(frozen=True)
class ConverterConfig:
    """Configuration for one ASCII art conversion."""

    # Size parameters (output size in character cells)
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    vertical_compensation: float = VERTICAL_COMPENSATION  # Cells are taller than wide

    # Pipeline stages
    use_edges: bool = True
    use_hue: bool = False
    colorize: bool = False

    # Backends and parallelism
    edge_backend: Backend = Backend.REFERENCE
    color_backend: Backend = Backend.REFERENCE
    threads: int = 0                             # 0 = one worker per CPU
    block_size: int = DEFAULT_BLOCK_SIZE         # Minimum rows per edge worker

    # Character selection
    charset: str = CharacterSet.DETAILED         # Sparse to dense
    gamma: float = LUMINANCE_GAMMA
    edge_threshold: float = EDGE_THRESHOLD       # Normalized magnitude (0-1)
    saturation_threshold: float = SATURATION_THRESHOLD
    hue_band: Tuple[float, float] = HUE_BAND     # Degrees, [low, high)
    emphasis_char: str = EMPHASIS_CHAR

    # Rendering
    color_mode: ColorMode = ColorMode.TRUECOLOR

    def validated(self) -> 'ConverterConfig':
        """
        Check value ranges and clamp the thread count.

        Returns:
            Config with threads in [0, MAX_THREADS]

        Raises:
            ValueError: If a value cannot be used
        """
        if not self.charset:
            raise ValueError("charset must not be empty")
        if len(self.emphasis_char) != 1:
            raise ValueError("emphasis_char must be a single character")
        if self.vertical_compensation <= 0:
            raise ValueError("vertical_compensation must be positive")
        if self.block_size < 1:
            raise ValueError("block_size must be at least 1")
        if not 0.0 <= self.edge_threshold <= 1.0:
            raise ValueError("edge_threshold must be within [0, 1]")
        low, high = self.hue_band
        if low > high:
            raise ValueError("hue_band must be ordered (low, high)")

        threads = max(0, min(MAX_THREADS, self.threads))
        if threads != self.threads:
            return replace(self, threads=threads)
        return self
