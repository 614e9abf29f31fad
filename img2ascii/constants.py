#!/usr/bin/env python3
"""
Image to ASCII Art Converter - Constants
========================================
Enums, character ramps and fixed numeric parameters shared by the pipeline.
"""

from enum import Enum
from typing import Tuple


# =============================================================================
# ENUMS
# =============================================================================

class Backend(Enum):
    """Computation backend for a switchable pipeline stage."""
    REFERENCE = 'reference'       # Portable per-pixel implementation
    ACCELERATED = 'accelerated'   # Vectorized numpy/scipy implementation

    @classmethod
    def from_name(cls, name: str) -> 'Backend':
        """Look up a backend by its command line name."""
        try:
            return cls(name.lower())
        except ValueError:
            raise ValueError(f"Unknown backend: {name}") from None


class ColorMode(Enum):
    """Terminal color depth used by the renderer."""
    TRUECOLOR = '24bit'
    PALETTE_256 = '256'
    PALETTE_16 = '16'


# =============================================================================
# CHARACTER SETS
# =============================================================================

class CharacterSet:
    """Density ramps, ordered from visually sparse to visually dense."""

    DETAILED: str = " .'`^\",:;Il!i><~+_-?][}{1)(|\\/tfjrxnuvczXYUJCLQ0OZmwqpdbkhao*#MW&8%B@$"
    STANDARD: str = " .:-=+*#%@"

    @classmethod
    def get_preset(cls, name: str) -> str:
        """Get character ramp by name."""
        presets = {
            'detailed': cls.DETAILED,
            'standard': cls.STANDARD,
        }
        try:
            return presets[name.lower()]
        except KeyError:
            raise ValueError(f"Unknown charset: {name}") from None


# Edge direction glyphs, keyed by orientation bucket
DIRECTION_CHARS = {
    'horizontal': '-',
    'diagonal_up': '/',
    'vertical': '|',
    'diagonal_down': '\\',
}

# Glyph used by the hue emphasis rule
EMPHASIS_CHAR = '#'


# =============================================================================
# NUMERIC PARAMETERS
# =============================================================================

# ITU-R BT.709 luma weights
LUMA_WEIGHTS: Tuple[float, float, float] = (0.2126, 0.7152, 0.0722)

# Midtone contrast curve applied to luminance before quantization
LUMINANCE_GAMMA = 0.8

EDGE_THRESHOLD = 0.25
SATURATION_THRESHOLD = 0.15
HUE_BAND: Tuple[float, float] = (180.0, 260.0)

# Terminal cells are taller than wide; the sampled grid is shortened by this
VERTICAL_COMPENSATION = 0.75

DEFAULT_WIDTH = 120
DEFAULT_HEIGHT = 60

MAX_THREADS = 64
DEFAULT_BLOCK_SIZE = 16
