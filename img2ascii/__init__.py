"""
Image to ASCII Art Converter
============================
Converts raster images into character grids with optional edge-direction
glyphs, hue emphasis and ANSI color.
"""

from img2ascii.color_space import (
    AcceleratedColorEngine, ColorEngine, HsvSample, ReferenceColorEngine,
    get_color_engine, rgb_to_hsv,
)
from img2ascii.config import ConverterConfig
from img2ascii.constants import Backend, CharacterSet, ColorMode
from img2ascii.edge_detection import (
    AcceleratedGradientEngine, EdgeDetector, EdgeField, GradientEngine,
    ReferenceGradientEngine, detect_edges, get_gradient_engine,
)
from img2ascii.glyph_mapping import GlyphCell, GlyphMapper, HueBandPredicate, direction_char
from img2ascii.pipeline import AsciiArtGenerator, ConversionResult, image_to_ascii
from img2ascii.raster import RasterImage, load_image
from img2ascii.rendering import AnsiColorFormatter
from img2ascii.resampling import fit_dimensions, resample

__version__ = '1.0.0'
