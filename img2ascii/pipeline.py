#!/usr/bin/env python3
"""
Image to ASCII Art Converter - Pipeline
=======================================
Runs resample -> edge detection -> glyph mapping for one image.

The generator resolves its gradient and color engines once, from the config
it was built with. Concurrent generators share no mutable state.
"""

import logging
import os
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from PIL import Image

from img2ascii.color_space import get_color_engine
from img2ascii.config import ConverterConfig
from img2ascii.edge_detection import EdgeDetector, EdgeField, get_gradient_engine
from img2ascii.glyph_mapping import GlyphCell, GlyphMapper, HueBandPredicate
from img2ascii.raster import RasterImage, load_image
from img2ascii.resampling import fit_dimensions, resample


logger = logging.getLogger(__name__)


@dataclass
class ConversionResult:
    """Result of ASCII art generation."""
    cells: List[GlyphCell] = field(default_factory=list)   # Row-major glyph cells
    width: int = 0                                         # Grid width
    height: int = 0                                        # Grid height
    original_size: Tuple[int, int] = (0, 0)                # Source image size
    timings: Dict[str, Optional[float]] = field(default_factory=dict)  # Stage -> ms

    def is_valid(self) -> bool:
        return self.width > 0 and self.height > 0 and len(self.cells) == self.width * self.height

    @property
    def lines(self) -> List[str]:
        return GlyphMapper.to_lines(self.cells, self.width)

    @property
    def text(self) -> str:
        return '\n'.join(self.lines)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000.0


class AsciiArtGenerator:
    """Main class for generating ASCII art from images."""

    def __init__(self, config: Optional[ConverterConfig] = None):
        """Initialize with optional configuration."""
        self.config = (config or ConverterConfig()).validated()
        self.edge_detector = EdgeDetector(get_gradient_engine(self.config.edge_backend),
                                          self.config.threads)
        self.mapper = GlyphMapper(
            charset=self.config.charset,
            gamma=self.config.gamma,
            edge_threshold=self.config.edge_threshold,
            color_engine=get_color_engine(self.config.color_backend),
            hue_predicate=HueBandPredicate(self.config.hue_band,
                                           self.config.saturation_threshold),
            emphasis_char=self.config.emphasis_char,
        )
        logger.debug("Generator ready: edge=%s color=%s threads=%d",
                     self.config.edge_backend.value, self.config.color_backend.value,
                     self.edge_detector.threads)

    def generate(self, image: RasterImage) -> ConversionResult:
        """
        Generate ASCII art from a decoded image.

        Args:
            image: Source image

        Returns:
            ConversionResult; invalid (no cells) if the image or the target
            size is unusable
        """
        config = self.config
        timings: Dict[str, Optional[float]] = {
            'resample': None, 'edges': None, 'hsv': None, 'glyphs': None, 'total': None,
        }
        total_start = time.perf_counter()

        if not image.is_valid():
            logger.warning("Conversion aborted: invalid source image")
            return ConversionResult(timings=timings)

        # Step 1: resample onto the character grid
        start = time.perf_counter()
        target_width, target_height = fit_dimensions(config.width, config.height,
                                                     config.vertical_compensation)
        scaled = resample(image, target_width, target_height)
        timings['resample'] = _elapsed_ms(start)
        if not scaled.is_valid():
            logger.warning("Conversion aborted: cannot scale to %dx%d",
                           target_width, target_height)
            return ConversionResult(original_size=image.size, timings=timings)
        logger.info("Image scaled to %dx%d", scaled.width, scaled.height)

        # Step 2: edges
        edges: Optional[EdgeField] = None
        if config.use_edges:
            start = time.perf_counter()
            edges = self.edge_detector.detect(scaled, config.block_size)
            timings['edges'] = _elapsed_ms(start)
            logger.info("Edge detection completed in %.3f ms", timings['edges'])

        # Step 3: hue
        hsv = None
        if config.use_hue:
            start = time.perf_counter()
            hsv = self.mapper.convert_hsv(scaled)
            timings['hsv'] = _elapsed_ms(start)
            logger.info("HSV conversion completed in %.3f ms", timings['hsv'])

        # Step 4: characters
        start = time.perf_counter()
        cells = self.mapper.map(scaled, edges, use_edges=config.use_edges,
                                use_hue=config.use_hue, hsv=hsv)
        timings['glyphs'] = _elapsed_ms(start)
        timings['total'] = _elapsed_ms(total_start)
        logger.info("Generated %d characters", len(cells))

        return ConversionResult(
            cells=cells,
            width=scaled.width,
            height=scaled.height,
            original_size=image.size,
            timings=timings,
        )

    def generate_from_path(self, path: Union[str, os.PathLike]) -> ConversionResult:
        """Decode an image file and convert it."""
        return self.generate(load_image(path, channels=3))


def image_to_ascii(image: Image.Image,
                   width: int = ConverterConfig.width,
                   height: int = ConverterConfig.height,
                   **kwargs) -> ConversionResult:
    """
    Convenience function to convert a PIL image to ASCII art.

    Args:
        image: PIL Image
        width: Output width in characters
        height: Output height in characters
        **kwargs: Additional ConverterConfig options

    Returns:
        ConversionResult
    """
    config = ConverterConfig(width=width, height=height, **kwargs)
    return AsciiArtGenerator(config).generate(RasterImage.from_pil(image, channels=3))
