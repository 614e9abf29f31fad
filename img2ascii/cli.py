#!/usr/bin/env python3
"""
Image to ASCII Art Converter - Command Line Interface
====================================================
"""

import argparse
import logging
import math
import sys
from typing import List, Optional

from img2ascii.config import ConverterConfig
from img2ascii.constants import (
    Backend, CharacterSet, ColorMode, DEFAULT_HEIGHT, DEFAULT_WIDTH,
)
from img2ascii.pipeline import AsciiArtGenerator, ConversionResult
from img2ascii.rendering import AnsiColorFormatter


logger = logging.getLogger(__name__)

BACKEND_CHOICES = [backend.value for backend in Backend]


def create_argument_parser() -> argparse.ArgumentParser:
    """Create command line argument parser."""
    parser = argparse.ArgumentParser(
        prog='img2ascii',
        description='Convert images to ASCII art',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Recommended sizes:
  Small:  80x30   Medium: 120x60 (default)   Large: 160x80   XL: 200x100

Examples:
  %(prog)s image.jpg
  %(prog)s photo.png --width 80 --height 30
  %(prog)s image.jpg --no-edges --colors
  %(prog)s image.jpg --hsv --edge-backend accelerated --threads 4
        """
    )

    parser.add_argument('input', help='Input image file')
    parser.add_argument('-o', '--output', help='Write the art to a file instead of stdout')

    # Size options
    parser.add_argument('-w', '--width', type=int, default=DEFAULT_WIDTH,
                        help='Output width in characters')
    parser.add_argument('-H', '--height', type=int, default=DEFAULT_HEIGHT,
                        help='Output height in characters')

    # Stage toggles
    parser.add_argument('--edges', dest='use_edges', action='store_true', default=True,
                        help='Enable edge detection (default)')
    parser.add_argument('--no-edges', dest='use_edges', action='store_false',
                        help='Disable edge detection')
    parser.add_argument('--hsv', '--use-hsv', dest='use_hue', action='store_true', default=False,
                        help='Use HSV value and hue filtering (selects the accelerated '
                             'color backend unless one is given)')
    parser.add_argument('--no-hsv', dest='use_hue', action='store_false',
                        help='Disable HSV conversion (default)')
    parser.add_argument('--colors', dest='colorize', action='store_true', default=False,
                        help='Enable ANSI color output')
    parser.add_argument('--no-colors', dest='colorize', action='store_false',
                        help='Disable ANSI color output (default)')

    # Backends
    parser.add_argument('--edge-backend', choices=BACKEND_CHOICES, default=None,
                        help='Gradient backend for edge detection')
    parser.add_argument('--color-backend', choices=BACKEND_CHOICES, default=None,
                        help='Backend for RGB to HSV conversion')
    parser.add_argument('--sobel-asm', dest='edge_backend', action='store_const',
                        const=Backend.ACCELERATED.value, help=argparse.SUPPRESS)
    parser.add_argument('--no-sobel-asm', dest='edge_backend', action='store_const',
                        const=Backend.REFERENCE.value, help=argparse.SUPPRESS)
    parser.add_argument('--hsv-asm', dest='color_backend', action='store_const',
                        const=Backend.ACCELERATED.value, help=argparse.SUPPRESS)
    parser.add_argument('--no-hsv-asm', dest='color_backend', action='store_const',
                        const=Backend.REFERENCE.value, help=argparse.SUPPRESS)
    parser.add_argument('--asm-on', '--use-asm', dest='all_backends', action='store_const',
                        const=Backend.ACCELERATED.value, default=None, help=argparse.SUPPRESS)
    parser.add_argument('--asm-off', '--no-asm', dest='all_backends', action='store_const',
                        const=Backend.REFERENCE.value, help=argparse.SUPPRESS)
    parser.add_argument('--threads', '--workers', type=int, default=0,
                        help='Edge detection worker threads (0 = auto, max 64)')

    # Output options
    parser.add_argument('--charset', choices=['detailed', 'standard'], default='detailed',
                        help='Density ramp')
    parser.add_argument('--color-mode', choices=[mode.value for mode in ColorMode],
                        default=ColorMode.TRUECOLOR.value, help='Terminal color mode')
    parser.add_argument('--no-render', action='store_true', help='Convert but do not print')
    parser.add_argument('--metrics', action='store_true',
                        help='Print machine-readable METRIC lines')
    parser.add_argument('-v', '--verbose', action='store_true', help='Verbose output')

    return parser


def build_config(args: argparse.Namespace) -> ConverterConfig:
    """Turn parsed arguments into a pipeline configuration."""
    edge_backend = args.edge_backend or args.all_backends or Backend.REFERENCE.value
    color_backend = args.color_backend or args.all_backends
    if color_backend is None:
        color_backend = Backend.ACCELERATED.value if args.use_hue else Backend.REFERENCE.value

    return ConverterConfig(
        width=args.width,
        height=args.height,
        use_edges=args.use_edges,
        use_hue=args.use_hue,
        colorize=args.colorize,
        edge_backend=Backend.from_name(edge_backend),
        color_backend=Backend.from_name(color_backend),
        threads=max(0, args.threads),
        charset=CharacterSet.get_preset(args.charset),
        color_mode=ColorMode(args.color_mode),
    )


def format_metric(value: Optional[float]) -> str:
    if value is None or math.isnan(value):
        return 'nan'
    return f"{value:.6f}"


def print_metrics(result: ConversionResult) -> None:
    print(f"METRIC:EdgeDetection_ms:{format_metric(result.timings.get('edges'))}")
    print(f"METRIC:HSV_ms:{format_metric(result.timings.get('hsv'))}")
    print(f"METRIC:TOTAL_ms:{format_metric(result.timings.get('total'))}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for command line usage."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format='[%(levelname)s] %(name)s: %(message)s',
        stream=sys.stderr,
    )

    try:
        config = build_config(args)
        generator = AsciiArtGenerator(config)
    except ValueError as e:
        parser.error(str(e))

    logger.info("Target dimensions: %dx%d", config.width, config.height)
    logger.info("Edge detection: %s (%s backend)",
                'enabled' if config.use_edges else 'disabled', config.edge_backend.value)
    logger.info("HSV: %s (%s backend)",
                'enabled' if config.use_hue else 'disabled', config.color_backend.value)
    logger.info("Threads: %d", generator.edge_detector.threads)

    result = generator.generate_from_path(args.input)
    if not result.is_valid():
        print(f"Error: could not convert {args.input}", file=sys.stderr)
        return 1

    if not args.no_render:
        output = AnsiColorFormatter.render(result.cells, result.width, result.height,
                                           use_colors=config.colorize,
                                           color_mode=config.color_mode)
        if args.output:
            with open(args.output, 'w', encoding='utf-8') as f:
                f.write(output + '\n')
            print(f"Saved to {args.output}")
        else:
            print(output)

    if args.metrics:
        print_metrics(result)

    return 0
