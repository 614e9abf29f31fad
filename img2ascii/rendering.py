#!/usr/bin/env python3
"""
Image to ASCII Art Converter - Rendering
========================================
Format glyph cells as plain text or ANSI-colored terminal output.
"""

from typing import List, Sequence, Union

from img2ascii.constants import ColorMode
from img2ascii.glyph_mapping import GlyphCell


class AnsiColorFormatter:
    """Format ASCII art with ANSI color codes for terminal output."""

    # ANSI escape codes
    RESET = "\033[0m"

    @staticmethod
    def rgb_to_ansi_24bit(r: int, g: int, b: int, foreground: bool = True) -> str:
        """Convert RGB to 24-bit ANSI color code (true color)."""
        code = 38 if foreground else 48
        return f"\033[{code};2;{r};{g};{b}m"

    @staticmethod
    def rgb_to_ansi_256(r: int, g: int, b: int, foreground: bool = True) -> str:
        """Convert RGB to 256-color ANSI code."""
        if r == g == b:
            # Grayscale ramp
            if r < 8:
                color = 16
            elif r > 248:
                color = 231
            else:
                color = round((r - 8) / 247 * 24) + 232
        else:
            # Color cube (6x6x6)
            color = 16 + (36 * round(r / 255 * 5)) + (6 * round(g / 255 * 5)) + round(b / 255 * 5)

        code = 38 if foreground else 48
        return f"\033[{code};5;{color}m"

    @staticmethod
    def rgb_to_ansi_16(r: int, g: int, b: int, foreground: bool = True) -> str:
        """Convert RGB to 16-color ANSI code."""
        bright = (r + g + b) / 3 > 127

        color = (1 if r > 127 else 0) + ((1 if g > 127 else 0) << 1) + ((1 if b > 127 else 0) << 2)

        if foreground:
            code = 90 + color if bright else 30 + color
        else:
            code = 100 + color if bright else 40 + color

        return f"\033[{code}m"

    @classmethod
    def color_code(cls, cell: GlyphCell, color_mode: ColorMode) -> str:
        if color_mode == ColorMode.TRUECOLOR:
            return cls.rgb_to_ansi_24bit(cell.r, cell.g, cell.b)
        if color_mode == ColorMode.PALETTE_256:
            return cls.rgb_to_ansi_256(cell.r, cell.g, cell.b)
        return cls.rgb_to_ansi_16(cell.r, cell.g, cell.b)

    @classmethod
    def render_lines(cls, cells: Sequence[GlyphCell], width: int, height: int,
                     use_colors: bool = False,
                     color_mode: Union[ColorMode, str] = ColorMode.TRUECOLOR) -> List[str]:
        """
        Format a glyph grid line by line.

        Args:
            cells: Row-major glyph cells
            width: Grid width
            height: Grid height
            use_colors: Emit a color escape before every character
            color_mode: Color depth for the escapes

        Returns:
            One string per grid row; colored rows end with a reset
        """
        if not cells or width <= 0 or height <= 0:
            return []
        if isinstance(color_mode, str):
            color_mode = ColorMode(color_mode)

        lines = []
        for y in range(height):
            row = cells[y * width:(y + 1) * width]
            if not row:
                break
            if use_colors:
                line = ''.join(cls.color_code(cell, color_mode) + cell.char for cell in row)
                lines.append(line + cls.RESET)
            else:
                lines.append(''.join(cell.char for cell in row))
        return lines

    @classmethod
    def render(cls, cells: Sequence[GlyphCell], width: int, height: int,
               use_colors: bool = False,
               color_mode: Union[ColorMode, str] = ColorMode.TRUECOLOR) -> str:
        """Format a glyph grid as one string, rows separated by newlines."""
        return '\n'.join(cls.render_lines(cells, width, height, use_colors, color_mode))
