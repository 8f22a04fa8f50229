"""
Color utilities for page actions
Converts between '#RRGGBB' strings, 0-255 channels and PDF 0-1 components
"""

import re
from typing import Optional, Sequence, Tuple

from utils.validation import InvalidColorFormatError

HEX_COLOR_PATTERN = re.compile(r'#[0-9A-Fa-f]{6}')

def parse_hex_color(hex_string: str) -> Tuple[int, int, int]:
    """
    Parse a color like "#F0F0F0" into its (r, g, b) channels.

    The value must be exactly '#' followed by six hex digits.
    """
    if not isinstance(hex_string, str) or not HEX_COLOR_PATTERN.fullmatch(hex_string):
        raise InvalidColorFormatError(hex_string)

    red = int(hex_string[1:3], 16)
    green = int(hex_string[3:5], 16)
    blue = int(hex_string[5:7], 16)
    return red, green, blue

def format_hex_color(red: int, green: int, blue: int) -> str:
    """
    Format 0-255 channels as a lowercase hex color.
    Example: (255, 0, 128) -> "#ff0080"
    """
    for channel in (red, green, blue):
        if not 0 <= channel <= 255:
            raise ValueError(f"Color channel out of range: {channel}")
    return "#{:02x}{:02x}{:02x}".format(red, green, blue)

def rgb_to_fill_components(rgb: Tuple[int, int, int]) -> Tuple[float, float, float]:
    """Scale 0-255 channels to the 0-1 operands of the 'rg' operator."""
    return tuple(round(channel / 255, 4) for channel in rgb)

def components_to_hex(color_info: Optional[Sequence[float]]) -> Optional[str]:
    """
    Convert PDF color components (gray, RGB or CMYK in 0-1) to a hex color.
    Returns None when the color cannot be interpreted.
    """
    if color_info is None:
        return None

    if isinstance(color_info, (int, float)):
        color_info = (color_info,)

    try:
        components = [float(c) for c in color_info]
    except (TypeError, ValueError):
        return None

    if len(components) == 1:
        gray = components[0]
        rgb = (gray, gray, gray)
    elif len(components) == 3:
        rgb = components
    elif len(components) == 4:
        # CMYK, simplified conversion
        c, m, y, k = components
        rgb = ((1 - c) * (1 - k), (1 - m) * (1 - k), (1 - y) * (1 - k))
    else:
        return None

    channels = [min(255, max(0, int(round(value * 255)))) for value in rgb]
    return format_hex_color(*channels)
