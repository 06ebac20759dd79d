"""Hex color parsing for player markers."""

import re
from typing import Optional

RGB = tuple[int, int, int]

# Tailwind blue-500, the editor's default marker color.
DEFAULT_FALLBACK: RGB = (59, 130, 246)

_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")


def parse_hex_color(value: Optional[str], fallback: RGB = DEFAULT_FALLBACK) -> RGB:
    """Parse `#RGB`, `RGB`, `#RRGGBB` or `RRGGBB` into an (r, g, b) tuple.

    Anything else, including None and non-strings, yields `fallback`.
    """
    if not isinstance(value, str):
        return fallback
    hex_value = value.strip()
    if hex_value.startswith("#"):
        hex_value = hex_value[1:]
    if len(hex_value) == 3:
        hex_value = "".join(c * 2 for c in hex_value)
    if len(hex_value) != 6 or not _HEX_RE.match(hex_value):
        return fallback
    return (
        int(hex_value[0:2], 16),
        int(hex_value[2:4], 16),
        int(hex_value[4:6], 16),
    )


def fallback_from_settings(value: Optional[str]) -> RGB:
    """Resolve the configured fallback, falling back to the built-in default."""
    return parse_hex_color(value, DEFAULT_FALLBACK)
