"""Normalized field coordinates and their projection onto drawing surfaces.

A player position is stored as a pair (x, y) of fractions of the field:

    x = 0.0  left edge        x = 1.0  right edge
    y = 0.0  bottom edge      y = 1.0  top edge

Every surface we draw on (editor pixels, PDF millimetres) has its origin in
the top-left corner with y growing downwards, so y is inverted at each
projection. Surfaces with a non-positive or non-finite size are rejected by
returning None instead of dividing by zero.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

# Real pitch dimensions in metres (length x width).
PITCH_LENGTH = 105.0
PITCH_WIDTH = 68.0
PITCH_ASPECT = PITCH_LENGTH / PITCH_WIDTH

Point = tuple[float, float]


@dataclass(frozen=True)
class Surface:
    """A rectangle in a top-left-origin coordinate space."""

    width: float
    height: float
    origin_x: float = 0.0
    origin_y: float = 0.0

    @property
    def is_valid(self) -> bool:
        return (
            _is_finite(self.width, self.height, self.origin_x, self.origin_y)
            and self.width > 0
            and self.height > 0
        )

    @property
    def right(self) -> float:
        return self.origin_x + self.width

    @property
    def bottom(self) -> float:
        return self.origin_y + self.height

    @property
    def center(self) -> Point:
        return (self.origin_x + self.width / 2, self.origin_y + self.height / 2)


def _is_finite(*values: float) -> bool:
    return all(isinstance(v, (int, float)) and math.isfinite(v) for v in values)


def to_surface(surface: Surface, x: float, y: float) -> Optional[Point]:
    """Project a normalized (x, y) onto `surface`.

    Values outside [0, 1] are projected as-is and land outside the surface.
    Returns None when the surface or the coordinates cannot be projected.
    """
    if not surface.is_valid or not _is_finite(x, y):
        return None
    px = surface.origin_x + x * surface.width
    py = surface.origin_y + (1.0 - y) * surface.height
    return (px, py)


def to_normalized(surface: Surface, px: float, py: float) -> Optional[Point]:
    """Inverse of `to_surface`: surface point back to normalized (x, y)."""
    if not surface.is_valid or not _is_finite(px, py):
        return None
    x = (px - surface.origin_x) / surface.width
    y = 1.0 - (py - surface.origin_y) / surface.height
    return (x, y)


def is_in_bounds(x: float, y: float) -> bool:
    """True when (x, y) lies on the field, edges included."""
    return _is_finite(x, y) and 0.0 <= x <= 1.0 and 0.0 <= y <= 1.0


def editor_surface(width_px: float, height_px: float) -> Surface:
    """Interactive editor area in pixels (top-left origin)."""
    return Surface(width=width_px, height=height_px)


def export_surface(x_mm: float, y_mm: float, width_mm: float, height_mm: float) -> Surface:
    """Pitch rectangle on a printed page, in millimetres (top-left origin)."""
    return Surface(width=width_mm, height=height_mm, origin_x=x_mm, origin_y=y_mm)


def fit_pitch(avail_x: float, avail_y: float, avail_w: float, avail_h: float,
              aspect: float = PITCH_ASPECT) -> Optional[Surface]:
    """Largest `aspect`-shaped rectangle inside the available area, centered in it.

    Width is tried first; when the resulting height overflows, height becomes
    the binding dimension instead.
    """
    area = Surface(width=avail_w, height=avail_h, origin_x=avail_x, origin_y=avail_y)
    if not area.is_valid or not (_is_finite(aspect) and aspect > 0):
        return None

    width = avail_w
    height = width / aspect
    if height > avail_h:
        height = avail_h
        width = height * aspect

    return Surface(
        width=width,
        height=height,
        origin_x=avail_x + (avail_w - width) / 2,
        origin_y=avail_y + (avail_h - height) / 2,
    )
