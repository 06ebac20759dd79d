"""Tests for the normalized coordinate model."""

import math
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from lineups.coordinates import (
    PITCH_ASPECT,
    Surface,
    editor_surface,
    export_surface,
    fit_pitch,
    is_in_bounds,
    to_normalized,
    to_surface,
)


class TestProjection:
    """Normalized <-> surface projection."""

    def test_y_is_inverted(self):
        """y=1.0 is the top edge, which is py=0 on a top-left surface."""
        surface = editor_surface(680, 1050)
        assert to_surface(surface, 0.0, 1.0) == (0.0, 0.0)
        assert to_surface(surface, 1.0, 0.0) == (680.0, 1050.0)

    def test_top_player_is_drawn_above_bottom_player(self):
        """Higher y means closer to the top of the page."""
        surface = export_surface(12, 40, 186, 120)
        _, top_y = to_surface(surface, 0.5, 1.0)
        _, bottom_y = to_surface(surface, 0.5, 0.0)
        assert top_y < bottom_y

    def test_origin_offset_is_applied(self):
        """The surface origin shifts the projected point."""
        surface = export_surface(10, 20, 100, 50)
        assert to_surface(surface, 0.5, 0.5) == (60.0, 45.0)

    @pytest.mark.parametrize("x,y", [(0.0, 0.0), (1.0, 1.0), (0.5, 0.05), (0.123, 0.987)])
    def test_round_trip(self, x, y):
        """Projecting and un-projecting returns the original point."""
        surface = export_surface(12.5, 33.3, 186.0, 120.46)
        px, py = to_surface(surface, x, y)
        back_x, back_y = to_normalized(surface, px, py)
        assert math.isclose(back_x, x, abs_tol=1e-9)
        assert math.isclose(back_y, y, abs_tol=1e-9)

    def test_out_of_range_values_project_outside(self):
        """Coordinates are not clamped."""
        px, py = to_surface(editor_surface(100, 100), 1.5, -0.5)
        assert px == 150.0
        assert py == 150.0


class TestInvalidSurfaces:
    """Degenerate surfaces and values are rejected without raising."""

    @pytest.mark.parametrize("width,height", [(0, 100), (100, 0), (-5, 10), (float("nan"), 10), (float("inf"), 10)])
    def test_invalid_surface(self, width, height):
        """Zero, negative and non-finite sizes cannot be projected onto."""
        surface = Surface(width=width, height=height)
        assert not surface.is_valid
        assert to_surface(surface, 0.5, 0.5) is None
        assert to_normalized(surface, 10, 10) is None

    def test_non_finite_coordinates(self):
        """NaN and infinite coordinates cannot be projected."""
        surface = editor_surface(100, 100)
        assert to_surface(surface, float("nan"), 0.5) is None
        assert to_normalized(surface, 10, float("inf")) is None

    def test_is_in_bounds(self):
        """Only points in the unit square are on the field."""
        assert is_in_bounds(0.0, 1.0)
        assert not is_in_bounds(1.01, 0.5)
        assert not is_in_bounds(float("nan"), 0.5)


class TestFitPitch:
    """Largest pitch-shaped rectangle inside an area."""

    def test_width_bound(self):
        """A tall area fits the pitch by width."""
        pitch = fit_pitch(12, 34, 186, 241)
        assert math.isclose(pitch.width, 186)
        assert math.isclose(pitch.width / pitch.height, PITCH_ASPECT)
        assert math.isclose(pitch.origin_x, 12)

    def test_height_bound_is_centered_horizontally(self):
        """A wide area fits the pitch by height and centers it."""
        pitch = fit_pitch(0, 0, 200, 50)
        assert math.isclose(pitch.height, 50)
        assert math.isclose(pitch.width, 50 * PITCH_ASPECT)
        assert math.isclose(pitch.origin_x, (200 - pitch.width) / 2)

    def test_centered_vertically(self):
        """Spare height is split evenly above and below."""
        pitch = fit_pitch(12, 34, 186, 241)
        assert math.isclose(pitch.center[1], 34 + 241 / 2)

    def test_no_room(self):
        """A negative-height area gives no pitch."""
        assert fit_pitch(12, 300, 186, -13) is None
