"""
Ray march and latch state machine.

Azimuth directions are passed as (cos_z, sin_z): cos_z steps columns and
sin_z steps rows. Altitude 0 keeps the ray at the origin height.
"""

import numpy as np
import pytest
from skyview.physics.raymarch import LatchState, advance_latch, march_ray, round_half_away

EAST_ALONG_COLUMNS = (1.0, 0.0)
WEST_ALONG_COLUMNS = (-1.0, 0.0)
HORIZONTAL = (1.0, 0.0)


def _row_grids(surface_row, canopy_top_row=None, canopy_bottom_row=None, rows=5):
    """Tile a 1D profile into a rows x len(profile) grid."""
    surface = np.tile(np.asarray(surface_row, dtype=np.float32), (rows, 1))
    top = surface.copy() if canopy_top_row is None else np.tile(np.asarray(canopy_top_row, dtype=np.float32), (rows, 1))
    bottom = (
        surface.copy() if canopy_bottom_row is None else np.tile(np.asarray(canopy_bottom_row, dtype=np.float32), (rows, 1))
    )
    return surface, top, bottom


def _march(grids, col, direction=EAST_ALONG_COLUMNS, altitude=HORIZONTAL, trace_radius=10.0, scale=1.0, row=2):
    surface, top, bottom = grids
    cos_z, sin_z = direction
    cos_a, sin_a = altitude
    return march_ray(surface, top, bottom, row, col, cos_z, sin_z, cos_a, sin_a, trace_radius, scale)


class TestRoundHalfAway:
    @pytest.mark.parametrize(
        "value,expected",
        [(0.0, 0), (0.49, 0), (0.5, 1), (1.5, 2), (2.5, 3), (-0.5, -1), (-1.5, -2), (-2.49, -2)],
    )
    def test_ties_round_away_from_zero(self, value, expected):
        assert round_half_away(value) == expected


class TestAdvanceLatch:
    def test_surface_block_from_none(self):
        assert advance_latch(LatchState.NONE, 5.0, 10.0, 10.0, 10.0) == LatchState.SURFACE_ONLY

    def test_canopy_band_from_none(self):
        assert advance_latch(LatchState.NONE, 5.0, 0.0, 8.0, 2.0) == LatchState.VEGETATION_ONLY

    def test_surface_after_vegetation_reclassifies(self):
        assert advance_latch(LatchState.VEGETATION_ONLY, 5.0, 10.0, 10.0, 10.0) == LatchState.BOTH

    def test_canopy_after_surface_is_ignored(self):
        assert advance_latch(LatchState.SURFACE_ONLY, 5.0, 0.0, 8.0, 2.0) == LatchState.SURFACE_ONLY

    def test_vegetation_latches_once(self):
        assert advance_latch(LatchState.VEGETATION_ONLY, 5.0, 0.0, 8.0, 2.0) == LatchState.VEGETATION_ONLY

    def test_both_is_absorbing(self):
        assert advance_latch(LatchState.BOTH, 5.0, 10.0, 8.0, 2.0) == LatchState.BOTH
        assert advance_latch(LatchState.BOTH, 50.0, 0.0, 8.0, 2.0) == LatchState.BOTH

    def test_comparisons_are_strict(self):
        # Grazing the surface or a canopy edge does not count as a hit
        assert advance_latch(LatchState.NONE, 10.0, 10.0, 10.0, 10.0) == LatchState.NONE
        assert advance_latch(LatchState.NONE, 8.0, 0.0, 8.0, 2.0) == LatchState.NONE
        assert advance_latch(LatchState.NONE, 2.0, 0.0, 8.0, 2.0) == LatchState.NONE

    def test_surface_check_wins_inside_canopy_band(self):
        assert advance_latch(LatchState.NONE, 5.0, 6.0, 8.0, 2.0) == LatchState.SURFACE_ONLY


class TestMarchRay:
    def test_flat_ground_is_open(self):
        grids = _row_grids([0, 0, 0, 0, 0, 0, 0])
        assert _march(grids, col=3) == LatchState.NONE

    def test_wall_blocks_horizontal_ray(self):
        grids = _row_grids([0, 0, 0, 0, 10])
        assert _march(grids, col=2) == LatchState.SURFACE_ONLY

    def test_ray_away_from_wall_is_open(self):
        grids = _row_grids([0, 0, 0, 0, 10])
        assert _march(grids, col=2, direction=WEST_ALONG_COLUMNS) == LatchState.NONE

    def test_rows_follow_sin_z(self):
        surface = np.zeros((5, 5), dtype=np.float32)
        surface[4, 2] = 10.0
        grids = (surface, surface.copy(), surface.copy())
        assert _march(grids, col=2, direction=(0.0, 1.0)) == LatchState.SURFACE_ONLY
        assert _march(grids, col=2, direction=(0.0, -1.0)) == LatchState.NONE

    def test_canopy_band_without_surface(self):
        grids = _row_grids([1, 1, 1, 1, 1], canopy_top_row=[1, 1, 1, 5, 1], canopy_bottom_row=[1, 1, 1, 0, 1])
        # Origin sits 1 above the ground; the horizontal ray passes through the band at column 3
        grids[0][:, 3] = 0.0
        assert _march(grids, col=2) == LatchState.VEGETATION_ONLY

    def test_canopy_then_wall_reaches_both(self):
        grids = _row_grids([1, 1, 1, 0, 10], canopy_top_row=[1, 1, 1, 5, 10], canopy_bottom_row=[1, 1, 1, 0, 10])
        assert _march(grids, col=2) == LatchState.BOTH

    def test_trace_radius_is_inclusive(self):
        grids = _row_grids([0, 0, 0, 0, 10])
        assert _march(grids, col=2, trace_radius=2.0) == LatchState.SURFACE_ONLY
        assert _march(grids, col=2, trace_radius=1.9) == LatchState.NONE

    def test_radius_below_one_never_steps(self):
        grids = _row_grids([0, 0, 0, 10, 10])
        assert _march(grids, col=2, trace_radius=0.5) == LatchState.NONE

    def test_leaving_the_grid_stops_the_ray(self):
        grids = _row_grids([0, 0, 0])
        assert _march(grids, col=0, direction=WEST_ALONG_COLUMNS, trace_radius=100.0) == LatchState.NONE

    def test_rising_ray_clears_low_wall(self):
        # At 45 degrees the ray is already 2.8 up when it reaches the wall in column 5
        c = float(np.cos(np.radians(45.0)))
        s = float(np.sin(np.radians(45.0)))
        grids = _row_grids([0, 0, 0, 0, 0, 1.0, 0, 0])
        assert _march(grids, col=2, altitude=(c, s), trace_radius=20.0) == LatchState.NONE

    def test_scale_converts_cells_to_height(self):
        # Two cells per metre: 45 degree ray gains only half as much height per cell
        c = float(np.cos(np.radians(45.0)))
        s = float(np.sin(np.radians(45.0)))
        grids = _row_grids([0, 0, 0, 0, 2.0])
        assert _march(grids, col=2, altitude=(c, s), trace_radius=20.0, scale=1.0) == LatchState.NONE
        assert _march(grids, col=2, altitude=(c, s), trace_radius=20.0, scale=2.0) == LatchState.SURFACE_ONLY
