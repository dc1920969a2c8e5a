"""Shared pytest configuration and synthetic grid builders."""

import numpy as np
import pytest
from skyview import HeightFieldGrids, SvfConfig
from skyview.constants import SVF_FIELD_NAMES


def make_flat_grids(shape=(9, 9), height: float = 0.0) -> HeightFieldGrids:
    """Flat, obstruction-free surface without vegetation."""
    return HeightFieldGrids.from_surface(np.full(shape, height, dtype=np.float32))


def make_walled_grids(size: int = 7, wall_height: float = 1000.0) -> HeightFieldGrids:
    """Every pixel at ``wall_height`` except a ground-level pit in the centre."""
    dsm = np.full((size, size), wall_height, dtype=np.float32)
    dsm[size // 2, size // 2] = 0.0
    return HeightFieldGrids.from_surface(dsm)


def make_canopy_grids(size: int = 9, canopy_top: float = 10.0, border_wall: float | None = None) -> HeightFieldGrids:
    """
    Flat ground covered by canopy from 0 to ``canopy_top``, open above the centre pixel.

    With ``border_wall`` the outermost ring of pixels becomes a surface wall of
    that height, standing behind the canopy as seen from the centre.
    """
    dsm = np.zeros((size, size), dtype=np.float32)
    top = np.full((size, size), canopy_top, dtype=np.float32)
    bottom = np.zeros((size, size), dtype=np.float32)

    centre = size // 2
    top[centre, centre] = 0.0

    if border_wall is not None:
        for grid in (dsm, top, bottom):
            grid[0, :] = border_wall
            grid[-1, :] = border_wall
            grid[:, 0] = border_wall
            grid[:, -1] = border_wall

    return HeightFieldGrids(surface=dsm, canopy_top=top, canopy_bottom=bottom)


def make_mock_svf(shape: tuple[int, ...], value: float = 1.0):
    """Create an SvfArrays filled with one value (1.0 is a fully open sky)."""
    from skyview import SvfArrays

    filled = np.full(shape, value, dtype=np.float32)
    return SvfArrays(**{name: filled.copy() for name in SVF_FIELD_NAMES})


@pytest.fixture
def coarse_config():
    """10 degree rings and slices keep the sweep fast while hitting every sector boundary."""
    return SvfConfig(altitude_interval=10, azimuth_interval=10, trace_radius=40, workers=1)
