"""
Ray marching over raster height fields.

A ray leaves the origin pixel at a fixed (altitude, azimuth) and samples the
surface and canopy grids at growing horizontal distances. What the ray hits
is tracked as a one-shot latch state:

    NONE --canopy band--> VEGETATION_ONLY --below surface--> BOTH
      \\
       `--below surface--> SURFACE_ONLY

SURFACE_ONLY and BOTH are absorbing. Reaching BOTH from VEGETATION_ONLY means
the ray's vegetation occlusion is reclassified as vegetation-adjusted, since
the surface would have blocked the ray anyway.
"""

from __future__ import annotations

import math
from enum import IntEnum

from numba import njit

from ..constants import RAY_MIN_STEP, RAY_START_RADIUS, RAY_STEP_FRACTION


class LatchState(IntEnum):
    """Occlusions registered so far along one ray."""

    NONE = 0
    VEGETATION_ONLY = 1
    SURFACE_ONLY = 2
    BOTH = 3


@njit
def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero."""
    if value >= 0.0:
        return int(math.floor(value + 0.5))
    return -int(math.floor(-value + 0.5))


@njit
def advance_latch(
    state: LatchState,
    ray_height: float,
    surface_height: float,
    canopy_top: float,
    canopy_bottom: float,
) -> LatchState:
    """
    Apply one height sample to the latch state.

    Checked in order: surface block after vegetation (reclassification),
    surface block, canopy band. Each transition fires at most once per ray.
    """
    if ray_height < surface_height:
        if state == LatchState.VEGETATION_ONLY:
            return LatchState.BOTH
        if state == LatchState.NONE:
            return LatchState.SURFACE_ONLY
        return state
    if state == LatchState.NONE and canopy_bottom < ray_height and ray_height < canopy_top:
        return LatchState.VEGETATION_ONLY
    return state


@njit
def march_ray(
    surface,
    canopy_top,
    canopy_bottom,
    row: int,
    col: int,
    cos_z: float,
    sin_z: float,
    cos_a: float,
    sin_a: float,
    trace_radius: float,
    scale: float,
) -> LatchState:
    """
    Trace one directional sample outward from ``(row, col)``.

    Args:
        surface, canopy_top, canopy_bottom: 2D height grids of equal shape.
        row, col: Origin pixel.
        cos_z, sin_z: Azimuth direction; ``cos_z`` steps columns, ``sin_z`` steps rows.
        cos_a, sin_a: Cosine and sine of the ray altitude.
        trace_radius: Maximum radius in grid cells (inclusive).
        scale: Grid cells per vertical unit.

    Returns:
        Final latch state. A ray that leaves the grid keeps whatever it had
        latched before leaving.
    """
    rows, cols = surface.shape
    origin_height = surface[row, col]
    state = LatchState.NONE
    radius = RAY_START_RADIUS

    while radius <= trace_radius:
        horizontal = radius * cos_a
        y = row + round_half_away(horizontal * sin_z)
        x = col + round_half_away(horizontal * cos_z)
        if x < 0 or y < 0 or x >= cols or y >= rows:
            break

        ray_height = origin_height + (radius / scale) * sin_a
        state = advance_latch(state, ray_height, surface[y, x], canopy_top[y, x], canopy_bottom[y, x])
        if state == LatchState.BOTH:
            break

        radius += max(RAY_MIN_STEP, RAY_STEP_FRACTION * horizontal)

    return state
