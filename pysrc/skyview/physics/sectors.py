"""
Directional sector bookkeeping for one pixel's sweep.

Each angular sample adds its weight to the denominator of Total and of every
cardinal sector whose closed azimuth range contains it. Occlusions reported by
the ray marcher add the same weight to the matching numerators. Sector ranges
are half circles and overlap, so a sample always counts towards at least two
cardinal sectors, and samples on the boundary angles (0, 90, 180, 270) count
towards three.

Buffers:
    totals:   (N_SECTORS,) total weight per sector
    occluded: (N_CLASSES, N_SECTORS) occluded weight per class and sector
    out:      (N_CLASSES * N_SECTORS, rows, cols) final SVF grids
"""

from __future__ import annotations

from enum import IntEnum

import numpy as np
from numba import njit
from numpy.typing import NDArray

from .raymarch import LatchState


class DirectionalSector(IntEnum):
    """Aggregation buckets, in output order."""

    TOTAL = 0
    EAST = 1
    SOUTH = 2
    WEST = 3
    NORTH = 4


class OcclusionClass(IntEnum):
    """What blocked a ray, in output order."""

    SURFACE = 0
    VEGETATION = 1
    VEGETATION_ADJUSTED = 2


N_SECTORS = len(DirectionalSector)
N_CLASSES = len(OcclusionClass)
N_OUTPUTS = N_SECTORS * N_CLASSES

_SURFACE = int(OcclusionClass.SURFACE)
_VEGETATION = int(OcclusionClass.VEGETATION)
_ADJUSTED = int(OcclusionClass.VEGETATION_ADJUSTED)

# Closed azimuth ranges in degrees. East wraps through north-east.
SECTOR_RANGES_DEG = {
    DirectionalSector.SOUTH: ((0.0, 180.0),),
    DirectionalSector.WEST: ((90.0, 270.0),),
    DirectionalSector.NORTH: ((180.0, 360.0),),
    DirectionalSector.EAST: ((270.0, 360.0), (0.0, 90.0)),
}


def sectors_for_azimuth(azimuth_deg: float) -> list[DirectionalSector]:
    """Return Total plus every cardinal sector whose range contains ``azimuth_deg``."""
    sectors = [DirectionalSector.TOTAL]
    for sector in (DirectionalSector.EAST, DirectionalSector.SOUTH, DirectionalSector.WEST, DirectionalSector.NORTH):
        if any(lo <= azimuth_deg <= hi for lo, hi in SECTOR_RANGES_DEG[sector]):
            sectors.append(sector)
    return sectors


def sector_mask(azimuths_deg: NDArray[np.floating]) -> NDArray[np.bool_]:
    """
    Sector membership table for a set of azimuth slices.

    Returns:
        Boolean array of shape (len(azimuths_deg), N_SECTORS).
    """
    mask = np.zeros((len(azimuths_deg), N_SECTORS), dtype=np.bool_)
    for i, azimuth in enumerate(azimuths_deg):
        for sector in sectors_for_azimuth(float(azimuth)):
            mask[i, sector] = True
    return mask


@njit
def add_total_weight(totals, mask_row, weight):
    """Add a sample's weight to the denominator of each sector it belongs to."""
    for s in range(totals.shape[0]):
        if mask_row[s]:
            totals[s] += weight


@njit
def record_occlusion(occluded, mask_row, state, weight):
    """
    Add a finished ray's occlusions to the numerators.

    Events are applied in the order the ray produced them: vegetation first,
    then the move from vegetation to vegetation-adjusted, then surface.
    """
    if state == LatchState.NONE:
        return
    for s in range(occluded.shape[1]):
        if not mask_row[s]:
            continue
        if state == LatchState.VEGETATION_ONLY or state == LatchState.BOTH:
            occluded[_VEGETATION, s] += weight
        if state == LatchState.BOTH:
            occluded[_ADJUSTED, s] += weight
            occluded[_VEGETATION, s] -= weight
        if state == LatchState.SURFACE_ONLY or state == LatchState.BOTH:
            occluded[_SURFACE, s] += weight


@njit(error_model="numpy")
def write_svf(out, row, col, occluded, totals):
    """Write ``1 - occluded / total`` for every class and sector. Zero totals give NaN or inf."""
    n_classes, n_sectors = occluded.shape
    for c in range(n_classes):
        for s in range(n_sectors):
            out[c * n_sectors + s, row, col] = 1.0 - occluded[c, s] / totals[s]
