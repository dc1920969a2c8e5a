"""
Per-pixel hemispherical sweep.

Every output pixel is computed independently. Its sweep visits the altitude
rings in ascending order and, within each ring, the azimuth slices in
ascending order. That order is fixed so floating-point accumulation is
reproducible between runs, tilings and worker counts.

The kernel functions are compiled with numba. ``sweep_rows`` releases the GIL
so row bands can run concurrently from a thread pool (see :mod:`skyview.tiling`).
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from numba import njit
from numpy.typing import NDArray

from .constants import ALTITUDE_MAX_DEG, ALTITUDE_MIN_DEG, DIVISIBILITY_TOLERANCE
from .physics.annulus import ring_weights
from .physics.raymarch import march_ray
from .physics.sectors import N_CLASSES, N_OUTPUTS, N_SECTORS, add_total_weight, record_occlusion, sector_mask, write_svf


@dataclass(frozen=True)
class AngularSampling:
    """
    Fixed discretization of the hemisphere shared by every pixel.

    Attributes:
        altitudes_deg: Ring altitudes, ascending, 0 to 90 inclusive.
        azimuths_deg: Slice azimuths, ascending, start inclusive and end exclusive.
        ring_weights: Annulus weight per ring (constant across azimuths).
        sector_mask: (n_azimuths, N_SECTORS) membership of each slice.
    """

    altitudes_deg: NDArray[np.float64]
    azimuths_deg: NDArray[np.float64]
    ring_weights: NDArray[np.float64]
    sector_mask: NDArray[np.bool_]

    @property
    def cos_altitude(self) -> NDArray[np.float64]:
        return np.cos(np.radians(self.altitudes_deg))

    @property
    def sin_altitude(self) -> NDArray[np.float64]:
        return np.sin(np.radians(self.altitudes_deg))

    @property
    def cos_azimuth(self) -> NDArray[np.float64]:
        return np.cos(np.radians(self.azimuths_deg))

    @property
    def sin_azimuth(self) -> NDArray[np.float64]:
        return np.sin(np.radians(self.azimuths_deg))

    @property
    def n_samples(self) -> int:
        return len(self.altitudes_deg) * len(self.azimuths_deg)


def _count_steps(span: float, interval: float) -> int:
    """Number of whole intervals in span, tolerant to float noise."""
    return int(math.floor(span / interval + DIVISIBILITY_TOLERANCE))


def build_angular_sampling(
    altitude_interval: float,
    azimuth_start: float,
    azimuth_end: float,
    azimuth_interval: float,
) -> AngularSampling:
    """
    Discretize the hemisphere.

    Altitudes are ``0, dA, 2dA, ...`` up to and including 90 degrees.
    Azimuths are ``start, start + dZ, ...`` strictly below ``end``. Positions
    are built from integer step counts so that boundary angles such as 90 and
    180 are hit exactly.

    Args:
        altitude_interval: Ring width in degrees.
        azimuth_start: First azimuth in degrees.
        azimuth_end: End of the azimuth sweep in degrees (exclusive).
        azimuth_interval: Slice width in degrees.
    """
    n_alt = _count_steps(ALTITUDE_MAX_DEG - ALTITUDE_MIN_DEG, altitude_interval) + 1
    altitudes = ALTITUDE_MIN_DEG + np.arange(n_alt, dtype=np.float64) * altitude_interval

    n_az = int(math.ceil((azimuth_end - azimuth_start) / azimuth_interval - DIVISIBILITY_TOLERANCE))
    n_az = max(n_az, 0)
    azimuths = azimuth_start + np.arange(n_az, dtype=np.float64) * azimuth_interval

    weights = ring_weights(np.radians(altitudes), math.radians(altitude_interval), math.radians(azimuth_interval))

    return AngularSampling(
        altitudes_deg=altitudes,
        azimuths_deg=azimuths,
        ring_weights=weights,
        sector_mask=sector_mask(azimuths),
    )


@njit
def sweep_pixel(
    surface,
    canopy_top,
    canopy_bottom,
    row,
    col,
    scale,
    trace_radius,
    cos_alt,
    sin_alt,
    weights,
    cos_az,
    sin_az,
    mask,
    out,
):
    """Run the full angular sweep for one pixel and write its 15 values into ``out[:, row, col]``."""
    totals = np.zeros(N_SECTORS, dtype=np.float64)
    occluded = np.zeros((N_CLASSES, N_SECTORS), dtype=np.float64)

    for i in range(weights.shape[0]):
        weight = weights[i]
        for j in range(cos_az.shape[0]):
            add_total_weight(totals, mask[j], weight)
            state = march_ray(
                surface,
                canopy_top,
                canopy_bottom,
                row,
                col,
                cos_az[j],
                sin_az[j],
                cos_alt[i],
                sin_alt[i],
                trace_radius,
                scale,
            )
            record_occlusion(occluded, mask[j], state, weight)

    write_svf(out, row, col, occluded, totals)


@njit(nogil=True)
def sweep_rows(
    surface,
    canopy_top,
    canopy_bottom,
    scale,
    trace_radius,
    cos_alt,
    sin_alt,
    weights,
    cos_az,
    sin_az,
    mask,
    row_start,
    row_end,
    out,
):
    """Sweep every pixel in rows ``[row_start, row_end)``. Rows past the grid are skipped."""
    rows, cols = surface.shape
    for row in range(row_start, row_end):
        if row < 0 or row >= rows:
            continue
        for col in range(cols):
            sweep_pixel(
                surface,
                canopy_top,
                canopy_bottom,
                row,
                col,
                scale,
                trace_radius,
                cos_alt,
                sin_alt,
                weights,
                cos_az,
                sin_az,
                mask,
                out,
            )


def allocate_output(rows: int, cols: int) -> NDArray[np.float32]:
    """Kernel output buffer, one slab per (class, sector) pair."""
    return np.full((N_OUTPUTS, rows, cols), np.nan, dtype=np.float32)


def compute_rows(
    surface: NDArray[np.float32],
    canopy_top: NDArray[np.float32],
    canopy_bottom: NDArray[np.float32],
    sampling: AngularSampling,
    scale: float,
    trace_radius: float,
    row_start: int,
    row_end: int,
    out: NDArray[np.float32],
) -> None:
    """Python entry point for the compiled row kernel."""
    sweep_rows(
        surface,
        canopy_top,
        canopy_bottom,
        float(scale),
        float(trace_radius),
        sampling.cos_altitude,
        sampling.sin_altitude,
        sampling.ring_weights,
        sampling.cos_azimuth,
        sampling.sin_azimuth,
        sampling.sector_mask,
        int(row_start),
        int(row_end),
        out,
    )
