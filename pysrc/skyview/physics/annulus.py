"""
Annulus weight of one discretized hemisphere cell.

The weight of an (altitude, azimuth) cell is the area of the spherical zone
between ``altitude - dA/2`` and ``altitude + dA/2``, scaled by the azimuth
width and projected onto the horizontal plane with ``cos(altitude)``.
"""

from __future__ import annotations

import math

import numpy as np
from numba import njit
from numpy.typing import NDArray


@njit
def annulus_weight(altitude: float, altitude_interval: float, azimuth_interval: float) -> float:
    """
    Solid-angle-equivalent weight of one hemisphere cell.

    Args:
        altitude: Ring altitude in radians, within [0, pi/2].
        altitude_interval: Ring width in radians (> 0).
        azimuth_interval: Slice width in radians (> 0).

    Returns:
        ``dZ * (cos(a - dA/2) - cos(a + dA/2)) * cos(a)``. No clamping.
    """
    half = altitude_interval / 2.0
    return azimuth_interval * (math.cos(altitude - half) - math.cos(altitude + half)) * math.cos(altitude)


def ring_weights(
    altitudes: NDArray[np.floating], altitude_interval: float, azimuth_interval: float
) -> NDArray[np.float64]:
    """Evaluate :func:`annulus_weight` once per altitude ring (radians in, weights out)."""
    weights = np.empty(len(altitudes), dtype=np.float64)
    for i, altitude in enumerate(altitudes):
        weights[i] = annulus_weight(float(altitude), altitude_interval, azimuth_interval)
    return weights
