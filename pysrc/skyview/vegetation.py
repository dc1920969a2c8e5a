"""
Canopy preparation.

The sweep needs absolute canopy-top and canopy-bottom elevations. Vegetation
rasters usually arrive as heights above ground, and often without a trunk
(canopy bottom) layer. This module turns them into absolute grids.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from .constants import DEFAULT_TRUNK_RATIO, MIN_VEGETATION_HEIGHT
from .skyview_logging import get_logger

logger = get_logger(__name__)


def _to_absolute(relative: NDArray[np.floating], base: NDArray[np.floating]) -> NDArray[np.float32]:
    """Add relative heights to base; NaN vegetation counts as none, thin vegetation collapses to base."""
    zero32 = np.float32(0.0)
    nan32 = np.float32(np.nan)
    threshold = np.float32(MIN_VEGETATION_HEIGHT)

    rel = np.where(np.isnan(relative), zero32, relative)
    absolute = np.where(~np.isnan(base), base + rel, nan32)
    absolute = np.where(absolute - base < threshold, base, absolute)
    return absolute.astype(np.float32)


def prepare_canopy(
    surface: NDArray[np.floating],
    canopy: NDArray[np.floating],
    trunk: NDArray[np.floating] | None = None,
    trunk_ratio: float = DEFAULT_TRUNK_RATIO,
    relative: bool = True,
    base: NDArray[np.floating] | None = None,
) -> tuple[NDArray[np.float32], NDArray[np.float32]]:
    """
    Build absolute canopy-top and canopy-bottom grids.

    Steps:
        1. Generate the trunk (canopy bottom) layer as ``canopy * trunk_ratio``
           when no trunk grid is given.
        2. If ``relative``, add both layers to the base elevation (``base`` if
           given, e.g. a DEM, otherwise the surface).
        3. Pixels with less than 0.1 vertical units of vegetation fall back to
           the base, so they never form a canopy band.
        4. NaN vegetation counts as none and falls back to the base, for both
           relative and absolute layers.

    Args:
        surface: Surface elevation grid.
        canopy: Canopy-top grid (relative or absolute).
        trunk: Canopy-bottom grid in the same convention as ``canopy``.
        trunk_ratio: Trunk fraction of canopy height for auto-generation.
        relative: Whether ``canopy`` and ``trunk`` are heights above ground.
        base: Ground elevation for relative layers and for filling NaN.
            Defaults to ``surface``.

    Returns:
        Tuple of (canopy_top, canopy_bottom) as float32.
    """
    canopy = np.asarray(canopy, dtype=np.float32)

    if trunk is None:
        logger.info(f"Auto-generating canopy bottom from canopy top using trunk_ratio={trunk_ratio}")
        trunk = (canopy * np.float32(trunk_ratio)).astype(np.float32)
    else:
        trunk = np.asarray(trunk, dtype=np.float32)

    ground = np.asarray(base if base is not None else surface, dtype=np.float32)

    if not relative:
        # Absolute layers: nodata means no vegetation, so it sits on the ground
        canopy_top = np.where(np.isnan(canopy), ground, canopy).astype(np.float32)
        canopy_bottom = np.where(np.isnan(trunk), ground, trunk).astype(np.float32)
        return canopy_top, canopy_bottom

    canopy_top = _to_absolute(canopy, ground)
    canopy_bottom = _to_absolute(trunk, ground)
    logger.info(f"Converted relative canopy to absolute (base: {'DEM' if base is not None else 'surface'})")
    return canopy_top, canopy_bottom
