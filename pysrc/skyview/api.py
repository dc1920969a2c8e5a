"""
Public API: validate inputs and compute sky view factors.

Example::

    import numpy as np
    import skyview

    dsm = np.zeros((200, 200), dtype=np.float32)
    dsm[80:120, 80:120] = 25.0
    grids = skyview.HeightFieldGrids.from_surface(dsm)

    svf = skyview.calculate_svf(grids, skyview.SvfConfig(scale=1.0))
    print(svf.svf.mean(), svf.svf_north.mean())
"""

from __future__ import annotations

import math
from collections.abc import Callable
from pathlib import Path
from typing import Any

import numpy as np

from .computation import build_angular_sampling
from .constants import ALTITUDE_MAX_DEG, DIVISIBILITY_TOLERANCE
from .errors import ConfigurationError, GridShapeMismatch, InvalidSurfaceData
from .models import HeightFieldGrids, SvfArrays, SvfConfig
from .skyview_logging import get_logger, set_global_feedback
from .tiling import run_tiled

logger = get_logger(__name__)

_GRID_FIELDS = ("surface", "canopy_top", "canopy_bottom")
_SECTOR_BOUNDARIES_DEG = (0.0, 90.0, 180.0, 270.0)


def _divides(span: float, interval: float) -> bool:
    quotient = span / interval
    return abs(quotient - round(quotient)) <= DIVISIBILITY_TOLERANCE * max(1.0, abs(quotient))


def _check_positive(parameter: str, value: float | None) -> None:
    if value is None or not math.isfinite(value) or value <= 0:
        raise ConfigurationError(parameter, f"must be a positive finite number, got {value}")


def _validate_config(config: SvfConfig) -> list[str]:
    warnings: list[str] = []

    _check_positive("scale", config.scale)
    _check_positive("altitude_interval", config.altitude_interval)
    _check_positive("azimuth_interval", config.azimuth_interval)

    if config.altitude_interval > ALTITUDE_MAX_DEG:
        raise ConfigurationError(
            "altitude_interval", f"must not exceed {ALTITUDE_MAX_DEG:g} degrees, got {config.altitude_interval}"
        )
    if not _divides(ALTITUDE_MAX_DEG, config.altitude_interval):
        raise ConfigurationError(
            "altitude_interval", f"must divide {ALTITUDE_MAX_DEG:g} degrees evenly, got {config.altitude_interval}"
        )

    if not (0.0 <= config.azimuth_start < config.azimuth_end <= 360.0):
        raise ConfigurationError(
            "azimuth_start/azimuth_end",
            f"need 0 <= start < end <= 360, got start={config.azimuth_start}, end={config.azimuth_end}",
        )
    span = config.azimuth_end - config.azimuth_start
    if not _divides(span, config.azimuth_interval):
        raise ConfigurationError(
            "azimuth_interval", f"must divide the azimuth span ({span:g} degrees) evenly, got {config.azimuth_interval}"
        )

    if config.trace_radius is not None:
        if not math.isfinite(config.trace_radius) or config.trace_radius < 0:
            raise ConfigurationError("trace_radius", f"must be a finite number >= 0, got {config.trace_radius}")
        if config.trace_radius < 1:
            warnings.append(f"trace_radius={config.trace_radius} is below 1 cell: no ray steps run, all SVF values are 1")

    for parameter in ("workers", "band_rows"):
        value = getattr(config, parameter)
        if value is not None and value < 1:
            raise ConfigurationError(parameter, f"must be >= 1, got {value}")

    if span < 360.0:
        warnings.append(
            f"Azimuth sweep covers {span:g} degrees only: sectors outside it get no weight and non-finite SVF"
        )

    off_grid = [
        b
        for b in _SECTOR_BOUNDARIES_DEG
        if config.azimuth_start <= b < config.azimuth_end
        and not _divides(b - config.azimuth_start, config.azimuth_interval)
    ]
    if off_grid:
        warnings.append(
            f"azimuth_interval={config.azimuth_interval} does not land on sector boundaries {off_grid}: "
            "directional denominators are approximate"
        )

    return warnings


def validate_inputs(grids: HeightFieldGrids, config: SvfConfig | None = None) -> list[str]:
    """
    Check grids and parameters before the sweep.

    Raises on anything that would make the sweep meaningless and returns
    warnings for conditions the sweep tolerates. Each warning is also logged.

    Args:
        grids: Height fields to check.
        config: Sweep parameters. Defaults to ``SvfConfig.defaults()``.

    Returns:
        List of warning messages (empty when everything looks fine).

    Raises:
        InvalidSurfaceData: A grid is not 2D, is empty, or holds non-finite heights.
        GridShapeMismatch: A canopy grid differs in shape from the surface.
        ConfigurationError: A parameter is out of range or an interval does
            not divide its range.
    """
    config = config or SvfConfig.defaults()
    warnings: list[str] = []

    surface = grids.surface
    if surface.ndim != 2:
        raise InvalidSurfaceData(
            f"Surface grid must be 2D, got {surface.ndim}D", field="surface", expected="2D", got=f"{surface.ndim}D"
        )
    if surface.size == 0:
        raise InvalidSurfaceData("Surface grid is empty", field="surface", expected="non-empty grid", got="0 pixels")

    for name in _GRID_FIELDS[1:]:
        grid = getattr(grids, name)
        if grid.shape != surface.shape:
            raise GridShapeMismatch(name, surface.shape, grid.shape)

    for name in _GRID_FIELDS:
        grid = getattr(grids, name)
        n_bad = int(np.count_nonzero(~np.isfinite(grid)))
        if n_bad:
            raise InvalidSurfaceData(
                f"Grid '{name}' has {n_bad} non-finite heights. Fill NaN/nodata before computing SVF.",
                field=name,
                expected="finite heights",
                got=f"{n_bad} non-finite",
            )

    n_inverted = int(np.count_nonzero(grids.canopy_bottom > grids.canopy_top))
    if n_inverted:
        warnings.append(f"{n_inverted} pixels have canopy_bottom above canopy_top: those pixels never form a canopy band")

    warnings.extend(_validate_config(config))

    for message in warnings:
        logger.warning(message)
    return warnings


def calculate_svf(
    grids: HeightFieldGrids,
    config: SvfConfig | None = None,
    feedback: Any = None,
    progress_callback: Callable[[int, int], None] | None = None,
    show_progress: bool = True,
) -> SvfArrays:
    """
    Compute the 15 sky view factor grids.

    Args:
        grids: Surface, canopy-top and canopy-bottom elevations.
        config: Sweep parameters. Defaults to ``SvfConfig.defaults()``.
        feedback: Optional host feedback object. Receives progress and the
            messages of every skyview logger while the sweep runs, and is
            polled for cancellation.
        progress_callback: Optional ``callback(done, total)`` per finished band.
        show_progress: If False, no progress bar is shown.

    Returns:
        SvfArrays with surface, vegetation and vegetation-adjusted SVF for the
        total hemisphere and each cardinal sector.

    Raises:
        SkyviewError: From :func:`validate_inputs`, before any work is done.
    """
    config = config or SvfConfig.defaults()
    if feedback is not None:
        set_global_feedback(feedback)
    try:
        validate_inputs(grids, config)

        trace_radius = config.resolve_trace_radius(grids.max_height)
        sampling = build_angular_sampling(
            config.altitude_interval,
            config.azimuth_start,
            config.azimuth_end,
            config.azimuth_interval,
        )

        stacked = run_tiled(
            grids,
            sampling,
            config.scale,
            trace_radius,
            band_rows=config.band_rows,
            workers=config.workers,
            feedback=feedback,
            progress_callback=progress_callback,
            show_progress=show_progress,
        )
    finally:
        if feedback is not None:
            set_global_feedback(None)
    return SvfArrays.from_stack(stacked)


def generate_svf(
    surface_path: str | Path,
    out_dir: str | Path,
    canopy_path: str | Path | None = None,
    trunk_path: str | Path | None = None,
    dem_path: str | Path | None = None,
    config: SvfConfig | None = None,
    canopy_relative: bool = True,
    feedback: Any = None,
) -> SvfArrays:
    """
    File-based pipeline: load rasters, compute SVF, write ``svfs.zip``.

    Also writes ``svf_total.tif`` (see :meth:`SvfArrays.svf_total`) when a
    canopy raster is given.

    Args:
        surface_path: Surface (DSM) GeoTIFF.
        out_dir: Output directory, created if missing.
        canopy_path: Optional canopy-top (CDSM) GeoTIFF.
        trunk_path: Optional canopy-bottom (TDSM) GeoTIFF.
        dem_path: Optional ground (DEM) GeoTIFF used as base for relative canopy.
        config: Sweep parameters. If None, ``scale`` is taken from the surface
            raster's pixel size.
        canopy_relative: Whether canopy/trunk rasters hold heights above ground.
        feedback: Optional host feedback object.
    """
    from . import io as common

    surface, trf, crs_wkt, _nodata = common.load_raster(surface_path)
    if config is None:
        config = SvfConfig.from_pixel_size(abs(trf[1]))

    def load_aligned(path: str | Path | None, field: str):
        if path is None:
            return None
        arr, _, _, _ = common.load_raster(path)
        if arr.shape != surface.shape:
            raise GridShapeMismatch(field, surface.shape, arr.shape)
        return arr

    canopy = load_aligned(canopy_path, "canopy_top")
    trunk = load_aligned(trunk_path, "canopy_bottom")
    dem = load_aligned(dem_path, "dem")

    grids = HeightFieldGrids.from_surface(
        surface,
        canopy=canopy,
        trunk=trunk,
        trunk_ratio=config.trunk_ratio,
        canopy_relative=canopy_relative,
        base=dem,
    )
    svf = calculate_svf(grids, config, feedback=feedback)

    out_path = Path(out_dir)
    common.save_svfs_zip(svf, out_path, trf, crs_wkt)
    if canopy is not None:
        common.save_raster(out_path / "svf_total.tif", svf.svf_total(config.transmissivity), trf, crs_wkt)

    return svf
