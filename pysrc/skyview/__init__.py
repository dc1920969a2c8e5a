"""skyview - Sky view factor from raster height fields.

Computes the sky view factor of every pixel of a surface grid, optionally
with a vegetation canopy, by marching rays over a discretized hemisphere.
Fifteen grids come out: surface, vegetation and vegetation-adjusted SVF for
the whole hemisphere and for each cardinal half (east, south, west, north).

Quick start::

    import skyview

    grids = skyview.HeightFieldGrids.from_surface(dsm, canopy=cdsm)
    svf = skyview.calculate_svf(grids, skyview.SvfConfig.from_pixel_size(1.0))
    print(f"Mean SVF: {svf.svf.mean():.3f}")

File pipeline::

    # Writes out_dir/svfs.zip in the layout SOLWEIG reads
    skyview.generate_svf("dsm.tif", "out_dir", canopy_path="cdsm.tif")
"""

import logging
from importlib.metadata import PackageNotFoundError, version

logger = logging.getLogger(__name__)

# Version: single source of truth is pyproject.toml
try:
    __version__ = version("skyview")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"  # Fallback for source checkouts without metadata

from . import io, progress  # noqa: E402
from .api import calculate_svf, generate_svf, validate_inputs  # noqa: E402
from .config import load_params  # noqa: E402
from .errors import ConfigurationError, GridShapeMismatch, InvalidSurfaceData, SkyviewError  # noqa: E402
from .models import HeightFieldGrids, SvfArrays, SvfConfig  # noqa: E402
from .tiling import calculate_trace_radius  # noqa: E402

__all__ = [
    "__version__",
    # Core API
    "calculate_svf",
    "validate_inputs",
    "generate_svf",
    # Data models
    "HeightFieldGrids",
    "SvfConfig",
    "SvfArrays",
    # Configuration
    "load_params",
    "calculate_trace_radius",
    # Errors
    "SkyviewError",
    "InvalidSurfaceData",
    "GridShapeMismatch",
    "ConfigurationError",
    # Modules
    "io",
    "progress",
]
