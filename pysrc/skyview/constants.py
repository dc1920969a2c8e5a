"""
Constants and default parameters for the sky view factor sweep.

Angles are in degrees unless the name says otherwise.
"""

# =============================================================================
# Hemisphere discretization
# =============================================================================

# Altitude rings always span the horizon (0) to the zenith (90), inclusive.
ALTITUDE_MIN_DEG = 0.0
ALTITUDE_MAX_DEG = 90.0

# Default ring and slice widths
DEFAULT_ALTITUDE_INTERVAL_DEG = 5.0
DEFAULT_AZIMUTH_INTERVAL_DEG = 5.0

# Full azimuth sweep
DEFAULT_AZIMUTH_START_DEG = 0.0
DEFAULT_AZIMUTH_END_DEG = 360.0

# Tolerance used when checking that an interval divides its range
DIVISIBILITY_TOLERANCE = 1e-9


# =============================================================================
# Ray marching
# =============================================================================

# Rays start one grid cell from the origin
RAY_START_RADIUS = 1.0

# Adaptive step: max(RAY_MIN_STEP, RAY_STEP_FRACTION * radius * cos(altitude))
RAY_MIN_STEP = 1.0
RAY_STEP_FRACTION = 0.1

# Lowest altitude considered when deriving a trace radius from obstacle height.
# Same as the minimum sun elevation used by SOLWEIG.
MIN_ALTITUDE_DEG = 3.0

# Upper bound on a derived trace radius (grid cells)
MAX_TRACE_RADIUS = 1000.0


# =============================================================================
# Vegetation
# =============================================================================

# Trunk zone height as a fraction of canopy height when no trunk grid is given
DEFAULT_TRUNK_RATIO = 0.25

# Vegetation thinner than this (vertical units) is treated as absent
MIN_VEGETATION_HEIGHT = 0.1

# Default canopy transmissivity used for the combined svf_total product
DEFAULT_TRANSMISSIVITY = 0.03


# =============================================================================
# Output layout
# =============================================================================

# Order of the 15 output grids in the (15, rows, cols) kernel buffer:
# class-major (surface, vegetation, vegetation-adjusted), then sector
# (total, east, south, west, north).
SVF_FIELD_NAMES = (
    "svf",
    "svf_east",
    "svf_south",
    "svf_west",
    "svf_north",
    "svf_veg",
    "svf_veg_east",
    "svf_veg_south",
    "svf_veg_west",
    "svf_veg_north",
    "svf_aveg",
    "svf_aveg_east",
    "svf_aveg_south",
    "svf_aveg_west",
    "svf_aveg_north",
)

# GeoTIFF names inside svfs.zip, keyed by field name
SVF_FILE_NAMES = {
    "svf": "svf.tif",
    "svf_east": "svfE.tif",
    "svf_south": "svfS.tif",
    "svf_west": "svfW.tif",
    "svf_north": "svfN.tif",
    "svf_veg": "svfveg.tif",
    "svf_veg_east": "svfEveg.tif",
    "svf_veg_south": "svfSveg.tif",
    "svf_veg_west": "svfWveg.tif",
    "svf_veg_north": "svfNveg.tif",
    "svf_aveg": "svfaveg.tif",
    "svf_aveg_east": "svfEaveg.tif",
    "svf_aveg_south": "svfSaveg.tif",
    "svf_aveg_west": "svfWaveg.tif",
    "svf_aveg_north": "svfNaveg.tif",
}


__all__ = [
    "ALTITUDE_MIN_DEG",
    "ALTITUDE_MAX_DEG",
    "DEFAULT_ALTITUDE_INTERVAL_DEG",
    "DEFAULT_AZIMUTH_INTERVAL_DEG",
    "DEFAULT_AZIMUTH_START_DEG",
    "DEFAULT_AZIMUTH_END_DEG",
    "DIVISIBILITY_TOLERANCE",
    "RAY_START_RADIUS",
    "RAY_MIN_STEP",
    "RAY_STEP_FRACTION",
    "MIN_ALTITUDE_DEG",
    "MAX_TRACE_RADIUS",
    "DEFAULT_TRUNK_RATIO",
    "MIN_VEGETATION_HEIGHT",
    "DEFAULT_TRANSMISSIVITY",
    "SVF_FIELD_NAMES",
    "SVF_FILE_NAMES",
]
