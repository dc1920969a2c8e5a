"""Data models for sky view factor calculations.

Modules
-------
grids
    ``HeightFieldGrids`` - surface, canopy-top and canopy-bottom elevations.
config
    ``SvfConfig`` - sweep parameters.
svf
    ``SvfArrays`` - the 15 output grids.
"""

from .config import SvfConfig
from .grids import HeightFieldGrids
from .svf import SvfArrays

__all__ = [
    "HeightFieldGrids",
    "SvfConfig",
    "SvfArrays",
]
