"""Input height fields."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from ..constants import DEFAULT_TRUNK_RATIO

if TYPE_CHECKING:
    from numpy.typing import NDArray


@dataclass
class HeightFieldGrids:
    """
    Co-registered height fields read by the sweep.

    All three grids share one shape and one vertical unit. ``canopy_bottom``
    should not exceed ``canopy_top``; this is not enforced, only warned about
    by :func:`skyview.validate_inputs`.

    Attributes:
        surface: Ground and building top elevations.
        canopy_top: Absolute elevation of the top of vegetation.
        canopy_bottom: Absolute elevation of the bottom of vegetation.

    Arrays are stored as C-contiguous float32. Shape checks happen in
    validate_inputs, not here, so mismatched inputs can still be inspected.
    """

    surface: NDArray[np.floating]
    canopy_top: NDArray[np.floating]
    canopy_bottom: NDArray[np.floating]

    def __post_init__(self):
        self.surface = np.ascontiguousarray(self.surface, dtype=np.float32)
        self.canopy_top = np.ascontiguousarray(self.canopy_top, dtype=np.float32)
        self.canopy_bottom = np.ascontiguousarray(self.canopy_bottom, dtype=np.float32)

    @classmethod
    def from_surface(
        cls,
        surface: NDArray[np.floating],
        canopy: NDArray[np.floating] | None = None,
        trunk: NDArray[np.floating] | None = None,
        trunk_ratio: float = DEFAULT_TRUNK_RATIO,
        canopy_relative: bool = True,
        base: NDArray[np.floating] | None = None,
    ) -> HeightFieldGrids:
        """
        Build grids from a surface and optional vegetation layers.

        Without ``canopy`` both canopy grids equal the surface, so no ray ever
        passes through a canopy band and the vegetation outputs stay at 1.

        Example:
            >>> grids = HeightFieldGrids.from_surface(dsm, canopy=cdsm, trunk_ratio=0.25)
        """
        surface = np.asarray(surface, dtype=np.float32)
        if canopy is None:
            return cls(surface=surface, canopy_top=surface.copy(), canopy_bottom=surface.copy())

        from ..vegetation import prepare_canopy

        canopy_top, canopy_bottom = prepare_canopy(
            surface,
            canopy,
            trunk=trunk,
            trunk_ratio=trunk_ratio,
            relative=canopy_relative,
            base=base,
        )
        return cls(surface=surface, canopy_top=canopy_top, canopy_bottom=canopy_bottom)

    @property
    def shape(self) -> tuple[int, ...]:
        return self.surface.shape

    @property
    def max_height(self) -> float:
        """Height of the tallest obstacle above the lowest surface point."""
        top = np.fmax(self.surface, self.canopy_top)
        height = float(np.nanmax(top) - np.nanmin(self.surface))
        return height if height > 0 else 0.0

    def crop(self, r0: int, r1: int, c0: int, c1: int) -> HeightFieldGrids:
        """Crop all grids to [r0:r1, c0:c1]."""
        return HeightFieldGrids(
            surface=self.surface[r0:r1, c0:c1].copy(),
            canopy_top=self.canopy_top[r0:r1, c0:c1].copy(),
            canopy_bottom=self.canopy_bottom[r0:r1, c0:c1].copy(),
        )
