"""Sky view factor result grids.

Defines :class:`SvfArrays`, the 15 directional sky view factor grids produced
by :func:`skyview.calculate_svf`: five sectors (total, north, east, south,
west) for each of three occlusion classes (surface, vegetation,
vegetation-adjusted). They can be written to and read from the ``svfs.zip``
layout used by SOLWEIG.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import TYPE_CHECKING, Literal

import numpy as np

from ..constants import DEFAULT_TRANSMISSIVITY, SVF_FIELD_NAMES, SVF_FILE_NAMES
from ..skyview_logging import get_logger

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = get_logger(__name__)


@dataclass
class SvfArrays:
    """
    Sky view factor grids.

    Attributes:
        svf: Total SVF against surface occlusion.
        svf_north, svf_east, svf_south, svf_west: Directional surface SVF.
        svf_veg: SVF against vegetation occlusion.
        svf_veg_north, svf_veg_east, svf_veg_south, svf_veg_west: Directional.
        svf_aveg: SVF against vegetation that also blocks the surface
            (vegetation-adjusted).
        svf_aveg_north, svf_aveg_east, svf_aveg_south, svf_aveg_west: Directional.

    Values are nominally in [0, 1] but are not clamped.

    Memory note:
        All arrays are stored as float32. For a 768x768 grid with all 15 arrays,
        total memory is approximately 35 MB.
    """

    svf: NDArray[np.floating]
    svf_north: NDArray[np.floating]
    svf_east: NDArray[np.floating]
    svf_south: NDArray[np.floating]
    svf_west: NDArray[np.floating]
    svf_veg: NDArray[np.floating]
    svf_veg_north: NDArray[np.floating]
    svf_veg_east: NDArray[np.floating]
    svf_veg_south: NDArray[np.floating]
    svf_veg_west: NDArray[np.floating]
    svf_aveg: NDArray[np.floating]
    svf_aveg_north: NDArray[np.floating]
    svf_aveg_east: NDArray[np.floating]
    svf_aveg_south: NDArray[np.floating]
    svf_aveg_west: NDArray[np.floating]

    def __post_init__(self):
        # np.asarray keeps memmaps as long as the dtype already matches
        def ensure_f32(arr):
            if isinstance(arr, np.memmap):
                if arr.dtype != np.float32:
                    logger.warning("Memmap array has wrong dtype, loading into memory")
                    return np.asarray(arr, dtype=np.float32)
                return arr
            return np.asarray(arr, dtype=np.float32)

        for f in fields(self):
            setattr(self, f.name, ensure_f32(getattr(self, f.name)))

    @property
    def shape(self) -> tuple[int, ...]:
        return self.svf.shape

    @property
    def svfbuveg(self) -> NDArray[np.floating]:
        """Combined surface + vegetation SVF. Computed on-demand."""
        return np.clip(self.svf + self.svf_veg - 1.0, 0.0, 1.0)

    @property
    def svfalfa(self) -> NDArray[np.floating]:
        """SVF-equivalent obstruction angle in radians. Computed on-demand."""
        tmp = self.svfbuveg
        eps = np.finfo(np.float32).tiny
        safe_term = np.clip(1.0 - tmp, eps, 1.0)
        return np.arcsin(np.exp(np.log(safe_term) / 2.0))

    def svf_total(self, transmissivity: float = DEFAULT_TRANSMISSIVITY) -> NDArray[np.floating]:
        """
        Total SVF with partially transparent vegetation.

        ``svf - (1 - svf_veg) * (1 - transmissivity)``
        """
        return (self.svf - (1.0 - self.svf_veg) * (1.0 - transmissivity)).astype(np.float32)

    def stack(self) -> NDArray[np.float32]:
        """Stack into the (15, rows, cols) kernel layout, in ``SVF_FIELD_NAMES`` order."""
        return np.stack([getattr(self, name) for name in SVF_FIELD_NAMES]).astype(np.float32)

    @classmethod
    def from_stack(cls, stacked: NDArray[np.floating]) -> SvfArrays:
        """Build from a (15, rows, cols) kernel buffer."""
        if stacked.shape[0] != len(SVF_FIELD_NAMES):
            raise ValueError(f"Expected {len(SVF_FIELD_NAMES)} stacked grids, got {stacked.shape[0]}")
        return cls(**{name: stacked[i] for i, name in enumerate(SVF_FIELD_NAMES)})

    def crop(self, r0: int, r1: int, c0: int, c1: int) -> SvfArrays:
        """Crop all SVF arrays to [r0:r1, c0:c1]."""
        return SvfArrays(**{name: getattr(self, name)[r0:r1, c0:c1].copy() for name in SVF_FIELD_NAMES})

    @classmethod
    def from_zip(cls, zip_path: str | Path) -> SvfArrays:
        """
        Load SVF arrays from svfs.zip format (see :func:`skyview.io.save_svfs_zip`).

        Files are extracted to a temporary directory and loaded as float32.
        """
        import tempfile
        import zipfile

        from .. import io as common

        zip_path = Path(zip_path)
        if not zip_path.exists():
            raise FileNotFoundError(f"SVF zip file not found: {zip_path}")

        with tempfile.TemporaryDirectory() as tmpdir:
            with zipfile.ZipFile(str(zip_path), "r") as zf:
                zf.extractall(tmpdir)

            tmppath = Path(tmpdir)

            def load(filename: str) -> NDArray[np.floating]:
                filepath = tmppath / filename
                if not filepath.exists():
                    raise FileNotFoundError(f"Expected SVF file not found in zip: {filename}")
                data, _, _, _ = common.load_raster(str(filepath))
                return data

            arrays = {name: load(SVF_FILE_NAMES[name]) for name in SVF_FIELD_NAMES}

        return cls(**arrays)

    def to_memmap(self, directory: str | Path) -> Path:
        """
        Save SVF arrays as .npy files that :meth:`from_memmap` maps lazily.

        Returns:
            Path to the directory containing the files.
        """
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)

        for name in SVF_FIELD_NAMES:
            np.save(directory / f"{name}.npy", getattr(self, name))

        logger.info(f"Saved SVF memmap cache to {directory} ({len(SVF_FIELD_NAMES)} arrays)")
        return directory

    @classmethod
    def from_memmap(cls, directory: str | Path, mode: Literal["r", "r+", "c"] = "r") -> SvfArrays:
        """
        Load SVF arrays as memory-mapped files.

        Args:
            directory: Directory written by :meth:`to_memmap`.
            mode: Memory-map mode. Default "r" (read-only).
        """
        directory = Path(directory)
        if not directory.exists():
            raise FileNotFoundError(f"SVF memmap directory not found: {directory}")

        def load_memmap(name: str) -> np.ndarray:
            path = directory / f"{name}.npy"
            if not path.exists():
                raise FileNotFoundError(f"SVF memmap file not found: {path}")
            return np.load(path, mmap_mode=mode)

        return cls(**{name: load_memmap(name) for name in SVF_FIELD_NAMES})
