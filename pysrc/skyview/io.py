"""
Raster I/O for height fields and SVF outputs.

Transforms are passed around GDAL-style:
``[top_left_x, pixel_width, rotation, top_left_y, rotation, pixel_height]``.
"""

from __future__ import annotations

import os
import zipfile
from pathlib import Path

import numpy as np
import rasterio
from rasterio.crs import CRS
from rasterio.transform import Affine

from .constants import SVF_FIELD_NAMES, SVF_FILE_NAMES
from .models.svf import SvfArrays
from .skyview_logging import get_logger

logger = get_logger(__name__)


def _assert_north_up(transform: Affine) -> None:
    """Reject rotated rasters; the sweep assumes rows run north to south."""
    if transform.b != 0 or transform.d != 0:
        raise ValueError(f"Rotated rasters are not supported (transform={tuple(transform)[:6]})")


def check_path(path_str: str | Path, make_dir: bool = False) -> Path:
    """Resolve a path, optionally creating its parent directory."""
    path = Path(path_str).expanduser().resolve()
    if make_dir:
        path.parent.mkdir(parents=True, exist_ok=True)
    return path


def load_raster(
    path_str: str | Path, band: int = 0, coerce_f64_to_f32: bool = True
) -> tuple[np.ndarray, list[float], str | None, float | None]:
    """
    Load one band of a raster.

    Args:
        path_str: Path to raster file
        band: Band index to read (0-based)
        coerce_f64_to_f32: If True, coerce float64 data to float32

    Returns:
        Tuple of (array, transform, crs_wkt, no_data_value). No-data pixels
        are replaced with NaN.
    """
    path = check_path(path_str, make_dir=False)
    if not path.exists():
        raise FileNotFoundError(f"Raster file {path} does not exist.")

    with rasterio.open(path) as dataset:
        _assert_north_up(dataset.transform)
        if band < 0 or band >= dataset.count:
            raise IndexError(f"Requested band {band} out of range; raster has {dataset.count} band(s)")
        crs_wkt = dataset.crs.to_wkt() if dataset.crs is not None else None
        no_data_val = dataset.nodata
        trf = dataset.transform
        rast_arr = dataset.read(band + 1)

    trf_arr = [trf.c, trf.a, trf.b, trf.f, trf.d, trf.e]

    if coerce_f64_to_f32 and rast_arr.dtype == np.float64:
        rast_arr = rast_arr.astype(np.float32)
    if no_data_val is not None and not np.isnan(no_data_val):
        logger.info(f"No-data value is {no_data_val}, replacing with NaN")
        rast_arr = rast_arr.astype(np.float32)
        rast_arr[rast_arr == no_data_val] = np.nan
    if rast_arr.size == 0:
        raise ValueError("Raster array is empty")
    return rast_arr, trf_arr, crs_wkt, no_data_val


def save_raster(
    out_path_str: str | Path,
    data_arr: np.ndarray,
    trf_arr: list[float],
    crs_wkt: str | None,
    no_data_val: float = -9999,
    coerce_f64_to_f32: bool = True,
) -> None:
    """
    Save a 2D array as a single-band GeoTIFF.

    Args:
        out_path_str: Output file path
        data_arr: 2D numpy array to save
        trf_arr: GDAL-style geotransform
        crs_wkt: CRS in WKT format, or None
        no_data_val: No-data value to use
        coerce_f64_to_f32: If True, convert float64 arrays to float32 before saving
    """
    if coerce_f64_to_f32 and data_arr.dtype == np.float64:
        data_arr = data_arr.astype(np.float32)

    out_path = check_path(out_path_str, make_dir=True)
    height, width = data_arr.shape
    crs = CRS.from_wkt(crs_wkt) if crs_wkt else None

    with rasterio.open(
        out_path,
        "w",
        driver="GTiff",
        height=height,
        width=width,
        count=1,
        dtype=data_arr.dtype,
        crs=crs,
        transform=Affine.from_gdal(*trf_arr),
        nodata=no_data_val,
    ) as dst:
        dst.write(data_arr, 1)
    logger.debug(f"Saved GeoTIFF: {out_path}")


def save_svfs_zip(
    svf: SvfArrays,
    out_dir: str | Path,
    trf_arr: list[float],
    crs_wkt: str | None,
) -> Path:
    """
    Write the 15 SVF grids as GeoTIFFs bundled in ``out_dir/svfs.zip``.

    File names follow SOLWEIG (``svf.tif``, ``svfE.tif``, ..., ``svfNaveg.tif``)
    so the archive can be fed to SOLWEIG directly. The loose GeoTIFFs are
    removed after zipping.

    Returns:
        Path to the zip file.
    """
    out_path = Path(out_dir)
    out_path.mkdir(parents=True, exist_ok=True)

    zip_filepath = out_path / "svfs.zip"
    if zip_filepath.is_file():
        os.remove(zip_filepath)

    written = []
    for name in SVF_FIELD_NAMES:
        fname = SVF_FILE_NAMES[name]
        save_raster(out_path / fname, getattr(svf, name), trf_arr, crs_wkt)
        written.append(fname)

    with zipfile.ZipFile(zip_filepath, "a") as zippo:
        for fname in written:
            zippo.write(out_path / fname, fname)

    for fname in written:
        try:
            os.remove(out_path / fname)
        except OSError as e:
            logger.warning(f"Could not remove temporary file {fname}: {e}")

    logger.info(f"Saved {len(written)} SVF rasters to {zip_filepath}")
    return zip_filepath
