"""
Row-band dispatch for the per-pixel sweep.

Pixels are independent: each reads the shared, immutable height fields and
writes only its own slot in the output buffer. The grid is cut into bands of
whole rows, and the bands are submitted to a thread pool. The compiled row
kernel releases the GIL, so bands run truly in parallel. No locking is
needed since bands write disjoint rows.

The last band may extend past the grid; the kernel skips those padding rows.
"""

from __future__ import annotations

import math
import os
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

from .computation import allocate_output, compute_rows
from .constants import MAX_TRACE_RADIUS, MIN_ALTITUDE_DEG
from .errors import ConfigurationError
from .progress import ProgressReporter
from .skyview_logging import get_logger

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from .computation import AngularSampling
    from .models import HeightFieldGrids

logger = get_logger(__name__)

_MAX_AUTO_WORKERS = 8  # Hard cap to avoid cache thrash on many-core CPUs
_BANDS_PER_WORKER = 4  # Finer bands even out the uneven cost of walled-in rows


@dataclass(frozen=True)
class RowBand:
    """
    A contiguous run of rows swept by one task.

    Attributes:
        index: Band number, top to bottom.
        row_start: First row (inclusive).
        row_end: Last row (exclusive). May exceed the grid for the final band.
    """

    index: int
    row_start: int
    row_end: int

    @property
    def n_rows(self) -> int:
        return self.row_end - self.row_start


def calculate_trace_radius(
    max_height: float,
    scale: float,
    min_altitude_deg: float = MIN_ALTITUDE_DEG,
    max_radius: float = MAX_TRACE_RADIUS,
) -> float:
    """
    Trace radius beyond which no obstacle can occlude a ray.

    A ray at altitude ``a`` has risen ``radius / scale * sin(a)`` after
    ``radius`` cells, so it clears an obstacle of height ``max_height`` at
    ``max_height * scale / sin(a)``. Rays below ``min_altitude_deg`` are
    allowed to stop early.

    Args:
        max_height: Tallest obstacle above the lowest surface point.
        scale: Grid cells per vertical unit.
        min_altitude_deg: Lowest altitude that must be fully resolved.
        max_radius: Cap on the returned radius.

    Returns:
        Radius in grid cells, capped at ``max_radius``.

    Example:
        >>> calculate_trace_radius(30.0, 1.0)  # 30 m obstacle on a 1 m grid
        573.2
    """
    if max_height <= 0:
        return 0.0

    sin_alt = math.sin(math.radians(min_altitude_deg))
    if sin_alt <= 0:
        return max_radius

    return min(max_height * scale / sin_alt, max_radius)


def _resolve_workers(workers: int | None, n_bands: int) -> int:
    """Resolve thread count for band dispatch."""
    if n_bands <= 0:
        return 1
    if workers is not None and workers < 1:
        raise ConfigurationError("workers", f"must be >= 1, got {workers}")
    if workers is None:
        cpu_count = os.cpu_count() or 2
        workers = max(1, min(_MAX_AUTO_WORKERS, cpu_count))
    return max(1, min(workers, n_bands))


def _resolve_inflight_limit(n_workers: int, n_bands: int) -> int:
    """
    Resolve max number of submitted but unfinished bands.

    One queued band per worker keeps the pool busy. Bands beyond the limit are
    submitted as others finish, so a cancellation leaves them unsubmitted.
    """
    return max(1, min(n_bands, n_workers * 2))


def _resolve_band_rows(band_rows: int | None, rows: int, workers: int | None) -> int:
    """Resolve rows per band."""
    if band_rows is not None:
        if band_rows < 1:
            raise ConfigurationError("band_rows", f"must be >= 1, got {band_rows}")
        return band_rows
    n_workers = workers if workers is not None else min(_MAX_AUTO_WORKERS, os.cpu_count() or 2)
    return max(1, math.ceil(rows / (max(1, n_workers) * _BANDS_PER_WORKER)))


def generate_row_bands(rows: int, band_rows: int) -> list[RowBand]:
    """
    Cut ``rows`` into bands of ``band_rows`` rows.

    Every band has the same height, so the last band can reach past the grid.
    The kernel skips rows outside the grid.
    """
    if band_rows < 1:
        raise ConfigurationError("band_rows", f"must be >= 1, got {band_rows}")
    n_bands = int(np.ceil(rows / band_rows))
    return [RowBand(index=i, row_start=i * band_rows, row_end=(i + 1) * band_rows) for i in range(n_bands)]


def run_tiled(
    grids: HeightFieldGrids,
    sampling: AngularSampling,
    scale: float,
    trace_radius: float,
    band_rows: int | None = None,
    workers: int | None = None,
    feedback: Any = None,
    progress_callback: Callable[[int, int], None] | None = None,
    show_progress: bool = True,
) -> NDArray[np.float32]:
    """
    Sweep every pixel of ``grids`` using a thread pool over row bands.

    Args:
        grids: Validated height fields.
        sampling: Hemisphere discretization.
        scale: Grid cells per vertical unit.
        trace_radius: Maximum ray radius in grid cells.
        band_rows: Rows per band. If None, chosen from the worker count.
        workers: Thread count. If None, picks from CPU count.
        feedback: Optional host feedback object for progress.
        progress_callback: Optional ``callback(done, total)`` called per band.
        show_progress: If False, no progress bar is shown.

    Returns:
        (15, rows, cols) float32 buffer in ``SVF_FIELD_NAMES`` order.
    """
    rows, cols = grids.shape
    out = allocate_output(rows, cols)

    bands = generate_row_bands(rows, _resolve_band_rows(band_rows, rows, workers))
    n_bands = len(bands)
    n_workers = _resolve_workers(workers, n_bands)
    inflight_limit = _resolve_inflight_limit(n_workers, n_bands)

    logger.info(
        f"SVF sweep: {rows}x{cols} pixels, {sampling.n_samples} samples/pixel, "
        f"trace_radius={trace_radius:.1f} cells, {n_bands} bands, workers={n_workers}"
    )

    # Host feedback is polled for cancellation even when a callback reports progress
    _progress = None
    if progress_callback is None or feedback is not None:
        _progress = ProgressReporter(total=n_bands, desc="SVF", feedback=feedback, disable=not show_progress)

    start = time.perf_counter()
    completed = 0
    cancelled = False

    with ThreadPoolExecutor(max_workers=n_workers) as executor:
        futures: dict[Any, RowBand] = {}

        def _submit_band(band: RowBand) -> None:
            future = executor.submit(
                compute_rows,
                grids.surface,
                grids.canopy_top,
                grids.canopy_bottom,
                sampling,
                scale,
                trace_radius,
                band.row_start,
                band.row_end,
                out,
            )
            futures[future] = band

        next_band = 0
        while next_band < n_bands and len(futures) < inflight_limit:
            _submit_band(bands[next_band])
            next_band += 1

        while futures:
            future = next(as_completed(futures))
            band = futures.pop(future)
            future.result()
            completed += 1
            logger.debug(f"Band {band.index} rows {band.row_start}-{min(band.row_end, rows)} done")

            if _progress is not None:
                _progress.update(1)
                if not cancelled and _progress.is_cancelled():
                    # Bands in flight finish and keep their rows; unsubmitted bands stay NaN
                    cancelled = True
                    logger.info("SVF computation cancelled by user")
            if progress_callback is not None:
                progress_callback(completed, n_bands)

            while not cancelled and next_band < n_bands and len(futures) < inflight_limit:
                _submit_band(bands[next_band])
                next_band += 1

    if _progress is not None:
        _progress.close()

    logger.info(f"SVF sweep finished in {time.perf_counter() - start:.2f}s")
    return out
