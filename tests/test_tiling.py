"""Tests for row-band generation and tiled dispatch."""

from unittest.mock import MagicMock

import numpy as np
import pytest
from conftest import make_flat_grids, make_walled_grids
from skyview.computation import allocate_output, build_angular_sampling, compute_rows
from skyview.errors import ConfigurationError
from skyview.tiling import (
    RowBand,
    _resolve_band_rows,
    _resolve_inflight_limit,
    _resolve_workers,
    generate_row_bands,
    run_tiled,
)


class TestGenerateRowBands:
    def test_exact_split(self):
        bands = generate_row_bands(12, 4)
        assert [(b.row_start, b.row_end) for b in bands] == [(0, 4), (4, 8), (8, 12)]
        assert [b.index for b in bands] == [0, 1, 2]

    def test_last_band_is_padded(self):
        bands = generate_row_bands(10, 4)
        assert len(bands) == 3
        assert bands[-1] == RowBand(index=2, row_start=8, row_end=12)
        assert all(b.n_rows == 4 for b in bands)

    def test_band_taller_than_grid(self):
        bands = generate_row_bands(3, 10)
        assert bands == [RowBand(index=0, row_start=0, row_end=10)]

    def test_bands_cover_every_row_once(self):
        bands = generate_row_bands(17, 5)
        covered = [r for b in bands for r in range(b.row_start, min(b.row_end, 17))]
        assert covered == list(range(17))

    def test_invalid_band_rows(self):
        with pytest.raises(ConfigurationError):
            generate_row_bands(10, 0)


class TestResolve:
    def test_workers_capped_by_band_count(self):
        assert _resolve_workers(16, 3) == 3

    def test_auto_workers_positive(self):
        assert _resolve_workers(None, 100) >= 1

    def test_invalid_workers(self):
        with pytest.raises(ConfigurationError):
            _resolve_workers(0, 4)

    def test_explicit_band_rows(self):
        assert _resolve_band_rows(7, 100, workers=2) == 7

    def test_auto_band_rows(self):
        # 2 workers x 4 bands each over 80 rows
        assert _resolve_band_rows(None, 80, workers=2) == 10

    def test_inflight_limit_queues_one_band_per_worker(self):
        assert _resolve_inflight_limit(4, 100) == 8

    def test_inflight_limit_capped_by_band_count(self):
        assert _resolve_inflight_limit(4, 3) == 3
        assert _resolve_inflight_limit(1, 1) == 1


class TestRunTiled:
    def test_padding_rows_are_skipped(self):
        sampling = build_angular_sampling(30, 0, 360, 30)
        out = run_tiled(make_flat_grids((10, 3)), sampling, 1.0, 5.0, band_rows=4, workers=2, show_progress=False)

        assert out.shape == (15, 10, 3)
        assert out.dtype == np.float32
        np.testing.assert_array_equal(out, 1.0)

    def test_matches_direct_kernel_call(self):
        grids = make_walled_grids(size=5, wall_height=4.0)
        sampling = build_angular_sampling(15, 0, 360, 15)

        direct = allocate_output(*grids.shape)
        compute_rows(grids.surface, grids.canopy_top, grids.canopy_bottom, sampling, 1.0, 20.0, 0, 5, direct)
        tiled = run_tiled(grids, sampling, 1.0, 20.0, band_rows=2, workers=3, show_progress=False)

        np.testing.assert_array_equal(tiled, direct)

    def test_rows_outside_range_untouched(self):
        grids = make_flat_grids((6, 3))
        sampling = build_angular_sampling(30, 0, 360, 30)
        out = allocate_output(6, 3)

        compute_rows(grids.surface, grids.canopy_top, grids.canopy_bottom, sampling, 1.0, 2.0, 2, 4, out)

        assert np.isnan(out[:, :2]).all()
        assert np.isnan(out[:, 4:]).all()
        np.testing.assert_array_equal(out[:, 2:4], 1.0)


class TestCancellation:
    @pytest.fixture
    def cancelled_feedback(self):
        feedback = MagicMock()
        feedback.isCanceled.return_value = True
        return feedback

    def test_cancel_leaves_unsubmitted_rows_nan(self, cancelled_feedback):
        sampling = build_angular_sampling(30, 0, 360, 30)

        out = run_tiled(
            make_flat_grids((20, 4)), sampling, 1.0, 3.0, band_rows=1, workers=1, feedback=cancelled_feedback
        )

        cancelled_feedback.isCanceled.assert_called()
        # The first band and the one queued behind it finish; nothing else is submitted
        np.testing.assert_array_equal(out[:, :2], 1.0)
        assert np.isnan(out[:, 2:]).all()

    def test_feedback_polled_alongside_callback(self, cancelled_feedback):
        sampling = build_angular_sampling(30, 0, 360, 30)
        callback = MagicMock()

        out = run_tiled(
            make_flat_grids((20, 4)),
            sampling,
            1.0,
            3.0,
            band_rows=1,
            workers=1,
            feedback=cancelled_feedback,
            progress_callback=callback,
        )

        cancelled_feedback.isCanceled.assert_called()
        assert callback.call_count == 2
        callback.assert_called_with(2, 20)
        assert np.isnan(out[:, -1]).all()

    def test_callback_alone_runs_every_band(self):
        sampling = build_angular_sampling(30, 0, 360, 30)
        callback = MagicMock()

        out = run_tiled(make_flat_grids((6, 3)), sampling, 1.0, 3.0, band_rows=1, workers=2, progress_callback=callback)

        assert callback.call_count == 6
        callback.assert_called_with(6, 6)
        np.testing.assert_array_equal(out, 1.0)
