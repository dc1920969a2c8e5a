"""
Tests for progress reporting and host-aware logging.
"""

from unittest.mock import MagicMock

import numpy as np
from conftest import make_flat_grids
from skyview import SvfConfig, calculate_svf
from skyview.computation import build_angular_sampling
from skyview.progress import ProgressReporter, get_progress_iterator
from skyview.skyview_logging import LogLevel, SkyviewLogger, get_logger, set_global_level
from skyview.tiling import run_tiled


class TestProgressReporter:
    """Test the ProgressReporter class."""

    def test_progress_reporter_basic_usage(self):
        reporter = ProgressReporter(total=10, desc="Test", disable=True)

        for _ in range(10):
            reporter.update(1)

        reporter.close()

        assert reporter.current == 10

    def test_progress_reporter_update_increments(self):
        reporter = ProgressReporter(total=100, disable=True)

        reporter.update(5)
        assert reporter.current == 5

        reporter.update(10)
        assert reporter.current == 15

        reporter.close()

    def test_progress_reporter_disabled_mode(self):
        """Disabled mode has no backend and doesn't crash."""
        reporter = ProgressReporter(total=10, disable=True)

        reporter.update(5)
        reporter.set_description("New description")
        reporter.close()

        assert reporter.current == 5
        assert reporter._tqdm_bar is None
        assert reporter._feedback is None

    def test_update_after_close_is_ignored(self):
        reporter = ProgressReporter(total=10, disable=True)
        reporter.close()
        reporter.update(3)
        assert reporter.current == 0

    def test_tqdm_backend(self):
        reporter = ProgressReporter(total=4, desc="SVF")
        assert reporter._tqdm_bar is not None

        reporter.update(2)
        assert reporter._tqdm_bar.n == 2

        reporter.close()

    def test_feedback_receives_percentages(self):
        feedback = MagicMock()
        reporter = ProgressReporter(total=10, desc="SVF", feedback=feedback)

        feedback.pushInfo.assert_called_with("Starting: SVF")
        assert reporter._tqdm_bar is None

        reporter.update(5)
        feedback.setProgress.assert_called_with(50)

        reporter.update(10)
        feedback.setProgress.assert_called_with(100)

        reporter.close()

    def test_feedback_cancellation(self):
        feedback = MagicMock()
        feedback.isCanceled.return_value = True
        reporter = ProgressReporter(total=3, feedback=feedback)

        assert reporter.is_cancelled() is True

    def test_no_feedback_never_cancelled(self):
        assert ProgressReporter(total=3, disable=True).is_cancelled() is False


class TestProgressIterator:
    def test_iterates_all_items(self):
        items = list(get_progress_iterator(range(7), desc="bands", disable=True))
        assert items == list(range(7))

    def test_reports_to_feedback(self):
        feedback = MagicMock()
        list(get_progress_iterator(["a", "b"], desc="bands", feedback=feedback))
        feedback.setProgress.assert_called_with(100)

    def test_generator_without_len(self):
        items = list(get_progress_iterator((i for i in range(3)), disable=True))
        assert items == [0, 1, 2]


class TestTiledProgress:
    def _sampling(self):
        return build_angular_sampling(30, 0, 360, 30)

    def test_callback_called_per_band(self):
        calls = []
        grids = make_flat_grids((7, 4))
        run_tiled(
            grids,
            self._sampling(),
            scale=1.0,
            trace_radius=3.0,
            band_rows=2,
            workers=2,
            progress_callback=lambda done, total: calls.append((done, total)),
        )
        assert [done for done, _ in calls] == [1, 2, 3, 4]
        assert all(total == 4 for _, total in calls)

    def test_feedback_progress_reaches_100(self):
        feedback = MagicMock()
        feedback.isCanceled.return_value = False
        run_tiled(make_flat_grids((4, 4)), self._sampling(), 1.0, 3.0, band_rows=1, workers=1, feedback=feedback)
        feedback.setProgress.assert_called_with(100)

    def test_cancellation_is_polled(self):
        feedback = MagicMock()
        feedback.isCanceled.return_value = True
        out = run_tiled(make_flat_grids((4, 4)), self._sampling(), 1.0, 3.0, band_rows=1, workers=1, feedback=feedback)

        feedback.isCanceled.assert_called()
        assert out.shape == (15, 4, 4)
        # The first finished band is always kept
        assert np.isfinite(out).any()


class TestSkyviewLogger:
    def test_get_logger_is_cached(self):
        assert get_logger("skyview.test_cached") is get_logger("skyview.test_cached")

    def test_feedback_routing(self):
        feedback = MagicMock()
        logger = SkyviewLogger("skyview.test_routing", level=LogLevel.DEBUG)
        logger.set_feedback(feedback)

        logger.debug("d")
        logger.info("i")
        logger.warning("w")
        logger.error("e")

        feedback.pushDebugInfo.assert_called_once_with("d")
        feedback.pushInfo.assert_any_call("i")
        feedback.pushInfo.assert_any_call("WARNING: w")
        feedback.reportError.assert_called_once_with("e")

    def test_level_filters_messages(self):
        feedback = MagicMock()
        logger = SkyviewLogger("skyview.test_level")
        logger.set_feedback(feedback)

        logger.debug("hidden")
        feedback.pushDebugInfo.assert_not_called()

    def test_set_global_level(self):
        logger = get_logger("skyview.test_global")
        set_global_level(LogLevel.WARNING)
        try:
            assert logger.level == LogLevel.WARNING
        finally:
            set_global_level(LogLevel.INFO)

    def test_falls_back_to_std_logging(self, caplog):
        logger = SkyviewLogger("skyview.test_std")
        with caplog.at_level("INFO", logger="skyview.test_std"):
            logger.info("hello from the sweep")
        assert "hello from the sweep" in caplog.text

    def test_calculate_svf_routes_logs_to_feedback(self):
        feedback = MagicMock()
        feedback.isCanceled.return_value = False
        config = SvfConfig(altitude_interval=30, azimuth_start=0, azimuth_end=180, azimuth_interval=30, workers=1)

        calculate_svf(make_flat_grids((4, 4)), config, feedback=feedback)

        messages = [str(c.args[0]) for c in feedback.pushInfo.call_args_list]
        assert any(m.startswith("SVF sweep:") for m in messages)
        assert any(m.startswith("WARNING: Azimuth sweep covers 180") for m in messages)

    def test_feedback_detached_after_calculate_svf(self, caplog):
        feedback = MagicMock()
        feedback.isCanceled.return_value = False
        calculate_svf(make_flat_grids((3, 3)), SvfConfig(altitude_interval=45, azimuth_interval=45), feedback=feedback)
        n_calls = feedback.pushInfo.call_count

        with caplog.at_level("INFO", logger="skyview.tiling"):
            calculate_svf(make_flat_grids((3, 3)), SvfConfig(altitude_interval=45, azimuth_interval=45))

        assert feedback.pushInfo.call_count == n_calls
        assert "SVF sweep" in caplog.text
