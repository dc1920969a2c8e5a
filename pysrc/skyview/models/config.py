"""Sweep configuration."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from ..constants import (
    DEFAULT_ALTITUDE_INTERVAL_DEG,
    DEFAULT_AZIMUTH_END_DEG,
    DEFAULT_AZIMUTH_INTERVAL_DEG,
    DEFAULT_AZIMUTH_START_DEG,
    DEFAULT_TRANSMISSIVITY,
    DEFAULT_TRUNK_RATIO,
    MIN_ALTITUDE_DEG,
)

logger = logging.getLogger(__name__)


@dataclass
class SvfConfig:
    """
    Scalar parameters of the sky view factor sweep.

    Pure configuration - no paths or data. Angles are in degrees.

    Attributes:
        scale: Grid cells per vertical unit (1 / pixel size for metre grids).
        trace_radius: Maximum horizontal march distance in grid cells. If None,
            derived from the tallest obstacle (see :meth:`resolve_trace_radius`).
        azimuth_start: First azimuth of the sweep. Default 0.
        azimuth_end: End of the azimuth sweep, exclusive. Default 360.
        azimuth_interval: Azimuth slice width. Default 5.
        altitude_interval: Altitude ring width. Rings span 0-90 inclusive. Default 5.
        min_altitude_deg: Lowest altitude used when deriving a trace radius. Default 3.
        transmissivity: Canopy transmissivity for the combined svf_total product.
        trunk_ratio: Trunk height fraction used when no trunk grid is given.
        band_rows: Rows per dispatched band. If None, chosen from the worker count.
        workers: Number of threads sweeping bands. If None, picks from CPU count.

    Examples:
        >>> config = SvfConfig.defaults()
        >>> config.save("svf_config.json")

        >>> config = SvfConfig(scale=2.0, altitude_interval=10, azimuth_interval=10)
    """

    scale: float = 1.0
    trace_radius: float | None = None
    azimuth_start: float = DEFAULT_AZIMUTH_START_DEG
    azimuth_end: float = DEFAULT_AZIMUTH_END_DEG
    azimuth_interval: float = DEFAULT_AZIMUTH_INTERVAL_DEG
    altitude_interval: float = DEFAULT_ALTITUDE_INTERVAL_DEG
    min_altitude_deg: float = MIN_ALTITUDE_DEG
    transmissivity: float = DEFAULT_TRANSMISSIVITY
    trunk_ratio: float = DEFAULT_TRUNK_RATIO
    band_rows: int | None = None
    workers: int | None = None

    @classmethod
    def defaults(cls) -> SvfConfig:
        """Standard configuration: 5 degree rings and slices over a full circle."""
        return cls()

    @classmethod
    def from_pixel_size(cls, pixel_size: float, **kwargs) -> SvfConfig:
        """Configuration for a grid whose cells are ``pixel_size`` vertical units wide."""
        return cls(scale=1.0 / pixel_size, **kwargs)

    @classmethod
    def from_json(cls, path: str | Path | None = None) -> SvfConfig:
        """
        Load configuration from a parameters JSON file.

        Args:
            path: Path to a parameters file laid out like the bundled
                default_params.json. None loads the bundled defaults.

        Example:
            >>> config = SvfConfig.from_json("svf_params.json")
            >>> config.altitude_interval
            5.0
        """
        from ..config import load_params

        params = load_params(path)

        config = cls()
        if hasattr(params, "Sky_sampling"):
            sky = params.Sky_sampling.Value
            config.altitude_interval = getattr(sky, "AltitudeInterval", config.altitude_interval)
            config.azimuth_interval = getattr(sky, "AzimuthInterval", config.azimuth_interval)
            config.azimuth_start = getattr(sky, "AzimuthStart", config.azimuth_start)
            config.azimuth_end = getattr(sky, "AzimuthEnd", config.azimuth_end)

        if hasattr(params, "Ray_settings"):
            ray = params.Ray_settings.Value
            config.scale = getattr(ray, "Scale", config.scale)
            config.trace_radius = getattr(ray, "TraceRadius", config.trace_radius)
            config.min_altitude_deg = getattr(ray, "MinAltitude", config.min_altitude_deg)

        if hasattr(params, "Tree_settings"):
            tree = params.Tree_settings.Value
            config.transmissivity = getattr(tree, "Transmissivity", config.transmissivity)
            config.trunk_ratio = getattr(tree, "Trunk_ratio", config.trunk_ratio)

        if hasattr(params, "Runtime"):
            runtime = params.Runtime.Value
            config.band_rows = getattr(runtime, "BandRows", config.band_rows)
            config.workers = getattr(runtime, "Workers", config.workers)

        return config

    def save(self, path: str | Path) -> None:
        """
        Save configuration to a JSON file readable by :meth:`from_json`.

        Example:
            >>> SvfConfig(altitude_interval=10).save("svf_params.json")
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "Sky_sampling": {
                "Value": {
                    "AltitudeInterval": self.altitude_interval,
                    "AzimuthInterval": self.azimuth_interval,
                    "AzimuthStart": self.azimuth_start,
                    "AzimuthEnd": self.azimuth_end,
                }
            },
            "Ray_settings": {
                "Value": {
                    "Scale": self.scale,
                    "TraceRadius": self.trace_radius,
                    "MinAltitude": self.min_altitude_deg,
                }
            },
            "Tree_settings": {
                "Value": {
                    "Transmissivity": self.transmissivity,
                    "Trunk_ratio": self.trunk_ratio,
                }
            },
            "Runtime": {
                "Value": {
                    "BandRows": self.band_rows,
                    "Workers": self.workers,
                }
            },
        }

        with open(path, "w") as f:
            json.dump(data, f, indent=2)

        logger.info(f"Saved configuration to {path}")

    def resolve_trace_radius(self, max_height: float) -> float:
        """
        Trace radius to use for a grid whose tallest obstacle rises ``max_height``.

        Returns the configured ``trace_radius`` when set.
        """
        if self.trace_radius is not None:
            return float(self.trace_radius)

        from ..tiling import calculate_trace_radius

        return calculate_trace_radius(max_height, self.scale, self.min_altitude_deg)
