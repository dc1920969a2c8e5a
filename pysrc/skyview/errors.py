"""Skyview error types for actionable error messages.

These exceptions are raised by :func:`skyview.validate_inputs` before the
per-pixel sweep starts. The sweep itself never raises: once the inputs pass
validation, every pixel runs to completion.

Example:
    try:
        svf = skyview.calculate_svf(grids, config)
    except skyview.GridShapeMismatch as e:
        print(f"Grid '{e.field}' has wrong shape: expected {e.expected}, got {e.got}")
    except skyview.ConfigurationError as e:
        print(f"Bad parameter {e.parameter}: {e.reason}")
"""

from __future__ import annotations


class SkyviewError(Exception):
    """Base class for all skyview errors."""

    pass


class InvalidSurfaceData(SkyviewError):
    """Raised when a height field is invalid.

    Attributes:
        message: Human-readable error description.
        field: Name of the problematic grid (e.g., "canopy_top").
        expected: What was expected (optional).
        got: What was actually provided (optional).
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        expected: str | None = None,
        got: str | None = None,
    ):
        self.field = field
        self.expected = expected
        self.got = got
        super().__init__(message)


class GridShapeMismatch(InvalidSurfaceData):
    """Raised when a canopy grid does not match the surface grid.

    Example:
        >>> grids = HeightFieldGrids(surface=np.zeros((100, 100)), canopy_top=np.zeros((50, 50)), ...)
        GridShapeMismatch: Grid shape mismatch for 'canopy_top':
          Expected: (100, 100) (matching surface)
          Got: (50, 50)
    """

    def __init__(self, field: str, expected_shape: tuple, actual_shape: tuple):
        message = (
            f"Grid shape mismatch for '{field}':\n"
            f"  Expected: {expected_shape} (matching surface)\n"
            f"  Got: {actual_shape}\n"
            "All height fields must be co-registered on the same grid."
        )
        super().__init__(message, field=field, expected=str(expected_shape), got=str(actual_shape))
        self.expected_shape = expected_shape
        self.actual_shape = actual_shape


class ConfigurationError(SkyviewError):
    """Raised when a sweep parameter is invalid.

    Attributes:
        parameter: The problematic parameter name.
        reason: Why the configuration is invalid.
    """

    def __init__(self, parameter: str, reason: str):
        self.parameter = parameter
        self.reason = reason
        message = f"Invalid configuration for '{parameter}': {reason}"
        super().__init__(message)
