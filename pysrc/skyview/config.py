"""Parameter loading from JSON files."""

from __future__ import annotations

import json
from pathlib import Path
from types import SimpleNamespace

from .utils import dict_to_namespace


def load_params(params_json_path: str | Path | None = None) -> SimpleNamespace:
    """
    Load sweep parameters from a JSON file.

    Args:
        params_json_path: Path to the parameters JSON file.
            If None (default), loads the bundled default_params.json.

    Returns:
        SimpleNamespace object with nested parameter values accessible via attributes.

    Examples:
        >>> params = load_params()
        >>> params.Sky_sampling.Value.AltitudeInterval  # 5.0
        >>> params.Tree_settings.Value.Transmissivity  # 0.03
    """
    if params_json_path is None:
        params_path = Path(__file__).parent / "data" / "default_params.json"
    else:
        params_path = Path(params_json_path)

    if not params_path.exists():
        raise FileNotFoundError(f"Parameters file not found: {params_path}")

    with open(params_path) as f:
        params_dict = json.load(f)

    return dict_to_namespace(params_dict)
