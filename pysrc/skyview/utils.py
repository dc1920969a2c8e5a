"""Namespace conversion helpers for JSON parameter files."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any


def dict_to_namespace(d: dict[str, Any] | list | Any) -> SimpleNamespace | list | Any:
    """
    Recursively convert dicts to SimpleNamespace.

    Args:
        d: Dictionary, list, or scalar value to convert

    Returns:
        SimpleNamespace for dicts, list of converted items for lists, or original value for scalars
    """
    if isinstance(d, dict):
        return SimpleNamespace(**{k: dict_to_namespace(v) for k, v in d.items()})
    elif isinstance(d, list):
        return [dict_to_namespace(i) for i in d]
    else:
        return d

