# cartonizer/config.py
"""
Engine configuration.

Parameters are immutable per run. Callers pass partial overrides (for
example the fields a tenant changed in its settings) and get a complete
CartonizationParameters back.
"""

from __future__ import annotations

from dataclasses import asdict, fields
from typing import Any, Dict, Mapping, Optional

from .models import CartonizationParameters

DEFAULT_PARAMETERS: CartonizationParameters = CartonizationParameters()

_PARAMETER_NAMES = frozenset(f.name for f in fields(CartonizationParameters))


def build_parameters(
    overrides: Optional[Mapping[str, Any]] = None,
    base: CartonizationParameters = DEFAULT_PARAMETERS,
) -> CartonizationParameters:
    """
    Merge `overrides` over `base`. Keys set to None are ignored so partially
    filled request models can be passed straight through.
    """
    if not overrides:
        return base

    unknown = sorted(set(overrides) - _PARAMETER_NAMES)
    if unknown:
        raise ValueError(f"Unknown cartonization parameter(s): {unknown}")

    merged: Dict[str, Any] = asdict(base)
    merged.update({k: v for k, v in overrides.items() if v is not None})
    return CartonizationParameters(**merged)


__all__ = ["DEFAULT_PARAMETERS", "build_parameters"]
