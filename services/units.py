"""Conversion of raw sensor readings into canonical units (mm, kg)."""

from __future__ import annotations

import math
from typing import Optional

_DISTANCE_TO_MM = {
    "mm": 1.0,
    "cm": 10.0,
    "m": 1000.0,
}


def _finite(value: float) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def to_distance_mm(value: float, unit: str) -> Optional[float]:
    """Return ``value`` in millimetres, or ``None`` for an unknown unit."""
    number = _finite(value)
    factor = _DISTANCE_TO_MM.get(unit)
    if number is None or factor is None:
        return None
    return number * factor


def to_weight_kg(value: float, unit: str) -> Optional[float]:
    """Return ``value`` in kilograms, or ``None`` for an unknown unit."""
    number = _finite(value)
    if number is None:
        return None
    if unit == "g":
        return number / 1000
    if unit == "kg":
        return number
    return None


def normalize(value: float, unit: str, sensor_type: str) -> Optional[float]:
    """Convert a raw reading to the canonical unit of its sensor type.

    ``None`` means the row cannot be represented and should be skipped; it is
    not an error, so readings in units added later do not break the dashboard.
    """
    if sensor_type == "distance":
        return to_distance_mm(value, unit)
    if sensor_type == "weight":
        return to_weight_kg(value, unit)
    return None
