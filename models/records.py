"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True, slots=True)
class SensorReading:
    """A single raw reading as recorded by the ingestion side.

    ``measured_at`` keeps the recorded ISO-8601 text untouched; parsing happens
    when the reading is normalized so that bad timestamps are dropped there.
    """

    device_name: str
    sensor_type: str
    measured_at: str
    reading_value: float
    unit: str
    voltage: Optional[float] = None


@dataclass(frozen=True, slots=True)
class DistanceValue:
    """Fill level derived from a distance sensor, in percent."""

    distance: int
    voltage: Optional[float] = None


@dataclass(frozen=True, slots=True)
class WeightValue:
    """Weight in canonical kilograms."""

    weight: float
    voltage: Optional[float] = None


@dataclass(frozen=True, slots=True)
class NormalizedValue:
    """Latest reading of one device converted to UI-ready units."""

    device_name: str
    sensor_type: str
    value: DistanceValue | WeightValue
    time: datetime
