"""Fill level and staleness calculations for the dashboard."""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Optional

DEFAULT_DISTANCE_FULL_MM = 36.5
DEFAULT_ACTIVE_THRESHOLD_HOURS = 24.0


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going towards +infinity."""
    return math.floor(value + 0.5)


def fill_percentage(distance_mm: float, full_mm: float = DEFAULT_DISTANCE_FULL_MM) -> int:
    """Convert the distance to the contents into a fill percentage.

    ``full_mm`` is the calibration distance at which the bin counts as empty.
    Readings beyond it clamp to 0. Negative distances are not capped and
    yield more than 100.
    """
    if full_mm <= 0:
        raise ValueError("full_mm must be positive")
    remaining = max(full_mm - distance_mm, 0.0)
    return round_half_up(remaining / full_mm * 100)


def is_active(
    reading_time: Optional[datetime],
    reference_time: datetime,
    threshold_hours: float = DEFAULT_ACTIVE_THRESHOLD_HOURS,
) -> bool:
    """Whether a reading falls within ``threshold_hours`` before ``reference_time``."""
    if reading_time is None:
        return False
    return reference_time - reading_time <= timedelta(hours=threshold_hours)
