"""Home dashboard orchestration: config, latest readings and aggregation."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Iterable, Optional

from app.schemas import DashboardPayload
from datastore.config_store import ConfigResolver, build_default_config_resolver
from datastore.readings import ReadingSource, build_default_reading_store
from models.records import DistanceValue, NormalizedValue, SensorReading, WeightValue
from services.aggregator import DashboardAggregator
from services.metrics import (
    DEFAULT_ACTIVE_THRESHOLD_HOURS,
    DEFAULT_DISTANCE_FULL_MM,
    fill_percentage,
)
from services.timestamps import parse_timestamp
from services.units import to_distance_mm, to_weight_kg
from settings import get_settings

logger = logging.getLogger(__name__)


def to_normalized_values(
    readings: Iterable[SensorReading],
    full_mm: float = DEFAULT_DISTANCE_FULL_MM,
) -> list[NormalizedValue]:
    """Convert raw rows to dashboard values, skipping rows that cannot be used."""
    result: list[NormalizedValue] = []
    for reading in readings:
        try:
            measured_at = parse_timestamp(reading.measured_at)
        except ValueError:
            logger.warning(
                "Skipping row due to invalid time",
                extra={
                    "device_name": reading.device_name,
                    "reading_time": reading.measured_at,
                    "reason": "invalid timestamp",
                },
            )
            continue

        if reading.sensor_type == "distance":
            mm = to_distance_mm(reading.reading_value, reading.unit)
            if mm is None:
                _log_invalid_unit(reading)
                continue
            value: DistanceValue | WeightValue = DistanceValue(
                distance=fill_percentage(mm, full_mm), voltage=reading.voltage
            )
        elif reading.sensor_type == "weight":
            kg = to_weight_kg(reading.reading_value, reading.unit)
            if kg is None:
                _log_invalid_unit(reading)
                continue
            value = WeightValue(weight=kg, voltage=reading.voltage)
        else:
            continue

        result.append(
            NormalizedValue(
                device_name=reading.device_name,
                sensor_type=reading.sensor_type,
                value=value,
                time=measured_at,
            )
        )
    return result


def _log_invalid_unit(reading: SensorReading) -> None:
    logger.warning(
        "Skipping %s row due to invalid unit/value",
        reading.sensor_type,
        extra={
            "device_name": reading.device_name,
            "sensor_type": reading.sensor_type,
            "unit": reading.unit,
            "reason": "invalid unit/value",
        },
    )


class DashboardService:
    """Builds the home dashboard, degrading to empty data when sources fail."""

    def __init__(
        self,
        readings: ReadingSource,
        config_resolver: ConfigResolver,
        aggregator: DashboardAggregator,
        threshold_hours: float = DEFAULT_ACTIVE_THRESHOLD_HOURS,
        full_mm: float = DEFAULT_DISTANCE_FULL_MM,
    ) -> None:
        self.readings = readings
        self.config_resolver = config_resolver
        self.aggregator = aggregator
        self.threshold_hours = threshold_hours
        self.full_mm = full_mm

    def load_dashboard(self, reference_time: Optional[datetime] = None) -> DashboardPayload:
        if reference_time is None:
            target_time = datetime.now(timezone.utc)
        else:
            target_time = parse_timestamp(reference_time)
        logger.info(
            "Building dashboard",
            extra={"target_time": target_time.isoformat(), "threshold_hours": self.threshold_hours},
        )

        config = self.config_resolver.get()
        rows = self._safe_load_latest(target_time)
        values = to_normalized_values(rows, self.full_mm)

        return self.aggregator.build(target_time, config, values, self.threshold_hours)

    def _safe_load_latest(self, target_time: datetime) -> list[SensorReading]:
        try:
            rows = self.readings.latest_per_device(target_time)
        except Exception:
            logger.exception("Error loading latest readings, continuing without data")
            return []
        logger.debug("Loaded latest readings", extra={"row_count": len(rows)})
        return rows


@lru_cache
def build_default_dashboard_service() -> DashboardService:
    """Factory that wires the dashboard service with default collaborators."""
    settings = get_settings()
    return DashboardService(
        readings=build_default_reading_store(),
        config_resolver=build_default_config_resolver(),
        aggregator=DashboardAggregator(),
        threshold_hours=settings.active_threshold_hours,
        full_mm=settings.distance_full_mm,
    )
