from __future__ import annotations

import json
import logging
from datetime import datetime
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, Iterable, Optional, Protocol, Sequence

from models.records import SensorReading
from services.timestamps import parse_timestamp
from settings import get_settings

logger = logging.getLogger(__name__)

DASHBOARD_SENSOR_TYPES = ("distance", "weight")


class ReadingSource(Protocol):
    def latest_per_device(
        self,
        target_time: datetime,
        sensor_types: Sequence[str] = DASHBOARD_SENSOR_TYPES,
    ) -> list[SensorReading]: ...


class ReadingStore:
    """Read-only view of recorded readings, loaded once from an optional JSON file.

    The ingestion side owns writes; ``extend`` only seeds the in-memory list
    (fixtures and tests) and never touches the file.
    """

    def __init__(self, name: str = "sensor_readings", persistence_path: Optional[Path] = None) -> None:
        self.name = name
        self._readings: list[SensorReading] = []
        self.persistence_path = persistence_path
        self._lock = Lock()
        if persistence_path:
            self._load_from_disk()

    def extend(self, readings: Iterable[SensorReading]) -> None:
        with self._lock:
            self._readings.extend(readings)

    def scan(self) -> list[SensorReading]:
        with self._lock:
            return list(self._readings)

    def latest_per_device(
        self,
        target_time: datetime,
        sensor_types: Sequence[str] = DASHBOARD_SENSOR_TYPES,
    ) -> list[SensorReading]:
        """Return the newest reading per device measured at or before ``target_time``."""
        latest: Dict[str, tuple[datetime, SensorReading]] = {}
        for reading in self.scan():
            if reading.sensor_type not in sensor_types:
                continue
            try:
                measured_at = parse_timestamp(reading.measured_at)
            except ValueError:
                logger.debug(
                    "Ignoring reading with unparsable timestamp",
                    extra={"device_name": reading.device_name, "reading_time": reading.measured_at},
                )
                continue
            if measured_at > target_time:
                continue
            current = latest.get(reading.device_name)
            if current is None or measured_at > current[0]:
                latest[reading.device_name] = (measured_at, reading)

        return [latest[name][1] for name in sorted(latest)]

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "[]"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError) as exc:
            logger.error(
                "Unable to load persisted readings",
                extra={"reason": str(exc), "path": str(self.persistence_path)},
            )
            data = []

        if not isinstance(data, list):
            logger.error(
                "Persisted readings must be a JSON array",
                extra={"path": str(self.persistence_path)},
            )
            return

        for row_number, payload in enumerate(data, start=1):
            try:
                reading = _reading_from_payload(payload)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning(
                    "Skipping persisted reading",
                    extra={"row_number": row_number, "reason": str(exc)},
                )
                continue
            self._readings.append(reading)


def _reading_from_payload(payload: dict) -> SensorReading:
    if not isinstance(payload, dict):
        raise TypeError("reading row is not an object")
    voltage = payload.get("voltage")
    return SensorReading(
        device_name=str(payload["device_name"]),
        sensor_type=str(payload["sensor_type"]),
        measured_at=str(payload["measured_at"]),
        reading_value=float(payload["reading_value"]),
        unit=str(payload["unit"]),
        voltage=float(voltage) if voltage is not None else None,
    )


@lru_cache
def build_default_reading_store(
    name: Optional[str] = None,
    path: Optional[str] = None,
) -> ReadingStore:
    settings = get_settings()
    store_path = settings.readings_path if path is None else path
    persistence = Path(store_path) if store_path else None
    return ReadingStore(name=name or "sensor_readings", persistence_path=persistence)
