from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from datastore.readings import ReadingStore
from models.records import SensorReading

TARGET = datetime(2024, 6, 3, 12, 0, tzinfo=timezone.utc)


def _reading(device: str, measured_at: str, value: float = 10.0, sensor_type: str = "distance") -> SensorReading:
    unit = "mm" if sensor_type == "distance" else "kg"
    return SensorReading(
        device_name=device,
        sensor_type=sensor_type,
        measured_at=measured_at,
        reading_value=value,
        unit=unit,
    )


def test_latest_per_device_picks_newest_reading_before_target() -> None:
    store = ReadingStore()
    store.extend(
        [
            _reading("bin-1", "2024-06-03T08:00:00Z", 1),
            _reading("bin-1", "2024-06-03T11:00:00Z", 2),
            _reading("bin-1", "2024-06-03T13:00:00Z", 3),
            _reading("scale-1", "2024-06-02T09:00:00Z", 50, sensor_type="weight"),
        ]
    )

    latest = store.latest_per_device(TARGET)

    assert [(row.device_name, row.reading_value) for row in latest] == [
        ("bin-1", 2),
        ("scale-1", 50),
    ]


def test_reading_at_exact_target_time_is_included() -> None:
    store = ReadingStore()
    store.extend([_reading("bin-1", "2024-06-03T12:00:00Z", 7)])

    assert [row.reading_value for row in store.latest_per_device(TARGET)] == [7]


def test_other_sensor_types_are_filtered_out() -> None:
    store = ReadingStore()
    store.extend(
        [
            SensorReading(
                device_name="thermo",
                sensor_type="temperature",
                measured_at="2024-06-03T10:00:00Z",
                reading_value=21.0,
                unit="C",
            )
        ]
    )

    assert store.latest_per_device(TARGET) == []


def test_unparsable_timestamps_are_ignored() -> None:
    store = ReadingStore()
    store.extend(
        [
            _reading("bin-1", "yesterday", 99),
            _reading("bin-1", "2024-06-03T10:00:00Z", 4),
        ]
    )

    assert [row.reading_value for row in store.latest_per_device(TARGET)] == [4]


def test_readings_are_loaded_from_json_file(tmp_path: Path) -> None:
    path = tmp_path / "store.json"
    path.write_text(
        json.dumps(
            [
                {
                    "device_name": "bin-1",
                    "sensor_type": "distance",
                    "measured_at": "2024-06-03T10:00:00Z",
                    "reading_value": 4,
                    "unit": "mm",
                    "voltage": 3.6,
                }
            ]
        )
    )

    store = ReadingStore(persistence_path=path)

    assert store.scan() == [
        SensorReading(
            device_name="bin-1",
            sensor_type="distance",
            measured_at="2024-06-03T10:00:00Z",
            reading_value=4.0,
            unit="mm",
            voltage=3.6,
        )
    ]


def test_seeding_readings_leaves_the_file_untouched(tmp_path: Path) -> None:
    path = tmp_path / "store.json"
    path.write_text("[]")
    store = ReadingStore(persistence_path=path)

    store.extend([_reading("bin-1", "2024-06-03T10:00:00Z", 4)])

    assert path.read_text() == "[]"
    assert len(store.scan()) == 1


def test_missing_file_is_not_created(tmp_path: Path) -> None:
    path = tmp_path / "readings" / "store.json"

    store = ReadingStore(persistence_path=path)

    assert store.scan() == []
    assert not path.parent.exists()


def test_malformed_persisted_rows_are_skipped(tmp_path: Path, caplog) -> None:
    path = tmp_path / "store.json"
    path.write_text(
        json.dumps(
            [
                {"device_name": "bin-1", "sensor_type": "distance"},
                "not-a-row",
                {
                    "device_name": "bin-2",
                    "sensor_type": "distance",
                    "measured_at": "2024-06-03T10:00:00Z",
                    "reading_value": 12,
                    "unit": "mm",
                },
            ]
        )
    )

    with caplog.at_level(logging.WARNING):
        store = ReadingStore(persistence_path=path)

    assert [row.device_name for row in store.scan()] == ["bin-2"]
    skipped = [record for record in caplog.records if record.message == "Skipping persisted reading"]
    assert [record.row_number for record in skipped] == [1, 2]


def test_corrupt_persistence_file_starts_empty(tmp_path: Path) -> None:
    path = tmp_path / "store.json"
    path.write_text("{not json")

    store = ReadingStore(persistence_path=path)

    assert store.scan() == []
