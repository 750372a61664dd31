from __future__ import annotations

import logging
from datetime import datetime, timezone

from logging_config import ContextualFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("services.dashboard", logging.WARNING, __file__, 1, "Skipping row", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_appends_known_context_in_order() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")

    line = formatter.format(
        _record(unit="ft", device_name="bin-1", reason=None, ignored="x", threshold_hours=24.0)
    )

    assert line == "Skipping row | device_name=bin-1 unit=ft threshold_hours=24"


def test_formatter_renders_datetimes_as_iso() -> None:
    formatter = ContextualFormatter(fmt="%(message)s", extra_keys=["target_time"])

    line = formatter.format(_record(target_time=datetime(2024, 6, 3, 12, tzinfo=timezone.utc)))

    assert line.endswith("target_time=2024-06-03T12:00:00+00:00")


def test_formatter_without_context_leaves_message_untouched() -> None:
    assert ContextualFormatter(fmt="%(message)s").format(_record()) == "Skipping row"
