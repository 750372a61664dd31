from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from services.metrics import fill_percentage, is_active, round_half_up

REFERENCE = datetime(2024, 6, 3, 12, 0, tzinfo=timezone.utc)


def test_fill_percentage_at_calibration_points() -> None:
    assert fill_percentage(36.5) == 0
    assert fill_percentage(0) == 100
    assert fill_percentage(18.25) == 50


def test_fill_percentage_clamps_beyond_empty_distance() -> None:
    assert fill_percentage(40) == 0


def test_fill_percentage_is_not_capped_above_full() -> None:
    # Negative distances come from sensor noise; the value is surfaced as-is.
    assert fill_percentage(-3.65) == 110


def test_fill_percentage_uses_custom_calibration() -> None:
    assert fill_percentage(25, full_mm=100) == 75


def test_fill_percentage_rejects_non_positive_calibration() -> None:
    with pytest.raises(ValueError):
        fill_percentage(10, full_mm=0)


def test_round_half_up_goes_towards_positive_infinity() -> None:
    assert round_half_up(12.5) == 13
    assert round_half_up(2.4) == 2
    assert round_half_up(-2.5) == -2


def test_reading_exactly_at_threshold_is_active() -> None:
    assert is_active(REFERENCE - timedelta(hours=24), REFERENCE) is True


def test_reading_one_millisecond_past_threshold_is_stale() -> None:
    reading_time = REFERENCE - timedelta(hours=24, milliseconds=1)

    assert is_active(reading_time, REFERENCE) is False


def test_missing_reading_is_inactive() -> None:
    assert is_active(None, REFERENCE) is False


def test_custom_threshold() -> None:
    reading_time = REFERENCE - timedelta(minutes=90)

    assert is_active(reading_time, REFERENCE, threshold_hours=1) is False
    assert is_active(reading_time, REFERENCE, threshold_hours=2) is True
