"""Waste and product detail pages built from the detail data files."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from datetime import date
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from pydantic import ValidationError

from app.schemas import (
    CalendarEntry,
    CollectionEventView,
    CollectionHistoryEntry,
    Gauge,
    LineChart,
    LineChartSeries,
    ProductDetailData,
    WasteDetailData,
)
from models.detail import WasteDetailSource
from services.collection_events import CollectionEvent, detect_collection_events, latest_first
from services.metrics import round_half_up
from services.timeseries import Point, TimeSeriesMatrix, align_series, series_name_key
from services.timestamps import parse_timestamp
from settings import get_settings

logger = logging.getLogger(__name__)

_PRODUCT_KEYS = {"A": "productA", "B": "productB"}


class DetailDataError(Exception):
    """Raised when a detail data file is missing or malformed."""


def build_line_chart(matrix: TimeSeriesMatrix) -> LineChart:
    return LineChart(
        dates=list(matrix.dates),
        series=[LineChartSeries(name=item.name, data=list(item.data)) for item in matrix.series],
    )


def build_collection_event_views(
    matrix: TimeSeriesMatrix, events: Iterable[CollectionEvent]
) -> list[CollectionEventView]:
    """Number events oldest first, then present them latest first."""
    numbered = [
        CollectionEventView(
            sequence=position,
            timestamp=event.timestamp,
            index=event.index,
            snapshot_index=event.snapshot_index,
            series_name=matrix.series[event.series_index].name,
            drop_amount=event.drop_amount,
            dropped_to_zero=event.dropped_to_zero,
        )
        for position, event in enumerate(events, start=1)
    ]
    return latest_first(numbered)


def snapshot_values(matrix: TimeSeriesMatrix, index: int) -> Dict[str, Optional[float]]:
    """Value of every series at ``index``, ``None`` where out of range."""
    values: Dict[str, Optional[float]] = {}
    for item in matrix.series:
        values[item.name] = item.data[index] if 0 <= index < len(item.data) else None
    return values


@dataclass(frozen=True)
class SnapshotDelta:
    """Change of one series between two collections, in whole percent."""

    text: str
    direction: str  # "up", "down", "flat" or "none"


@dataclass(frozen=True)
class SnapshotRow:
    name: str
    value: Optional[int]
    delta: SnapshotDelta


def _round_percentage(value: Optional[float]) -> Optional[int]:
    if value is None or math.isnan(value):
        return None
    return round_half_up(value)


def snapshot_delta(current: Optional[float], previous: Optional[float]) -> SnapshotDelta:
    """Compare two snapshot values after rounding each one half-up."""
    current_rounded = _round_percentage(current)
    previous_rounded = _round_percentage(previous)
    if current_rounded is None or previous_rounded is None:
        return SnapshotDelta(text="-", direction="none")

    diff = current_rounded - previous_rounded
    if diff == 0:
        return SnapshotDelta(text="±0%", direction="flat")
    if diff > 0:
        return SnapshotDelta(text=f"+{diff}%", direction="up")
    return SnapshotDelta(text=f"{diff}%", direction="down")


def collection_snapshot_rows(
    matrix: TimeSeriesMatrix, events: List[CollectionEventView]
) -> list[list[SnapshotRow]]:
    """Per event, each series' value before the drop and its change since the previous event.

    ``events`` are latest first, so the previous collection of ``events[i]`` is
    ``events[i + 1]``; the oldest event has no baseline.
    """
    rows: list[list[SnapshotRow]] = []
    for position, event in enumerate(events):
        current = snapshot_values(matrix, event.snapshot_index)
        if position + 1 < len(events):
            previous = snapshot_values(matrix, events[position + 1].snapshot_index)
        else:
            previous = {}
        rows.append(
            [
                SnapshotRow(
                    name=name,
                    value=_round_percentage(value),
                    delta=snapshot_delta(value, previous.get(name)),
                )
                for name, value in current.items()
            ]
        )
    return rows


def build_daily_range_calendar(matrix: TimeSeriesMatrix, series_name: str) -> list[CalendarEntry]:
    """Per-day spread (max - min) of one series; weeks start on Monday (0)."""
    series = matrix.find(series_name)
    if series is None:
        return []

    days: Dict[date, List[float]] = {}
    for position, timestamp in enumerate(matrix.dates):
        value = series.data[position] if position < len(series.data) else 0
        day = parse_timestamp(timestamp).date()
        bounds = days.get(day)
        if bounds is None:
            days[day] = [value, value]
        else:
            bounds[0] = min(bounds[0], value)
            bounds[1] = max(bounds[1], value)

    return [
        CalendarEntry(
            date=day.strftime("%Y/%m/%d"),
            day_of_week=day.weekday(),
            value=high - low,
        )
        for day, (low, high) in sorted(days.items())
    ]


def combine_calendars(*calendars: Iterable[CalendarEntry]) -> list[CalendarEntry]:
    """Sum calendar values per date; day of week is recomputed with Sunday as 0."""
    totals: Dict[date, float] = {}
    labels: Dict[date, str] = {}
    for calendar in calendars:
        for entry in calendar:
            day = parse_timestamp(entry.date).date()
            labels.setdefault(day, entry.date)
            totals[day] = totals.get(day, 0) + entry.value

    return [
        CalendarEntry(date=labels[day], day_of_week=(day.weekday() + 1) % 7, value=totals[day])
        for day in sorted(totals)
    ]


class DetailService:
    """Loads detail data files on every call so edits show up without restarts."""

    def __init__(self, waste_path: Path, product_path: Path) -> None:
        self.waste_path = waste_path
        self.product_path = product_path

    def load_waste_detail(self, category: str) -> WasteDetailData:
        source = self._read_waste_source()

        points: Dict[str, List[Point]] = {}
        for record in source.line_chart_records:
            if record.category_id != category:
                continue
            points.setdefault(record.waste_name, []).append((record.recorded_at, record.value))

        try:
            matrix = align_series(points)
            events = detect_collection_events(matrix)
        except ValueError as exc:
            raise DetailDataError(f"Invalid line chart data: {exc}") from exc

        name_key = series_name_key()
        gauges = sorted(
            (snapshot for snapshot in source.gauge_snapshots if snapshot.category_id == category),
            key=lambda snapshot: name_key(snapshot.waste_name),
        )
        calendar = sorted(
            (entry for entry in source.calendar_heatmap if entry.category_id == category),
            key=lambda entry: entry.date,
        )
        history = [entry for entry in source.collection_history if entry.category_id == category]

        return WasteDetailData(
            category=category,
            line_chart=build_line_chart(matrix),
            gauges=[Gauge(name=gauge.waste_name, percentage=gauge.percentage) for gauge in gauges],
            calendar=[
                CalendarEntry(date=entry.date, day_of_week=entry.day_of_week, value=entry.value)
                for entry in calendar
            ],
            collection_history=[
                CollectionHistoryEntry(item=entry.item, rate=entry.rate) for entry in history
            ],
            collection_events=build_collection_event_views(matrix, events),
        )

    def load_product_detail(self, product: str) -> ProductDetailData:
        key = _PRODUCT_KEYS.get(product)
        if key is None:
            raise ValueError(f"Unknown product {product!r}")

        data = self._read_json(self.product_path)
        if not isinstance(data, dict) or not isinstance(data.get(key), dict):
            raise DetailDataError(f"Product detail data has no {key!r} section")

        payload = dict(data[key])
        payload.setdefault("product", product)
        try:
            return ProductDetailData.model_validate(payload)
        except ValidationError as exc:
            raise DetailDataError(f"Invalid product detail data: {exc.error_count()} error(s)") from exc

    def _read_waste_source(self) -> WasteDetailSource:
        data = self._read_json(self.waste_path)
        try:
            return WasteDetailSource.model_validate(data)
        except ValidationError as exc:
            raise DetailDataError(f"Invalid waste detail data: {exc.error_count()} error(s)") from exc

    @staticmethod
    def _read_json(path: Path) -> object:
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Unable to read detail data", extra={"path": str(path), "reason": str(exc)})
            raise DetailDataError(f"Detail data unavailable: {path.name}") from exc


@lru_cache
def build_default_detail_service() -> DetailService:
    settings = get_settings()
    return DetailService(
        waste_path=Path(settings.waste_detail_path),
        product_path=Path(settings.product_detail_path),
    )
