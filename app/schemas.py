"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.config import Number


class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class DetailKey(str, Enum):
    """Identifiers accepted by the waste and product detail endpoints."""

    A = "A"
    B = "B"


class WasteSensorView(_ApiModel):
    """Fill level of one waste bin sensor on the home dashboard."""

    name: str
    percentage: int
    active: bool
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")
    display_order: Number
    category: str


class WasteCategoryGroup(_ApiModel):
    title: str
    sensors: List[WasteSensorView] = Field(default_factory=list)
    path: str


class ProductView(_ApiModel):
    """Latest weight of a product line, rounded to whole kilograms."""

    name: str
    weight: int
    active: bool
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")
    display_order: Number = 0
    category: str = ""


class ProductGroup(_ApiModel):
    title: str
    product: ProductView
    path: str


class MarkerItem(_ApiModel):
    name: str
    path: str


class MapMarkerView(_ApiModel):
    name: str
    x: Number
    y: Number
    items: List[MarkerItem] = Field(default_factory=list)


class DashboardPayload(_ApiModel):
    """Home dashboard document, rebuilt on every request."""

    timestamp: datetime
    waste_categories: List[WasteCategoryGroup] = Field(
        default_factory=list, alias="wasteCategories"
    )
    products: List[ProductGroup] = Field(default_factory=list)
    map_markers: List[MapMarkerView] = Field(default_factory=list, alias="mapMarkers")


class LineChartSeries(_ApiModel):
    name: str
    data: List[Number] = Field(default_factory=list)


class LineChart(_ApiModel):
    dates: List[str] = Field(default_factory=list)
    series: List[LineChartSeries] = Field(default_factory=list)


class Gauge(_ApiModel):
    name: str
    percentage: Number


class CalendarEntry(_ApiModel):
    date: str
    day_of_week: int = Field(..., ge=0, le=6, alias="dayOfWeek")
    value: Number


class CollectionHistoryEntry(_ApiModel):
    item: str
    rate: Number


class CollectionEventView(_ApiModel):
    """A detected collection, with the index of the reading just before it."""

    sequence: int = Field(..., ge=1)
    timestamp: str
    index: int
    snapshot_index: int = Field(..., alias="snapshotIndex")
    series_name: str = Field(..., alias="seriesName")
    drop_amount: Number = Field(..., alias="dropAmount")
    dropped_to_zero: bool = Field(..., alias="droppedToZero")


class WasteDetailData(_ApiModel):
    category: DetailKey
    line_chart: LineChart = Field(..., alias="lineChart")
    gauges: List[Gauge] = Field(default_factory=list)
    calendar: List[CalendarEntry] = Field(default_factory=list)
    collection_history: List[CollectionHistoryEntry] = Field(
        default_factory=list, alias="collectionHistory"
    )
    collection_events: List[CollectionEventView] = Field(
        default_factory=list, alias="collectionEvents"
    )


class SimpleChart(_ApiModel):
    dates: List[str] = Field(default_factory=list)
    values: List[Number] = Field(default_factory=list)


class BarChartSeries(_ApiModel):
    name: str
    values: List[Number] = Field(default_factory=list)
    color: Optional[str] = None


class BarChartData(_ApiModel):
    dates: List[str] = Field(default_factory=list)
    values: Optional[List[Number]] = None
    series: Optional[List[BarChartSeries]] = None


class ProductDetailData(_ApiModel):
    product: DetailKey
    daily_bar_chart: SimpleChart = Field(..., alias="dailyBarChart")
    cumulative_area_chart: SimpleChart = Field(..., alias="cumulativeAreaChart")
    calendar: List[CalendarEntry] = Field(default_factory=list)
    small_bar_chart: Optional[BarChartData] = Field(default=None, alias="smallBarChart")


class HealthStatus(BaseModel):
    status: str
    timestamp: datetime
