"""Raw records backing the waste and product detail pages."""

from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, Field

from models.config import Number

CategoryId = Literal["A", "B"]


class LineChartRecord(BaseModel):
    id: str
    category_id: CategoryId
    waste_code: str
    waste_name: str
    recorded_at: str
    value: Number


class GaugeSnapshot(BaseModel):
    id: str
    category_id: CategoryId
    waste_code: str
    waste_name: str
    percentage: Number
    recorded_at: str


class CalendarRecord(BaseModel):
    id: str
    category_id: CategoryId
    date: str
    day_of_week: int = Field(..., ge=0, le=6)
    value: Number


class CollectionHistoryRecord(BaseModel):
    id: str
    category_id: CategoryId
    item: str
    rate: Number


class WasteDetailSource(BaseModel):
    """Contents of the waste detail data file."""

    line_chart_records: List[LineChartRecord] = Field(default_factory=list)
    gauge_snapshots: List[GaugeSnapshot] = Field(default_factory=list)
    calendar_heatmap: List[CalendarRecord] = Field(default_factory=list)
    collection_history: List[CollectionHistoryRecord] = Field(default_factory=list)
