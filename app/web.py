from __future__ import annotations

from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from app.api import require_detail_key
from app.schemas import DetailKey
from services.dashboard import DashboardService, build_default_dashboard_service
from services.detail import (
    DetailDataError,
    DetailService,
    build_daily_range_calendar,
    build_default_detail_service,
    collection_snapshot_rows,
    combine_calendars,
)
from services.metrics import round_half_up
from services.timeseries import NamedSeries, TimeSeriesMatrix


templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))


def get_dashboard_service() -> DashboardService:
    return build_default_dashboard_service()


def get_detail_service() -> DetailService:
    return build_default_detail_service()


def _unavailable(exc: DetailDataError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


router = APIRouter(include_in_schema=False)


@router.get("/ui", name="ui_index", response_class=HTMLResponse)
async def ui_index(
    request: Request,
    service: DashboardService = Depends(get_dashboard_service),
) -> HTMLResponse:
    dashboard = service.load_dashboard()
    return templates.TemplateResponse(
        request,
        "ui/index.html",
        {"dashboard": dashboard},
    )


@router.get("/ui/waste/{category}", name="ui_waste_detail", response_class=HTMLResponse)
async def ui_waste_detail(
    request: Request,
    category: str,
    series: Optional[str] = None,
    service: DetailService = Depends(get_detail_service),
) -> HTMLResponse:
    require_detail_key(category, "category")
    try:
        detail = service.load_waste_detail(category)
    except DetailDataError as exc:
        raise _unavailable(exc) from exc

    matrix = TimeSeriesMatrix(
        dates=detail.line_chart.dates,
        series=[NamedSeries(name=item.name, data=item.data) for item in detail.line_chart.series],
    )
    selected = series or (matrix.series[0].name if matrix.series else None)
    snapshots = collection_snapshot_rows(matrix, detail.collection_events)
    events = [
        {"event": event, "snapshot": rows}
        for event, rows in zip(detail.collection_events, snapshots)
    ]

    return templates.TemplateResponse(
        request,
        "ui/waste.html",
        {
            "detail": detail,
            "gauges": [(gauge.name, round_half_up(gauge.percentage)) for gauge in detail.gauges],
            "events": events,
            "series_names": [item.name for item in matrix.series],
            "selected_series": selected,
            "daily_calendar": build_daily_range_calendar(matrix, selected) if selected else [],
        },
    )


@router.get("/ui/products", name="ui_products", response_class=HTMLResponse)
async def ui_products(
    request: Request,
    service: DetailService = Depends(get_detail_service),
) -> HTMLResponse:
    try:
        products = [service.load_product_detail(key.value) for key in DetailKey]
    except DetailDataError as exc:
        raise _unavailable(exc) from exc

    return templates.TemplateResponse(
        request,
        "ui/products.html",
        {
            "products": products,
            "calendar": combine_calendars(*(product.calendar for product in products)),
        },
    )
