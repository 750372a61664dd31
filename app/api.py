"""HTTP route definitions for the service."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status

from app.schemas import DashboardPayload, DetailKey, HealthStatus, ProductDetailData, WasteDetailData
from services.dashboard import DashboardService, build_default_dashboard_service
from services.detail import DetailDataError, DetailService, build_default_detail_service

router = APIRouter()

_VALID_KEYS = {key.value for key in DetailKey}


def get_dashboard_service() -> DashboardService:
    return build_default_dashboard_service()


def get_detail_service() -> DetailService:
    return build_default_detail_service()


def require_detail_key(value: str, kind: str) -> str:
    if value not in _VALID_KEYS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {kind}. Must be A or B",
        )
    return value


@router.get(
    "/dashboard",
    response_model=DashboardPayload,
    summary="Latest fill levels, product weights and map markers.",
)
async def get_dashboard(
    service: DashboardService = Depends(get_dashboard_service),
) -> DashboardPayload:
    return service.load_dashboard()


@router.get(
    "/waste/{category}",
    response_model=WasteDetailData,
    summary="Time series, gauges and collection events for a waste category.",
)
async def get_waste_detail(
    category: str,
    service: DetailService = Depends(get_detail_service),
) -> WasteDetailData:
    require_detail_key(category, "category")
    try:
        return service.load_waste_detail(category)
    except DetailDataError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc


@router.get(
    "/product/{product}",
    response_model=ProductDetailData,
    response_model_exclude_none=True,
    summary="Daily and cumulative production charts for a product line.",
)
async def get_product_detail(
    product: str,
    service: DetailService = Depends(get_detail_service),
) -> ProductDetailData:
    require_detail_key(product, "product")
    try:
        return service.load_product_detail(product)
    except DetailDataError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc


@router.get(
    "/health",
    response_model=HealthStatus,
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> HealthStatus:
    return HealthStatus(status="ok", timestamp=datetime.now(timezone.utc))


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
