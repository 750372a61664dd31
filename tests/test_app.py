from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from datastore.config_store import ConfigResolver
from datastore.readings import ReadingStore
from services.aggregator import DashboardAggregator
from services.dashboard import DashboardService
from services.detail import DetailService
from settings import get_settings

DATA_DIR = Path(__file__).resolve().parents[1] / "data"
REFERENCE = datetime(2024, 6, 3, 12, 0, tzinfo=timezone.utc)


class FixedTimeDashboardService(DashboardService):
    def load_dashboard(self, reference_time: Optional[datetime] = None):
        return super().load_dashboard(reference_time or REFERENCE)


class ExplodingDashboardService:
    def load_dashboard(self, reference_time: Optional[datetime] = None):
        raise RuntimeError("boom")


def _dashboard_service() -> DashboardService:
    store = ReadingStore()
    store.extend(ReadingStore(persistence_path=DATA_DIR / "readings.json").scan())
    return FixedTimeDashboardService(
        readings=store,
        config_resolver=ConfigResolver(DATA_DIR / "dashboard_config.json"),
        aggregator=DashboardAggregator(),
    )


def _install_services(monkeypatch, dashboard, detail) -> None:
    for module in ("app.api", "app.web"):
        monkeypatch.setattr(f"{module}.build_default_dashboard_service", lambda: dashboard)
        monkeypatch.setattr(f"{module}.build_default_detail_service", lambda: detail)


@pytest.fixture
def detail_service() -> DetailService:
    return DetailService(
        waste_path=DATA_DIR / "waste_detail.json",
        product_path=DATA_DIR / "product_detail.json",
    )


@pytest.fixture
def api_client(monkeypatch, detail_service: DetailService) -> Iterator[TestClient]:
    _install_services(monkeypatch, _dashboard_service(), detail_service)
    with TestClient(create_app()) as client:
        yield client


@pytest.fixture
def failing_client(monkeypatch, detail_service: DetailService) -> Iterator[TestClient]:
    _install_services(monkeypatch, ExplodingDashboardService(), detail_service)
    with TestClient(create_app(), raise_server_exceptions=False) as client:
        yield client


def test_root_and_health(api_client: TestClient) -> None:
    root = api_client.get("/")
    health = api_client.get("/health")

    assert root.status_code == 200
    assert root.json()["status"] == "ok"
    assert health.status_code == 200
    assert health.json()["status"] == "ok"


def test_dashboard_payload(api_client: TestClient) -> None:
    response = api_client.get("/dashboard")

    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"timestamp", "wasteCategories", "products", "mapMarkers"}
    first_bin = body["wasteCategories"][0]["sensors"][0]
    assert first_bin["name"] == "Bin A-1"
    assert first_bin["percentage"] == 51
    assert first_bin["active"] is True
    assert first_bin["updatedAt"].startswith("2024-06-03T09:00:00")
    assert [group["product"]["weight"] for group in body["products"]] == [125, 89]
    north = body["mapMarkers"][0]
    assert north["items"] == [
        {"name": "Waste station A", "path": "/waste/A"},
        {"name": "Product A", "path": "/product/A"},
    ]


def test_waste_detail(api_client: TestClient) -> None:
    response = api_client.get("/waste/A")

    assert response.status_code == 200
    body = response.json()
    assert body["category"] == "A"
    assert [series["name"] for series in body["lineChart"]["series"]] == ["Recycled paper", "Combustibles"]
    assert [event["sequence"] for event in body["collectionEvents"]] == [2, 1]
    assert body["collectionEvents"][1]["droppedToZero"] is True


def test_invalid_waste_category_returns_bad_request(api_client: TestClient) -> None:
    response = api_client.get("/waste/C")

    assert response.status_code == 400
    assert response.json() == {"detail": "Invalid category. Must be A or B"}


def test_product_detail_omits_missing_small_bar_chart(api_client: TestClient) -> None:
    product_a = api_client.get("/product/A").json()
    product_b = api_client.get("/product/B").json()

    assert "smallBarChart" in product_a
    assert product_b["product"] == "B"
    assert "smallBarChart" not in product_b


def test_invalid_product_returns_bad_request(api_client: TestClient) -> None:
    response = api_client.get("/product/a")

    assert response.status_code == 400
    assert response.json() == {"detail": "Invalid product. Must be A or B"}


def test_missing_detail_data_returns_service_unavailable(monkeypatch, tmp_path) -> None:
    broken = DetailService(waste_path=tmp_path / "waste.json", product_path=tmp_path / "product.json")
    _install_services(monkeypatch, _dashboard_service(), broken)

    with TestClient(create_app()) as client:
        waste = client.get("/waste/A")
        product = client.get("/product/A")

    assert waste.status_code == 503
    assert product.status_code == 503
    assert "waste.json" in waste.json()["detail"]


def test_unexpected_error_includes_stack_in_development(failing_client: TestClient) -> None:
    response = failing_client.get("/dashboard")

    assert response.status_code == 500
    error = response.json()["error"]
    assert error["message"] == "boom"
    assert "RuntimeError" in error["stack"]


def test_unexpected_error_hides_stack_in_production(monkeypatch, detail_service: DetailService) -> None:
    monkeypatch.setenv("APP_ENV", "production")
    get_settings.cache_clear()
    _install_services(monkeypatch, ExplodingDashboardService(), detail_service)

    try:
        with TestClient(create_app(), raise_server_exceptions=False) as client:
            response = client.get("/dashboard")
    finally:
        get_settings.cache_clear()

    assert response.status_code == 500
    assert response.json() == {"error": {"message": "boom"}}


def test_cors_allows_configured_origin(api_client: TestClient) -> None:
    response = api_client.get("/health", headers={"Origin": "http://localhost:5173"})

    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"


def test_ui_dashboard_page(api_client: TestClient) -> None:
    response = api_client.get("/ui")

    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]
    assert "Bin A-1" in response.text
    assert "Waste station B" in response.text


def test_ui_waste_page_lists_collection_events(api_client: TestClient) -> None:
    response = api_client.get("/ui/waste/A", params={"series": "Combustibles"})

    assert response.status_code == 200
    assert "Collection events" in response.text
    assert "Daily range" in response.text
    assert "2024/06/01 18:00" in response.text
    # Latest collection compared with the one before it.
    assert "Recycled paper: 0% <span class=\"delta-down\">(-52%)</span>" in response.text
    assert "Combustibles: 78% <span class=\"delta-up\">(+8%)</span>" in response.text
    assert "delta-none" in response.text


def test_ui_waste_page_rejects_unknown_category_like_the_api(api_client: TestClient) -> None:
    response = api_client.get("/ui/waste/Z")

    assert response.status_code == 400
    assert response.json() == {"detail": "Invalid category. Must be A or B"}


def test_ui_gauges_round_half_up(monkeypatch, tmp_path) -> None:
    waste_path = tmp_path / "waste.json"
    waste_path.write_text(
        json.dumps(
            {
                "gauge_snapshots": [
                    {
                        "id": "g-1",
                        "category_id": "A",
                        "waste_code": "OT",
                        "waste_name": "Other",
                        "percentage": 12.5,
                        "recorded_at": "2024/06/02 18:00",
                    }
                ]
            }
        )
    )
    detail = DetailService(waste_path=waste_path, product_path=DATA_DIR / "product_detail.json")
    _install_services(monkeypatch, _dashboard_service(), detail)

    with TestClient(create_app()) as client:
        response = client.get("/ui/waste/A")

    assert response.status_code == 200
    assert "<td>Other</td><td>13%</td>" in response.text


def test_ui_products_page(api_client: TestClient) -> None:
    response = api_client.get("/ui/products")

    assert response.status_code == 200
    assert "Combined calendar" in response.text
