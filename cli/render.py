from __future__ import annotations

from typing import Any, Dict, Iterable

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _status(active: bool) -> str:
    return "active" if active else "stale"


def render_dashboard(payload: Dict[str, Any]) -> None:
    echo_heading("Dashboard")
    echo_key_values([("timestamp", payload.get("timestamp"))])

    typer.echo()
    echo_heading("Waste")
    categories = payload.get("wasteCategories") or []
    if not categories:
        typer.echo("No waste bins configured.")
    for group in categories:
        typer.echo(f"{group.get('title')}:")
        for sensor in group.get("sensors") or []:
            typer.echo(
                f"  - {sensor.get('name')}: {sensor.get('percentage')}% "
                f"({_status(bool(sensor.get('active')))}, updated {sensor.get('updatedAt') or '---'})"
            )

    typer.echo()
    echo_heading("Products")
    products = payload.get("products") or []
    if not products:
        typer.echo("No products configured.")
    for group in products:
        product = group.get("product") or {}
        typer.echo(
            f"  - {group.get('title')}: {product.get('weight')} kg "
            f"({_status(bool(product.get('active')))})"
        )


def render_waste_detail(payload: Dict[str, Any]) -> None:
    echo_heading(f"Waste category {payload.get('category')}")

    typer.echo()
    echo_heading("Gauges")
    for gauge in payload.get("gauges") or []:
        typer.echo(f"  - {gauge.get('name')}: {gauge.get('percentage')}%")

    typer.echo()
    echo_heading("Collection events")
    events = payload.get("collectionEvents") or []
    if not events:
        typer.echo("No collection events detected.")
    for event in events:
        marker = " (emptied)" if event.get("droppedToZero") else ""
        typer.echo(
            f"  #{event.get('sequence')} {event.get('timestamp')} "
            f"{event.get('seriesName')}: -{event.get('dropAmount')}{marker}"
        )


def render_product_detail(payload: Dict[str, Any]) -> None:
    echo_heading(f"Product {payload.get('product')}")
    daily = payload.get("dailyBarChart") or {}
    values = daily.get("values") or []
    dates = daily.get("dates") or []
    cumulative = (payload.get("cumulativeAreaChart") or {}).get("values") or []
    echo_key_values(
        [
            ("period", f"{dates[0]} ~ {dates[-1]}" if dates else "---"),
            ("daily_total", sum(values)),
            ("cumulative", cumulative[-1] if cumulative else 0),
        ]
    )
