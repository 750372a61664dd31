from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_dashboard, render_product_detail, render_waste_detail

_DETAIL_KEYS = ("A", "B")


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for reading the facility dashboard service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


def _detail_key(value: str) -> str:
    candidate = value.strip().upper()
    if candidate not in _DETAIL_KEYS:
        raise typer.BadParameter("Must be A or B")
    return candidate


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Dashboard API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="HTTP timeout in seconds.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("dashboard")
def dashboard_command(ctx: typer.Context) -> None:
    """Show fill levels and product weights."""
    state = _get_state(ctx)
    render_dashboard(state.client.get_dashboard())


@app.command("waste")
def waste_command(
    ctx: typer.Context,
    category: str = typer.Argument(..., callback=_detail_key, help="Waste category, A or B."),
) -> None:
    """Show gauges and detected collection events for a waste category."""
    state = _get_state(ctx)
    render_waste_detail(state.client.get_waste_detail(category))


@app.command("product")
def product_command(
    ctx: typer.Context,
    product: str = typer.Argument(..., callback=_detail_key, help="Product line, A or B."),
) -> None:
    """Show production totals for a product line."""
    state = _get_state(ctx)
    render_product_detail(state.client.get_product_detail(product))
