from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer
import uvicorn

from cli.client import READING_PATHS, ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_compliance, render_current, render_reading
from settings import get_settings


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for running and talking to the ESP32 sensors API.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="API base URL (defaults to API_BASE_URL env or the local server).",
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


@app.command("serve")
def serve_command(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (defaults to HOST env)."),
    port: Optional[int] = typer.Option(None, "--port", help="Listen port (defaults to PORT env)."),
) -> None:
    """Run the API server."""
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=host or settings.host,
        port=port or settings.port,
        log_config=None,
    )


@app.command("send-dht")
def send_dht_command(
    ctx: typer.Context,
    device_id: str = typer.Option(..., "--device-id", "-d", help="Device identifier."),
    temperature: float = typer.Option(..., "--temp", help="DHT22 temperature in °C."),
    humidity: float = typer.Option(..., "--humidity", help="Relative humidity in %."),
    lux: float = typer.Option(..., "--lux", help="Illuminance in lux."),
) -> None:
    """Post a DHT22 + light reading."""
    state = _get_state(ctx)
    payload = {
        "deviceId": device_id,
        "sensors": {"temp_dht_c": temperature, "humidity_pct": humidity, "light_lux": lux},
    }
    result = state.client.post_reading("dht-light", payload)
    typer.secho("Reading stored.", fg=typer.colors.GREEN)
    render_reading(result)


@app.command("send-bme")
def send_bme_command(
    ctx: typer.Context,
    device_id: str = typer.Option(..., "--device-id", "-d", help="Device identifier."),
    temperature: float = typer.Option(..., "--temp", help="BME680 temperature in °C."),
    humidity: float = typer.Option(..., "--humidity", help="Relative humidity in %."),
    pressure: float = typer.Option(..., "--pressure", help="Pressure in hPa."),
    gas: float = typer.Option(..., "--gas", help="Gas resistance in ohms."),
) -> None:
    """Post a BME680 reading."""
    state = _get_state(ctx)
    payload = {
        "deviceId": device_id,
        "sensors": {
            "temp_bme_c": temperature,
            "humidity_bme_pct": humidity,
            "pressure_hpa": pressure,
            "gas_resistance_ohms": gas,
        },
    }
    result = state.client.post_reading("bme", payload)
    typer.secho("Reading stored.", fg=typer.colors.GREEN)
    render_reading(result)


@app.command("latest")
def latest_command(
    ctx: typer.Context,
    device_class: str = typer.Argument(..., help="Device class: dht-light or bme."),
    device_id: Optional[str] = typer.Option(None, "--device-id", "-d", help="Restrict to one device."),
) -> None:
    """Show the most recent reading of a device class."""
    if device_class not in READING_PATHS:
        raise typer.BadParameter(
            f"Unknown device class {device_class!r}; expected one of {', '.join(READING_PATHS)}."
        )
    state = _get_state(ctx)
    render_reading(state.client.latest(device_class, device_id))


@app.command("current")
def current_command(ctx: typer.Context) -> None:
    """Show current conditions evaluated against the recommended ranges."""
    state = _get_state(ctx)
    render_current(state.client.current_stats())


@app.command("compliance")
def compliance_command(
    ctx: typer.Context,
    date_from: Optional[str] = typer.Option(None, "--from", help="First day (YYYY-MM-DD)."),
    date_to: Optional[str] = typer.Option(None, "--to", help="Last day, inclusive (YYYY-MM-DD)."),
) -> None:
    """Show the share of readings inside the recommended ranges."""
    state = _get_state(ctx)
    render_compliance(state.client.compliance(date_from, date_to))
