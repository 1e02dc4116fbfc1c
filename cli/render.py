from __future__ import annotations

from typing import Any, Dict, Iterable

import typer

_STATUS_COLORS = {
    "en_rango": typer.colors.GREEN,
    "bajo": typer.colors.BLUE,
    "alto": typer.colors.RED,
}


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_reading(payload: Dict[str, Any]) -> None:
    echo_heading("Reading")
    echo_key_values(
        [
            ("id", payload.get("id")),
            ("deviceId", payload.get("deviceId")),
            ("createdAt", payload.get("createdAt")),
        ]
    )
    sensors = payload.get("sensors") or {}
    typer.echo()
    echo_heading("Sensors")
    if sensors:
        echo_key_values(sensors.items())
    else:
        typer.echo("No sensor values.")


def render_current(payload: Dict[str, Any]) -> None:
    echo_heading("Current conditions")
    derived = payload.get("derived") or {}
    for name, metric in derived.items():
        value = metric.get("value")
        shown = "n/a" if value is None else f"{value} {metric.get('unit', '')}".rstrip()
        status = metric.get("status")
        if status is None:
            typer.echo(f"{name}: {shown}")
            continue
        typer.echo(f"{name}: {shown} ", nl=False)
        typer.secho(f"[{status}]", fg=_STATUS_COLORS.get(status))


def render_compliance(payload: Dict[str, Any]) -> None:
    echo_heading("Range compliance")
    window = payload.get("range") or {}
    echo_key_values([("from", window.get("from")), ("to", window.get("to"))])

    climate = payload.get("temperatureHumidity") or {}
    typer.echo()
    echo_heading("Temperature / humidity")
    echo_key_values(
        [
            ("readings", climate.get("total")),
            ("temperature ok %", _pct(climate.get("tempOkPct"))),
            ("humidity ok %", _pct(climate.get("humOkPct"))),
            ("both ok %", _pct(climate.get("bothOkPct"))),
        ]
    )

    light = payload.get("light") or {}
    typer.echo()
    echo_heading("Light")
    echo_key_values(
        [
            ("readings", light.get("total")),
            ("light ok %", _pct(light.get("lightOkPct"))),
        ]
    )


def _pct(value: Any) -> str:
    if value is None:
        return "n/a"
    return f"{value:.1f}"
