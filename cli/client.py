from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
import typer

from cli.config import CLIConfig

READING_PATHS = {
    "dht-light": "/api/dht-light-readings",
    "bme": "/api/bme-readings",
}


class ApiClient:
    """Minimal HTTP client for the sensors API."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def post_reading(self, device_class: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", READING_PATHS[device_class], json=payload)

    def latest(self, device_class: str, device_id: Optional[str] = None) -> Dict[str, Any]:
        params = {"deviceId": device_id} if device_id else None
        return self._request("GET", f"{READING_PATHS[device_class]}/latest", params=params)

    def current_stats(self) -> Dict[str, Any]:
        return self._request("GET", "/api/stats/current")

    def compliance(
        self, date_from: Optional[str] = None, date_to: Optional[str] = None
    ) -> Dict[str, Any]:
        params = {
            key: value
            for key, value in (("from", date_from), ("to", date_to))
            if value
        }
        return self._request("GET", "/api/stats/compliance", params=params or None)

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            typer.secho(
                f"Could not reach {self._config.base_url}: {exc}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=1) from exc
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except ValueError:
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
