from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the monitoring service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def list_water_bodies(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/water-bodies")

    def add_water_body(self, name: Optional[str] = None) -> Dict[str, Any]:
        return self._request("POST", "/water-bodies", json=self._name_payload(name))

    def remove_water_body(self, water_body_id: int) -> None:
        self._request("DELETE", f"/water-bodies/{water_body_id}")

    def list_toilets(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/toilets")

    def add_toilet(self, name: Optional[str] = None) -> Dict[str, Any]:
        return self._request("POST", "/toilets", json=self._name_payload(name))

    def remove_toilet(self, toilet_id: int) -> None:
        self._request("DELETE", f"/toilets/{toilet_id}")

    def get_alerts(self) -> Dict[str, Any]:
        return self._request("GET", "/alerts")

    @staticmethod
    def _name_payload(name: Optional[str]) -> Optional[Dict[str, Any]]:
        return {"name": name} if name else None

    def _request(self, method: str, path: str, json: Any = None) -> Any:
        try:
            response = self._client.request(method, path, json=json)
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
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
