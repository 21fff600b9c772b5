from __future__ import annotations

from typing import Any, Dict, List

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

    def get_processes(self, plc: str, day: str, method: str = "timer") -> Dict[str, Any]:
        return self._get(
            "/sterilization-processes",
            params={"plc": plc, "date": day, "method": method},
        )

    def get_latest_status(self) -> Dict[str, Any]:
        return self._get("/latest-status")

    def get_data(
        self,
        plc: str,
        day: str,
        registers: List[str] | None = None,
        start_hour: int = 0,
        end_hour: int = 24,
    ) -> Dict[str, Any]:
        params = {"plc": plc, "date": day, "start_hour": str(start_hour), "end_hour": str(end_hour)}
        if registers:
            params["registers"] = ",".join(registers)
        return self._get("/data", params=params)

    def get_dates(self, plc: str) -> List[str]:
        payload = self._get(f"/plcs/{plc}/dates")
        dates = payload.get("dates")
        if not isinstance(dates, list):
            raise typer.BadParameter("Unexpected response payload when listing dates.")
        return dates

    def _get(self, path: str, params: Dict[str, str] | None = None) -> Dict[str, Any]:
        try:
            response = self._client.get(path, params=params)
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
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
