from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from pathlib import Path
from typing import List, Optional

import typer

from app.schemas import DetectionMethod, ProcessSummary
from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_data, render_dates, render_report, render_status
from services.csv_import import load_csv_readings
from services.segmenter import DetectionPolicy, detect_processes
from services.threshold_detector import ThresholdPolicy, detect_threshold_processes
from settings import get_settings


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for inspecting autoclave sterilization processes.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Monitor API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each API request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("processes")
def processes_command(
    ctx: typer.Context,
    plc: str = typer.Argument(..., help="Autoclave name, e.g. PLC_01."),
    day: str = typer.Argument(..., help="Day to inspect (YYYY-MM-DD)."),
    method: DetectionMethod = typer.Option(
        DetectionMethod.timer,
        "--method",
        "-m",
        help="Detection algorithm.",
    ),
) -> None:
    """Show the sterilization processes of one autoclave-day."""
    try:
        date.fromisoformat(day)
    except ValueError as exc:
        raise typer.BadParameter(f"Invalid date {day!r}; expected YYYY-MM-DD.") from exc
    state = _get_state(ctx)
    payload = state.client.get_processes(plc, day, method.value)
    render_report(payload)


@app.command("status")
def status_command(ctx: typer.Context) -> None:
    """Show the latest status of every autoclave."""
    state = _get_state(ctx)
    render_status(state.client.get_latest_status())


@app.command("dates")
def dates_command(
    ctx: typer.Context,
    plc: str = typer.Argument(..., help="Autoclave name, e.g. PLC_01."),
) -> None:
    """List the days with stored data for an autoclave."""
    state = _get_state(ctx)
    render_dates(plc, state.client.get_dates(plc))


@app.command("data")
def data_command(
    ctx: typer.Context,
    plc: str = typer.Argument(..., help="Autoclave name, e.g. PLC_01."),
    day: str = typer.Argument(..., help="Day to inspect (YYYY-MM-DD)."),
    start_hour: int = typer.Option(0, "--start-hour", min=0, max=24, help="First hour of the window."),
    end_hour: int = typer.Option(24, "--end-hour", min=0, max=24, help="Last hour of the window."),
    registers: Optional[List[str]] = typer.Option(
        None,
        "--register",
        "-r",
        help="Register label to include; repeat for several. Defaults to all.",
    ),
    limit: int = typer.Option(50, "--limit", min=1, help="Maximum rows to print."),
) -> None:
    """Show raw register rows of one autoclave-day."""
    try:
        date.fromisoformat(day)
    except ValueError as exc:
        raise typer.BadParameter(f"Invalid date {day!r}; expected YYYY-MM-DD.") from exc
    if start_hour > end_hour:
        raise typer.BadParameter("--start-hour must not be after --end-hour.")
    state = _get_state(ctx)
    payload = state.client.get_data(plc, day, registers or None, start_hour, end_hour)
    render_data(payload, limit)


@app.command("detect")
def detect_command(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="CSV export of a PLC day table."),
    method: DetectionMethod = typer.Option(
        DetectionMethod.timer,
        "--method",
        "-m",
        help="Detection algorithm.",
    ),
) -> None:
    """Run detection locally over a CSV export, without the API."""
    try:
        with file.open("r", encoding="utf-8", newline="") as handle:
            imported = load_csv_readings(handle)
    except ValueError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    settings = get_settings()
    policy = DetectionPolicy.from_settings(settings)
    if method is DetectionMethod.temperature:
        detected = detect_threshold_processes(
            imported.readings, ThresholdPolicy(temperature_scale=policy.temperature_scale)
        )
    else:
        try:
            detected = detect_processes(imported.readings, policy)
        except ValueError as exc:
            typer.secho(str(exc), fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1) from exc

    if imported.skipped_rows:
        typer.secho(
            f"Skipped {len(imported.skipped_rows)} unparseable row(s).",
            fg=typer.colors.YELLOW,
            err=True,
        )
    first_day = (
        min(reading.timestamp for reading in imported.readings).date().isoformat()
        if imported.readings
        else None
    )
    render_report(
        {
            "plc": file.stem,
            "date": first_day,
            "method": method.value,
            "total_data_points": len(imported.readings),
            "processes": [
                ProcessSummary(**asdict(process)).model_dump(mode="json") for process in detected
            ],
        }
    )
