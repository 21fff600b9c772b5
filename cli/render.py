from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _format_minutes(value: Any) -> str:
    if value is None:
        return "-"
    return f"{float(value):.1f} min"


def render_process(process: Dict[str, Any]) -> None:
    verdict = "SUCCESS" if process.get("success") else "FAILED"
    colour = typer.colors.GREEN if process.get("success") else typer.colors.RED
    typer.secho(
        f"#{process.get('id')} {process.get('start_time')} -> {process.get('end_time')} [{verdict}]",
        fg=colour,
    )
    pairs = [
        ("  duration", _format_minutes(process.get("duration_minutes"))),
        ("  temperature", f"{process.get('min_temperature')} .. {process.get('max_temperature')} °C"),
        ("  sterilization", _format_minutes(process.get("sterilization_duration_minutes"))),
    ]
    if process.get("percent_target_reached") is not None:
        pairs.append(("  target reached", f"{process.get('percent_target_reached')}%"))
        pairs.append(("  above min temp", f"{process.get('percent_above_min_temp')}%"))
    if process.get("high_temp_duration_minutes") is not None:
        pairs.append(("  high temp", _format_minutes(process.get("high_temp_duration_minutes"))))
    if process.get("completed") is False:
        pairs.append(("  note", "still running at the last reading"))
    echo_key_values(pairs)


def render_report(payload: Dict[str, Any]) -> None:
    echo_heading("Sterilization Report")
    echo_key_values(
        [
            ("plc", payload.get("plc")),
            ("date", payload.get("date")),
            ("method", payload.get("method")),
            ("total_data_points", payload.get("total_data_points")),
        ]
    )

    processes = payload.get("processes") or []
    typer.echo()
    echo_heading("Processes")
    if processes:
        for process in processes:
            render_process(process)
    else:
        typer.echo(payload.get("message") or "No processes detected.")


def render_status(payload: Dict[str, Any]) -> None:
    echo_heading("Autoclave Status")
    typer.echo(f"generated_at: {payload.get('generated_at')}")
    for unit in payload.get("units") or []:
        plc = unit.get("plc") or {}
        line = f"  - {plc.get('display_name') or plc.get('name')}: {unit.get('status')} ({unit.get('message')})"
        if unit.get("seconds_ago") is not None:
            line += f", {unit.get('seconds_ago')}s ago"
        typer.echo(line)


def render_dates(plc: str, dates: List[str]) -> None:
    echo_heading(f"Available dates for {plc}")
    if not dates:
        typer.echo("No stored data.")
        return
    for day in dates:
        typer.echo(f"  - {day}")


def render_data(payload: Dict[str, Any], limit: int) -> None:
    echo_heading("Register Data")
    echo_key_values(
        [
            ("plc", payload.get("plc")),
            ("date", payload.get("date")),
            ("table", payload.get("table_name")),
            ("window", f"{payload.get('start_hour')}:00 - {payload.get('end_hour')}:00"),
            ("total_records", payload.get("total_records")),
        ]
    )
    rows = payload.get("rows") or []
    typer.echo()
    if not rows:
        typer.echo(payload.get("message") or "No rows in the requested window.")
        return
    columns = payload.get("columns") or list(rows[0])
    typer.echo("\t".join(columns))
    for row in rows[:limit]:
        typer.echo("\t".join("" if row.get(column) is None else str(row.get(column)) for column in columns))
    if len(rows) > limit:
        typer.echo(f"... {len(rows) - limit} more row(s)")
