from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

import typer

_STATUS_COLORS = {
    "Safe": typer.colors.GREEN,
    "Warning": typer.colors.YELLOW,
    "Contaminated": typer.colors.RED,
}


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def _time_label(timestamp: Optional[str]) -> str:
    # ISO timestamps: keep the HH:MM:SS part for display.
    if not timestamp or "T" not in timestamp:
        return timestamp or "--"
    return timestamp.split("T", 1)[1][:8]


def render_water_bodies(bodies: Iterable[Dict[str, Any]]) -> None:
    echo_heading("Water Bodies")
    found = False
    for body in bodies:
        found = True
        latest = body.get("latest") or {}
        status = latest.get("status")
        typer.echo(f"[{body.get('id')}] {body.get('name')}: ", nl=False)
        if not status:
            typer.echo("no readings")
            continue
        typer.secho(status, fg=_STATUS_COLORS.get(status), nl=False)
        typer.echo(
            f"  pH={latest.get('ph')} turbidity={latest.get('turbidity')} NTU"
            f" bacteria={latest.get('bacteria_probability')}%"
            f" temperature={latest.get('temperature')}C"
            f" at {_time_label(latest.get('timestamp'))}"
        )
    if not found:
        typer.echo("No water bodies registered.")


def render_toilets(toilets: Iterable[Dict[str, Any]]) -> None:
    echo_heading("Public Toilets")
    found = False
    for toilet in toilets:
        found = True
        history = toilet.get("history") or []
        typer.echo(
            f"[{toilet.get('id')}] {toilet.get('name')}: usage={toilet.get('usage')}"
            f" ({len(history)} samples)"
        )
    if not found:
        typer.echo("No toilets registered.")


def render_events(events: Iterable[Dict[str, Any]]) -> None:
    echo_heading("Contamination Events")
    found = False
    for event in events:
        found = True
        reading = event.get("reading") or {}
        typer.secho(
            f"  - {event.get('water_body_name')} became Contaminated"
            f" (was {event.get('previous_status') or 'unknown'})"
            f" at {_time_label(event.get('detected_at'))},"
            f" bacteria={reading.get('bacteria_probability')}%",
            fg=typer.colors.RED,
        )
    if not found:
        typer.echo("No contamination events recorded.")
