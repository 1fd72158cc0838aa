from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional

import typer

from app.schemas import ContaminationEventOut, ToiletOut, WaterBodyOut
from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_events, render_toilets, render_water_bodies
from datastore.registry import DEFAULT_TOILETS, DEFAULT_WATER_BODIES, EntityRegistry
from services.simulator import SimulationEngine


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the community health monitor.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
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
        help="HTTP timeout in seconds.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("water")
def water_command(ctx: typer.Context) -> None:
    """Show every water body with its latest status."""
    state = _get_state(ctx)
    render_water_bodies(state.client.list_water_bodies())


@app.command("toilets")
def toilets_command(ctx: typer.Context) -> None:
    """Show current usage of every toilet."""
    state = _get_state(ctx)
    render_toilets(state.client.list_toilets())


@app.command("alerts")
def alerts_command(ctx: typer.Context) -> None:
    """Show alert readiness and recent contamination events."""
    state = _get_state(ctx)
    payload = state.client.get_alerts()
    typer.echo(f"Alert state: {payload.get('state')}")
    render_events(payload.get("recent_events") or [])


@app.command("add-water-body")
def add_water_body_command(
    ctx: typer.Context,
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Display name."),
) -> None:
    """Register a new water body seeded with synthetic history."""
    state = _get_state(ctx)
    body = state.client.add_water_body(name)
    typer.secho(f"Added water body {body.get('name')} (id={body.get('id')})", fg=typer.colors.GREEN)


@app.command("remove-water-body")
def remove_water_body_command(
    ctx: typer.Context,
    water_body_id: int = typer.Argument(..., help="Identifier of the water body."),
) -> None:
    """Remove a water body."""
    state = _get_state(ctx)
    state.client.remove_water_body(water_body_id)
    typer.echo(f"Removed water body {water_body_id}.")


@app.command("add-toilet")
def add_toilet_command(
    ctx: typer.Context,
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Display name."),
) -> None:
    """Register a new toilet with zero usage."""
    state = _get_state(ctx)
    toilet = state.client.add_toilet(name)
    typer.secho(f"Added toilet {toilet.get('name')} (id={toilet.get('id')})", fg=typer.colors.GREEN)


@app.command("remove-toilet")
def remove_toilet_command(
    ctx: typer.Context,
    toilet_id: int = typer.Argument(..., help="Identifier of the toilet."),
) -> None:
    """Remove a toilet."""
    state = _get_state(ctx)
    state.client.remove_toilet(toilet_id)
    typer.echo(f"Removed toilet {toilet_id}.")


@app.command("simulate")
def simulate_command(
    ticks: int = typer.Option(10, "--ticks", "-t", min=1, help="Number of ticks to run."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for reproducible runs."),
) -> None:
    """Run the simulation locally, without a server, and print the final state."""
    rng = random.Random(seed) if seed is not None else None
    registry = EntityRegistry(rng=rng)
    for name in DEFAULT_WATER_BODIES:
        registry.add_water_body(name)
    for name in DEFAULT_TOILETS:
        registry.add_toilet(name)

    engine = SimulationEngine(registry, rng=rng)
    events = []
    engine.subscribe(events.append)
    for _ in range(ticks):
        engine.tick()

    typer.echo(f"Ran {ticks} ticks.")
    typer.echo()
    render_water_bodies(
        WaterBodyOut.from_record(body).model_dump(mode="json") for body in registry.list_water_bodies()
    )
    typer.echo()
    render_toilets(ToiletOut.from_record(toilet).model_dump(mode="json") for toilet in registry.list_toilets())
    typer.echo()
    render_events(ContaminationEventOut.from_record(event).model_dump(mode="json") for event in events)
