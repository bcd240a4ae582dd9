"""Typer CLI entrypoint for claimpoints."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

import typer

from apps.cli.io import STDIN_MARKER, iter_transcript_lines
from apps.cli.summary import (
    PREFIX,
    render_diagnostics,
    render_empty_scan,
    render_scan_summary,
    render_world_summary,
)
from claimpoints.config.loader import (
    DEFAULT_CONFIG_PATH,
    load_or_default,
    save_config,
    with_alias,
    with_color,
    with_name_format,
)
from claimpoints.config.models import MARKER_COLORS, ClaimPointsConfig
from claimpoints.engine.catalog import known_worlds_path, load_known_worlds, save_known_worlds
from claimpoints.engine.state import EngineState
from claimpoints.markers.store import JsonMarkerStore, apply_diff
from claimpoints.patterns.pattern_set import build_pattern_set
from claimpoints.reconcile.engine import plan_clear, plan_restyle, plan_visibility
from claimpoints.reconcile.models import Marker
from claimpoints.scan.models import ScanKind, SessionOutcome
from claimpoints.scan.session import ClaimScanSession, WorldScanSession
from claimpoints.utils.errors import ConfigError, MarkerStoreError

DEFAULT_STORE_PATH = Path("waypoints.json")

app = typer.Typer(help="ClaimPoints: sync land claims to map waypoints", rich_markup_mode=None)
waypoints_app = typer.Typer(help="Manage existing ClaimPoints.", rich_markup_mode=None)
set_app = typer.Typer(help="Change ClaimPoint name format, alias or color.", rich_markup_mode=None)
waypoints_app.add_typer(set_app, name="set")
app.add_typer(waypoints_app, name="waypoints")

InputOption = Annotated[
    Path,
    typer.Option("--input", "-i", help="Chat transcript to scan ('-' reads stdin)."),
]


@dataclass(frozen=True)
class CliContext:
    config_path: Path
    store_path: Path


@app.callback()
def cli_callback(
    ctx: typer.Context,
    config: Annotated[Path, typer.Option("--config", help="Settings YAML path.")] = (
        DEFAULT_CONFIG_PATH
    ),
    store: Annotated[Path, typer.Option("--store", help="Waypoint store JSON path.")] = (
        DEFAULT_STORE_PATH
    ),
) -> None:
    """Shared options for all commands."""

    ctx.obj = CliContext(config_path=config, store_path=store)


@app.command("worlds")
def worlds_command(ctx: typer.Context, input_path: InputOption = STDIN_MARKER) -> None:
    """List the worlds holding your claims and remember them for suggestions."""

    paths = _paths(ctx)
    state = _load_state(paths)
    session = state.start_world_scan(now=time.monotonic())
    outcome = _drive_scan(state, session, input_path)

    typer.echo(render_world_summary(outcome))
    if outcome.timed_out:
        raise typer.Exit(code=2)
    save_known_worlds(known_worlds_path(paths.config_path), state.known_worlds())


@app.command("add")
def add_command(
    ctx: typer.Context,
    world: Annotated[str, typer.Argument(help="World name as shown in the claim list.")],
    input_path: InputOption = STDIN_MARKER,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Print the plan only.")] = False,
) -> None:
    """Add a ClaimPoint for every claim in WORLD."""

    _scan_and_reconcile(ctx, world, "add", input_path, dry_run)


@app.command("clean")
def clean_command(
    ctx: typer.Context,
    world: Annotated[str, typer.Argument(help="World name as shown in the claim list.")],
    input_path: InputOption = STDIN_MARKER,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Print the plan only.")] = False,
) -> None:
    """Remove ClaimPoints that do not match a claim in WORLD."""

    _scan_and_reconcile(ctx, world, "clean", input_path, dry_run)


@app.command("update")
def update_command(
    ctx: typer.Context,
    world: Annotated[str, typer.Argument(help="World name as shown in the claim list.")],
    input_path: InputOption = STDIN_MARKER,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Print the plan only.")] = False,
) -> None:
    """Combine add and clean for WORLD, and refresh claim size labels."""

    _scan_and_reconcile(ctx, world, "update", input_path, dry_run)


@waypoints_app.command("show")
def show_command(ctx: typer.Context) -> None:
    """Show all ClaimPoints."""

    _set_visibility(ctx, True)


@waypoints_app.command("hide")
def hide_command(ctx: typer.Context) -> None:
    """Hide all ClaimPoints."""

    _set_visibility(ctx, False)


@waypoints_app.command("clear")
def clear_command(ctx: typer.Context) -> None:
    """Permanently delete all ClaimPoints."""

    paths = _paths(ctx)
    state = _load_state(paths)
    store = JsonMarkerStore(paths.store_path)
    applied = apply_diff(store, plan_clear(_list_markers(store), state.patterns))
    typer.echo(f"{PREFIX}Removed all ClaimPoints ({applied['delete']}).")


@set_app.command("nameformat")
def set_name_format_command(
    ctx: typer.Context,
    name_format: Annotated[str, typer.Argument(help="Label format containing %d once.")],
) -> None:
    """Set the name format of all ClaimPoints."""

    state = _load_state(_paths(ctx))
    try:
        updated = with_name_format(state.config, name_format)
    except ConfigError:
        typer.echo(
            f"{PREFIX}'{name_format}' is not a valid name format. Requires %d for claim size."
        )
        raise typer.Exit(code=1) from None
    _restyle(ctx, state, updated)
    typer.echo(f"{PREFIX}Set ClaimPoint name format to '{name_format}'.")


@set_app.command("alias")
def set_alias_command(
    ctx: typer.Context,
    alias: Annotated[str, typer.Argument(help="Marker symbol, at most 2 characters.")],
) -> None:
    """Set the alias of all ClaimPoints."""

    state = _load_state(_paths(ctx))
    updated = with_alias(state.config, alias)
    _restyle(ctx, state, updated)
    typer.echo(f"{PREFIX}Set alias of all ClaimPoints to {updated.claim_points.alias}")


@set_app.command("color")
def set_color_command(
    ctx: typer.Context,
    color: Annotated[str, typer.Argument(help=f"One of: {', '.join(MARKER_COLORS)}.")],
) -> None:
    """Set the color of all ClaimPoints."""

    state = _load_state(_paths(ctx))
    try:
        updated = with_color(state.config, color)
    except ConfigError:
        typer.echo(f"{PREFIX}'{color}' is not a valid color ID.")
        raise typer.Exit(code=1) from None
    _restyle(ctx, state, updated)
    typer.echo(f"{PREFIX}Set color of all ClaimPoints to {color}")


def _scan_and_reconcile(
    ctx: typer.Context, world: str, kind: ScanKind, input_path: Path, dry_run: bool
) -> None:
    paths = _paths(ctx)
    state = _load_state(paths)
    store = JsonMarkerStore(paths.store_path)

    session = state.start_claim_scan(world, kind, now=time.monotonic())
    outcome = _drive_scan(state, session, input_path)

    diagnostics = render_diagnostics(outcome)
    if diagnostics is not None:
        typer.echo(diagnostics)

    if outcome.timed_out:
        typer.echo(render_scan_summary(outcome, {}))
        raise typer.Exit(code=2)
    if not outcome.records:
        typer.echo(render_empty_scan(outcome))
        if kind == "add":
            return

    diff = state.reconcile(outcome.records, kind, _list_markers(store))
    if dry_run:
        typer.echo(json.dumps(diff.model_dump(mode="json"), sort_keys=True))
        return

    applied = apply_diff(store, diff)
    typer.echo(render_scan_summary(outcome, applied))


def _drive_scan(
    state: EngineState,
    session: ClaimScanSession | WorldScanSession,
    input_path: Path,
) -> SessionOutcome:
    try:
        for line in iter_transcript_lines(input_path):
            outcome = state.feed_line(line)
            if outcome is None:
                outcome = state.poll_timeout(time.monotonic())
            if outcome is not None:
                return outcome
    except OSError as exc:
        typer.echo(f"ERROR: cannot read transcript: {exc}")
        raise typer.Exit(code=1) from exc

    # Input ended without a terminator: nothing more can arrive.
    outcome = state.poll_timeout(session.deadline)
    if outcome is None:
        raise RuntimeError("Scan did not finish at its deadline")
    return outcome


def _set_visibility(ctx: typer.Context, visible: bool) -> None:
    paths = _paths(ctx)
    state = _load_state(paths)
    store = JsonMarkerStore(paths.store_path)
    apply_diff(store, plan_visibility(_list_markers(store), state.patterns, visible))
    typer.echo(f"{PREFIX}{'Showing' if visible else 'Hiding'} all ClaimPoints.")


def _restyle(ctx: typer.Context, state: EngineState, updated: ClaimPointsConfig) -> None:
    paths = _paths(ctx)
    store = JsonMarkerStore(paths.store_path)
    new_patterns = build_pattern_set(updated)
    apply_diff(store, plan_restyle(_list_markers(store), state.patterns, new_patterns))
    state.apply_config(updated)
    save_config(paths.config_path, updated)


def _paths(ctx: typer.Context) -> CliContext:
    obj = ctx.find_root().obj
    if not isinstance(obj, CliContext):
        raise RuntimeError("CLI context was not initialised")
    return obj


def _load_state(paths: CliContext) -> EngineState:
    config, patterns = load_or_default(paths.config_path)
    try:
        known = load_known_worlds(known_worlds_path(paths.config_path))
    except ConfigError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=1) from exc
    return EngineState(config, patterns=patterns, known_worlds=known)


def _list_markers(store: JsonMarkerStore) -> list[Marker]:
    try:
        return store.list_markers()
    except MarkerStoreError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=1) from exc


def main() -> None:
    """Console script entrypoint."""

    app()


if __name__ == "__main__":
    main()
