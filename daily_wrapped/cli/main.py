"""
CLI interface for Daily Wrapped.

Provides command-line access to generation, sweeping and snapshot lookup.
"""

import logging
import sys
from datetime import timedelta
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from daily_wrapped.config.loader import WrappedConfig, load_config
from daily_wrapped.core.aggregation import window_start
from daily_wrapped.core.card import format_cost, format_number, render_text_card
from daily_wrapped.core.errors import ArtifactStoreError
from daily_wrapped.core.generation import generate_daily_snapshots
from daily_wrapped.core.service import WrappedService, build_service
from daily_wrapped.demo.seed_demo_data import seed_demo_events
from daily_wrapped.storage.models import AggregateStats
from daily_wrapped.storage.repository import initialize_schema

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

ConfigOption = typer.Option(
    None,
    "--config",
    "-c",
    help="Path to YAML configuration file"
)


def _setup(config_path: Optional[str]) -> WrappedConfig:
    """Load configuration and route logging through Rich."""
    config = load_config(config_path)
    logging.basicConfig(
        level=config.logging.level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    return config


def _service(config: WrappedConfig) -> WrappedService:
    initialize_schema(config.storage.db_path)
    return build_service(config)


def _format_duration(delta: timedelta) -> str:
    """Format a duration as HH:MM:SS."""
    seconds = max(0, int(delta.total_seconds()))
    hours, remainder = divmod(seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def _display_stats(stats: AggregateStats, title: str) -> None:
    """Display aggregate stats and rankings."""
    console.print(f"\n[bold]{title}[/bold]")
    console.print("-" * 40)
    console.print(f"Tokens: {format_number(stats.total_tokens)} "
                  f"(prompt {format_number(stats.prompt_tokens)}, "
                  f"completion {format_number(stats.completion_tokens)})")
    console.print(f"Messages: {stats.total_messages}")
    console.print(f"Sessions: {stats.session_count}")
    console.print(f"Cost: {format_cost(stats.cost)}")

    for heading, shares in (("Top models", stats.top_models), ("Top providers", stats.top_providers)):
        if not shares:
            continue
        table = Table(title=heading)
        table.add_column("#", justify="right")
        table.add_column("Name")
        table.add_column("Tokens", justify="right")
        for rank, share in enumerate(shares, start=1):
            table.add_row(str(rank), share.key, format_number(share.tokens))
        console.print(table)


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """Daily Wrapped CLI."""
    if ctx.invoked_subcommand is None:
        console.print("Daily Wrapped - Use --help to see available commands")


@app.command()
def init(config_path: Optional[str] = ConfigOption):
    """Initialize the Daily Wrapped database."""
    try:
        config = _setup(config_path)
        initialize_schema(config.storage.db_path)
        console.print("[green]✓[/] Database initialized successfully")
        sys.exit(EXIT_CODE_PASS)
    except Exception as e:
        console.print(f"[red]Error initializing database:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command("seed-demo")
def seed_demo(config_path: Optional[str] = ConfigOption):
    """Insert demo usage events for trying out the other commands."""
    try:
        config = _setup(config_path)
        count = seed_demo_events(config.storage.db_path)
        console.print(f"[green]✓[/] Inserted {count} demo usage events")
        sys.exit(EXIT_CODE_PASS)
    except Exception as e:
        console.print(f"[red]Error seeding demo data:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command()
def generate(
    card: bool = typer.Option(
        False,
        "--card",
        help="Render a text card artifact for each snapshot"
    ),
    workers: Optional[int] = typer.Option(
        None,
        "--workers",
        "-w",
        min=1,
        help="Override generation.max_workers"
    ),
    config_path: Optional[str] = ConfigOption,
):
    """Generate today's snapshot for every user active in the last 24 hours."""
    try:
        config = _setup(config_path)
        service = _service(config)
        report = generate_daily_snapshots(
            service,
            renderer=render_text_card if card else None,
            max_workers=workers,
        )
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    table = Table(title=f"Daily Wrapped {report.date}")
    table.add_column("User")
    table.add_column("Design", justify="right")
    table.add_column("Tokens", justify="right")
    table.add_column("Cost", justify="right")
    for snapshot in report.generated:
        table.add_row(
            snapshot.user_id,
            str(snapshot.design_index),
            format_number(snapshot.stats.total_tokens),
            format_cost(snapshot.stats.cost),
        )
    console.print(table)

    if report.failed:
        for user_id, message in sorted(report.failed.items()):
            console.print(f"[red]✗[/] {user_id}: {message}")
        sys.exit(EXIT_CODE_FAIL)
    console.print(f"[green]✓[/] Generated {len(report.generated)} snapshot(s)")
    sys.exit(EXIT_CODE_PASS)


@app.command()
def sweep(config_path: Optional[str] = ConfigOption):
    """Delete snapshots whose 24-hour TTL has elapsed."""
    try:
        config = _setup(config_path)
        reclaimed = _service(config).sweep_expired()
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)
    console.print(f"[green]✓[/] Reclaimed {reclaimed} expired snapshot(s)")
    sys.exit(EXIT_CODE_PASS)


@app.command()
def show(
    user_id: str = typer.Argument(..., help="User to show today's snapshot for"),
    card: bool = typer.Option(
        False,
        "--card",
        help="Print the stored card as well"
    ),
    config_path: Optional[str] = ConfigOption,
):
    """Show today's snapshot for a user."""
    try:
        config = _setup(config_path)
        service = _service(config)
        view = service.get_snapshot(user_id)
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    if view is None:
        console.print(f"\n[bold yellow]No snapshot for {user_id} today[/]")
        console.print("Run `daily-wrapped generate` or use `daily-wrapped stats` for live numbers.\n")
        sys.exit(EXIT_CODE_PASS)

    snapshot = view.snapshot
    _display_stats(snapshot.stats, f"Daily Wrapped for {snapshot.user_id} ({snapshot.date})")
    console.print(f"Design: {snapshot.design_index}")
    if view.artifact_location:
        console.print(f"Card: {view.artifact_location}")
    console.print(f"Expires in: {_format_duration(view.time_until_expiry)}")
    console.print(f"Next generation: {view.next_generation_at.isoformat()}")

    if card and snapshot.artifact_ref:
        try:
            text = service.lifecycle.artifact_store.read(snapshot.artifact_ref).decode("utf-8")
        except ArtifactStoreError as e:
            console.print(f"[yellow]Card unavailable:[/] {e}")
        else:
            console.print(text, markup=False, highlight=False)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def stats(
    user_id: str = typer.Argument(..., help="User to compute live stats for"),
    config_path: Optional[str] = ConfigOption,
):
    """Compute a user's rolling 24-hour stats without saving a snapshot."""
    try:
        config = _setup(config_path)
        result = _service(config).get_stats(user_id)
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    if result is None:
        console.print(f"[red]Unknown user:[/] {user_id!r}")
        sys.exit(EXIT_CODE_FAIL)
    _display_stats(result, f"Last 24 hours for {user_id}")
    sys.exit(EXIT_CODE_PASS)


@app.command()
def countdown(config_path: Optional[str] = ConfigOption):
    """Show time until the next scheduled generation."""
    try:
        config = _setup(config_path)
        info = build_service(config).countdown()
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)
    console.print(f"Current date: {info.current_date}")
    console.print(f"Next generation: {info.next_generation_at.isoformat()}")
    console.print(f"Time until next: {_format_duration(info.time_until_next)}")
    sys.exit(EXIT_CODE_PASS)


@app.command()
def active(config_path: Optional[str] = ConfigOption):
    """List users with activity in the last 24 hours."""
    try:
        config = _setup(config_path)
        service = _service(config)
        users = service.active_users(window_start(service.clock.now()))
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)
    if not users:
        console.print("[dim]No active users in the last 24 hours.[/]")
    for user_id in sorted(users):
        console.print(user_id)
    sys.exit(EXIT_CODE_PASS)


if __name__ == "__main__":
    app()
