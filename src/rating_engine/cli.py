"""CLI for the Rating Engine."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import pydantic
import structlog
import typer
from rich.console import Console
from rich.logging import RichHandler

from rating_engine import __version__
from rating_engine.core.config import load_config
from rating_engine.core.errors import ConfigurationError, UserNotFoundError
from rating_engine.core.progress import RefreshProgress
from rating_engine.engine import RatingEngine
from rating_engine.services.history import TrendPeriod, history_trend_direction
from rating_engine.services.reporting import (
    format_distribution,
    format_history,
    format_leaderboard,
    format_ranking,
    format_stats_table,
    format_trends,
)

# Configure structlog
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

app = typer.Typer(
    name="rating-engine",
    help="Rating Engine - Weighted rating stats, quality scores and rankings for users",
    add_completion=False,
)
console = Console()

ConfigOption = Annotated[
    Path | None, typer.Option("--config", "-c", help="Path to config YAML file")
]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-V", help="Verbose output")]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"rating-engine v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
) -> None:
    """Rating Engine CLI."""


def _configure_logging(verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )
    logging.getLogger().setLevel(log_level)


def _open_engine(config_path: Path | None, verbose: bool) -> RatingEngine:
    """Load config and build the engine, exiting with status 1 on bad config."""
    _configure_logging(verbose)
    try:
        config = load_config(config_path)
        return RatingEngine(config)
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except ConfigurationError as e:
        console.print(f"[red]{e}")
        raise typer.Exit(1) from e
    except pydantic.ValidationError as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        raise typer.Exit(1) from e


def _require_user(engine: RatingEngine, user_id: int) -> None:
    if not engine.users.exists(user_id):
        console.print(f"[red]Error:[/red] User with ID {user_id} not found")
        raise typer.Exit(1)


@app.command()
def refresh(
    user_id: Annotated[
        int | None, typer.Option("--user-id", "-u", help="Refresh a single user")
    ] = None,
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Refresh even if the cache is fresh")
    ] = False,
    with_history: Annotated[
        bool, typer.Option("--with-history", help="Record rating history snapshots")
    ] = False,
    chunk_size: Annotated[
        int | None, typer.Option("--chunk-size", min=1, help="Users loaded per query")
    ] = None,
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Recompute and store the cached rating summary of users.

    Args:
        user_id: Only refresh this user.
        force: Include users whose cached summary is still fresh.
        with_history: Snapshot refreshed stats into the rating history.
        chunk_size: Override the configured chunk size.
        config_path: Path to YAML configuration file.
        verbose: Enable verbose logging.
    """
    engine = _open_engine(config_path, verbose)
    try:
        if user_id is not None:
            _refresh_single(engine, user_id, force, with_history)
            return

        pending = engine.refresher.count_pending(force)
        if pending == 0:
            console.print("[green]All rating caches are fresh.[/green]")
            return

        console.print(f"[bold]Refreshing {pending} users...[/bold]")
        with RefreshProgress(console).track_users(pending) as advance:
            summary = engine.refresher.refresh_all(
                force=force,
                with_history=with_history,
                chunk_size=chunk_size,
                on_user=advance,
            )

        console.print(f"[green]Processed:[/green] {summary.processed}")
        if not summary.ok:
            console.print(f"[red]Errors:[/red] {summary.errors}")
            raise typer.Exit(1)
    finally:
        engine.close()


def _refresh_single(engine: RatingEngine, user_id: int, force: bool, with_history: bool) -> None:
    try:
        stats = engine.refresher.refresh_user(user_id, force=force, with_history=with_history)
    except UserNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    if stats is None:
        console.print(f"Rating cache for user {user_id} is fresh. Use --force to refresh anyway.")
        return

    console.print(f"[green]Refreshed user {user_id}[/green]")
    console.print(format_stats_table(stats))


@app.command()
def stats(
    user_id: Annotated[int, typer.Argument(help="User to report on")],
    use_cache: Annotated[
        bool, typer.Option("--use-cache/--no-cache", help="Use cached rating stats")
    ] = True,
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Show rating statistics for a user."""
    engine = _open_engine(config_path, verbose)
    try:
        _require_user(engine, user_id)
        user_stats = engine.service.calculate_user_rating_stats(user_id, use_cache=use_cache)
        user = engine.users.get(user_id)

        console.print(f"[bold]Rating stats for user {user_id}[/bold]\n")
        console.print(format_stats_table(user_stats, user.is_rating_eligible if user else None))
        console.print()
        console.print(format_distribution(user_stats))
    finally:
        engine.close()


@app.command()
def rank(
    user_id: Annotated[int, typer.Argument(help="User to rank")],
    category_id: Annotated[
        int | None, typer.Option("--category", help="Rank within a category")
    ] = None,
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Show a user's position among qualified users."""
    engine = _open_engine(config_path, verbose)
    try:
        _require_user(engine, user_id)
        ranking = engine.service.get_user_ranking(user_id, category_id)
        console.print(f"[bold]Ranking for user {user_id}[/bold]\n")
        console.print(format_ranking(ranking))
    finally:
        engine.close()


@app.command()
def leaderboard(
    limit: Annotated[int, typer.Option("--limit", "-n", min=1, help="Number of users")] = 20,
    min_reviews: Annotated[
        int | None, typer.Option("--min-reviews", min=1, help="Minimum review count")
    ] = None,
    category_id: Annotated[
        int | None, typer.Option("--category", help="Only users with a skill in category")
    ] = None,
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Show top rated users from their cached rating summary."""
    engine = _open_engine(config_path, verbose)
    try:
        users = engine.users.top_rated(
            limit=limit,
            min_reviews=min_reviews or engine.config.ranking.min_reviews,
            category_id=category_id,
        )
        title = "Top Rated Users"
        if category_id is not None:
            title += f" (category {category_id})"
        console.print(format_leaderboard(users, title=title))
    finally:
        engine.close()


@app.command()
def history(
    user_id: Annotated[int, typer.Argument(help="User to report on")],
    limit: Annotated[int, typer.Option("--limit", "-n", min=1, help="Number of entries")] = 10,
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Show a user's rating history snapshots, newest first."""
    engine = _open_engine(config_path, verbose)
    try:
        _require_user(engine, user_id)
        entries = engine.history.recent(user_id, limit=limit)
        if not entries:
            console.print(f"No rating history for user {user_id}.")
            return

        trend = history_trend_direction(entries, engine.config.history)
        console.print(f"[bold]Rating history for user {user_id}[/bold] (trend: {trend})\n")
        console.print(format_history(entries))
    finally:
        engine.close()


@app.command()
def trends(
    period: Annotated[
        TrendPeriod, typer.Option("--period", "-p", help="Look-back window")
    ] = TrendPeriod.MONTH,
    category_id: Annotated[
        int | None, typer.Option("--category", help="Only users with a skill in category")
    ] = None,
    config_path: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Show platform-wide rating trends from the rating history."""
    engine = _open_engine(config_path, verbose)
    try:
        console.print(format_trends(engine.rating_trends(period, category_id)))
    finally:
        engine.close()


@app.command()
def validate(
    config_path: Annotated[Path, typer.Argument(help="Path to config YAML file")],
) -> None:
    """Validate a configuration file without touching the database.

    Args:
        config_path: Path to YAML configuration file.
    """
    try:
        config = load_config(config_path)
        console.print("[green]Configuration is valid![/green]")
        console.print(f"  Database: {config.get_database_url()}")
        console.print(f"  Cache backend: {config.cache.backend}")
        console.print(
            "  Cache TTLs (min): "
            f"stats={config.cache.stats_ttl_minutes} "
            f"credibility={config.cache.credibility_ttl_minutes} "
            f"ranking={config.cache.ranking_ttl_minutes}"
        )
        console.print(f"  Ranking min reviews: {config.ranking.min_reviews}")
        console.print(f"  Refresh stale after (min): {config.refresh.stale_after_minutes}")

    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    except ConfigurationError as e:
        console.print(f"[red]{e}")
        raise typer.Exit(1) from e
    except pydantic.ValidationError as e:
        console.print(f"[red]Validation error:[/red] {e}")
        raise typer.Exit(1) from e


@app.command()
def info() -> None:
    """Show tool information and example commands."""
    console.print("[bold]Rating Engine[/bold]")
    console.print(f"Version: {__version__}\n")

    console.print("[bold]Example Commands:[/bold]")
    console.print("  # Refresh stale rating caches")
    console.print("  rating-engine refresh --config config.yaml\n")

    console.print("  # Force-refresh one user and record history")
    console.print("  rating-engine refresh --user-id 42 --force --with-history\n")

    console.print("  # Show stats, bypassing the cache")
    console.print("  rating-engine stats 42 --no-cache\n")

    console.print("  # Rank a user within a category")
    console.print("  rating-engine rank 42 --category 7\n")

    console.print("  # Top 10 users")
    console.print("  rating-engine leaderboard --limit 10\n")

    console.print("  # Recent rating history")
    console.print("  rating-engine history 42 --limit 5\n")

    console.print("  # Platform rating trends over the last quarter")
    console.print("  rating-engine trends --period quarter\n")

    console.print("  # Validate config")
    console.print("  rating-engine validate config.yaml")


if __name__ == "__main__":
    app()
