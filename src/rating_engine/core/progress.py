"""Progress tracking utilities for batch rating operations."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
)


class RefreshProgress:
    """Progress bar for long-running refreshes over many users."""

    def __init__(self, console: Console | None = None) -> None:
        """Initialize progress tracker.

        Args:
            console: Optional console instance. If None, creates a new one.
        """
        self.console = console or Console()

    @contextmanager
    def track_users(
        self, total: int, description: str = "Refreshing ratings"
    ) -> Iterator[Callable[[int], None]]:
        """Show a bar for ``total`` users.

        Args:
            total: Number of users to visit.
            description: Description of the operation.

        Yields:
            Callback that advances the bar by one for a visited user id.
        """
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TaskProgressColumn(),
            console=self.console,
        ) as progress:
            task = progress.add_task(f"[cyan]{description}...", total=total)

            def advance(user_id: int) -> None:
                progress.update(task, advance=1, description=f"[cyan]{description}: {user_id}")

            yield advance
