"""Terminal output handling using Rich library.

This module provides the OutputHandler class for all CLI terminal output:
colored status messages, a spinner for the index crawl, the
"[HH:MM:SS] Progress: n/total pages" indicator and the final sync summary.
Supports verbosity levels and --no-color flag.
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Iterator

from rich.console import Console
from rich.live import Live
from rich.spinner import Spinner

from md_to_notion.file_mapper.models import ProgressCallback

from .models import SyncSummary


class OutputHandler:
    """Handles all terminal output using Rich library.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output

    Example:
        >>> handler = OutputHandler(verbosity=1, no_color=False)
        >>> handler.success("Sync complete!")
        >>> with handler.spinner("Collecting existing pages from Notion..."):
        ...     # Do work
        ...     pass
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False):
        """Initialize output handler.

        Args:
            verbosity: Verbosity level (0=summary, 1=info, 2=debug)
            no_color: Disable color output if True
        """
        self.verbosity = verbosity
        self.console = Console(
            no_color=no_color,
            highlight=False,
        )

    def success(self, message: str) -> None:
        """Display success message in green."""
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        """Display error message in red."""
        self.console.print(f"[red]✗[/red] {message}", style="red")

    def warning(self, message: str) -> None:
        """Display warning message in yellow."""
        self.console.print(f"[yellow]⚠[/yellow] {message}", style="yellow")

    def info(self, message: str) -> None:
        """Display info message (only if verbosity >= 1)."""
        if self.verbosity >= 1:
            self.console.print(message)

    def debug(self, message: str) -> None:
        """Display debug message (only if verbosity >= 2)."""
        if self.verbosity >= 2:
            self.console.print(f"[dim]{message}[/dim]")

    def print(self, message: str) -> None:
        """Display message without formatting."""
        self.console.print(message)

    @contextmanager
    def spinner(self, message: str) -> Iterator[None]:
        """Display spinner while a long operation runs.

        Example:
            >>> with handler.spinner("Collecting existing pages..."):
            ...     index = asyncio.run(builder.build_index(root_id))
        """
        spinner = Spinner("dots", text=message)
        with Live(spinner, console=self.console, refresh_per_second=10, transient=True):
            yield

    def make_progress_callback(self) -> ProgressCallback:
        """Return a (processed, total) callback printing a progress line.

        The line is rewritten in place and terminated once processed
        reaches total.
        """
        def report(processed: int, total: int) -> None:
            percentage = round(processed / total * 100) if total > 0 else 0
            timestamp = datetime.now().strftime("%H:%M:%S")
            self.console.print(
                f"[{timestamp}] Progress: {processed}/{total} pages ({percentage}%)",
                end="\n" if processed == total else "\r",
                markup=False,
            )
        return report

    def print_summary(self, summary: SyncSummary) -> None:
        """Display sync summary with color coding."""
        self.console.print("\n[bold]Sync Summary:[/bold]")
        self.console.print(f"  [dim]─[/dim] Existing pages found: {summary.pages_found}")

        if summary.pages_created > 0:
            self.console.print(f"  [green]+[/green] Pages created: {summary.pages_created}")

        if summary.files_synced > 0:
            self.console.print(
                f"  [green]↑[/green] Files synced: {summary.files_synced} "
                f"({summary.blocks_appended} block(s) appended, "
                f"{summary.blocks_deleted} deleted)"
            )

        if summary.files_skipped > 0:
            self.console.print(f"  [dim]─[/dim] Unchanged: {summary.files_skipped} file(s)")

        if summary.pages_archived > 0:
            self.console.print(f"  [red]✗[/red] Pages archived: {summary.pages_archived}")
            for key in summary.archived_keys:
                self.console.print(f"    • {key}")

        changes = (
            summary.pages_created + summary.blocks_appended
            + summary.blocks_deleted + summary.pages_archived
        )
        if changes == 0:
            self.console.print("\n[green]Already in sync. No changes detected.[/green]")
        else:
            self.console.print("\n[green]Sync complete![/green]")
