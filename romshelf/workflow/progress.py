"""
Progress tracking for enrichment runs.

Shows a rich progress bar with the current title and outcome, counts
outcomes and prints a summary table when the run ends.
"""

import logging
import sys
import time
from collections import Counter
from typing import Optional

from rich import box
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TaskID, TextColumn
from rich.table import Table

logger = logging.getLogger(__name__)


# Outcome -> (label, style)
STATUS_STYLES = {
    'found': ("Found", 'bright_green'),
    'refreshed': ("Refreshed", 'bright_green'),
    'not_found': ("Not Found", 'red'),
    'skipped': ("Skipped", 'yellow'),
    'offline': ("Offline", 'yellow'),
}


class ProgressTracker:
    """
    Tracks per-entry progress of a run.

    Features:
    - Live progress bar (only when stdout is a terminal)
    - Outcome counters usable in tests and headless runs
    - Summary table at the end of the run
    """

    def __init__(self, enabled: Optional[bool] = None, console: Optional[Console] = None):
        """
        Initialize progress tracker.

        Args:
            enabled: Show the progress bar (default: stdout is a TTY)
            console: rich Console to render to
        """
        self.enabled = sys.stdout.isatty() if enabled is None else enabled
        self.console = console or Console()
        self.counts: Counter = Counter()
        self.total = 0
        self.processed = 0
        self.start_time: Optional[float] = None
        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None

    def start(self, total: int) -> None:
        """Start tracking a run of `total` entries."""
        self.total = total
        self.processed = 0
        self.counts.clear()
        self.start_time = time.time()

        if not self.enabled:
            return

        self._progress = Progress(
            BarColumn(),
            MofNCompleteColumn(),
            TextColumn("{task.fields[title]}", style='cyan'),
            TextColumn("{task.fields[status]}"),
            console=self.console,
            transient=False,
        )
        self._task = self._progress.add_task("enrich", total=total, title='', status='')
        self._progress.start()

    def update(self, title: str, status: str = '') -> None:
        """
        Show the current entry, and record its outcome once known.

        Args:
            title: Game title being processed
            status: Outcome key from STATUS_STYLES, or '' while in progress
        """
        if status:
            self.counts[status] += 1

        if self._progress is None:
            return

        label = ''
        if status:
            text, style = STATUS_STYLES.get(status, (status, 'white'))
            label = f"[{style}]{text}[/{style}]"
        self._progress.update(self._task, title=title, status=label)

    def advance(self) -> None:
        """Mark the current entry as processed."""
        self.processed += 1
        if self._progress is not None:
            self._progress.advance(self._task)

    def finish(self) -> None:
        """Stop the progress bar and print the summary."""
        if self._progress is not None:
            self._progress.stop()
            self._progress = None

        elapsed = time.time() - (self.start_time or time.time())
        logger.info(
            f"Processed {self.processed}/{self.total} entries in {elapsed:.1f}s "
            f"({dict(self.counts)})"
        )

        if self.enabled:
            self.console.print(self.build_summary(elapsed))

    def build_summary(self, elapsed: float = 0.0) -> Table:
        """Build the end-of-run summary table."""
        table = Table(title="Enrichment Summary", box=box.SIMPLE)
        table.add_column("Outcome")
        table.add_column("Entries", justify='right')

        for status, (label, style) in STATUS_STYLES.items():
            table.add_row(f"[{style}]{label}[/{style}]", str(self.counts.get(status, 0)))
        table.add_row("Total", f"{self.processed}/{self.total}")

        minutes, seconds = divmod(int(elapsed), 60)
        table.caption = f"Elapsed {minutes}m {seconds}s"
        return table
