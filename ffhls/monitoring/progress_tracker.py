# ffhls/monitoring/progress_tracker.py
"""
Progress tracking with rich console output
One bar per quality, fed by (quality, percent) events
"""

from typing import Dict, Optional, Sequence
from contextlib import contextmanager

from rich.console import Console
from rich.progress import (
    Progress,
    TaskID,
    TextColumn,
    BarColumn,
    TimeElapsedColumn,
    SpinnerColumn
)
from rich.table import Table

from ffhls.quality.catalog import QualityProfile


class QualityProgressUpdater:
    """Progress sink mapping quality names to rich tasks"""

    def __init__(self, progress: Progress, tasks: Dict[str, TaskID]):
        self.progress = progress
        self.tasks = tasks

    def __call__(self, quality: str, percent: int):
        self.update(quality, percent)

    def update(self, quality: str, percent: int):
        task_id = self.tasks.get(quality)
        if task_id is None:
            task_id = self.progress.add_task(quality, total=100)
            self.tasks[quality] = task_id

        self.progress.update(task_id, completed=percent)
        if percent >= 100:
            self.progress.update(task_id, description=f"[green]{quality} done")


class ProgressTracker:
    """Renders conversion progress and summaries on the console"""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    @contextmanager
    def quality_progress(self, qualities: Sequence[QualityProfile] = ()):
        """
        Show one progress bar per quality

        Bars for qualities not listed up front are added on first update.

        Yields:
            QualityProgressUpdater, usable directly as a progress callback
        """
        with Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description:<12}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TimeElapsedColumn(),
            console=self.console,
            expand=True
        ) as progress:
            tasks = {
                q.name: progress.add_task(f"{q.name} ({q.resolution})", total=100)
                for q in qualities
            }
            yield QualityProgressUpdater(progress, tasks)

    def print_qualities(self, catalog: Sequence[QualityProfile], default: Sequence[str] = ()):
        """Print the quality catalog as a table"""
        table = Table(title="Available qualities", show_header=True)

        table.add_column("Name", style="cyan", no_wrap=True)
        table.add_column("Resolution", style="green")
        table.add_column("Bitrate", style="yellow")
        table.add_column("Maxrate")
        table.add_column("Bufsize")
        table.add_column("Playlist")
        table.add_column("Default", style="blue")

        for q in catalog:
            table.add_row(
                q.name, q.resolution, q.bitrate, q.maxrate, q.bufsize, q.file,
                "yes" if q.name in default else ""
            )

        self.console.print(table)

    def print_summary(self, data: Dict[str, object]):
        """Print a formatted summary table"""
        table = Table(title="Conversion Summary", show_header=True)
        table.add_column("Metric", style="cyan", no_wrap=True)
        table.add_column("Value", style="green")

        for key, value in data.items():
            table.add_row(str(key), str(value))

        self.console.print(table)

    def print_error(self, message: str):
        self.console.print(f"[bold red]ERROR:[/bold red] {message}")

    def print_success(self, message: str):
        self.console.print(f"[bold green]SUCCESS:[/bold green] {message}")
