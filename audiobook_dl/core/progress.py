"""
Progress bar for the batch metadata fetch, built on Rich.

Usage:
    from audiobook_dl.core.progress import FetchProgressBar

    with FetchProgressBar(total=len(eligible)) as progress:
        for record in eligible:
            progress.update(filled=True)
"""

from rich import get_console
from rich.progress import BarColumn, Progress, TaskID, TextColumn
from rich.theme import Theme


PROGRESS_THEME = Theme({
    "bar.back": "grey23",
    "bar.complete": "rgb(165,66,129)",
    "bar.finished": "rgb(114,156,31)",
    "bar.pulse": "rgb(165,66,129)",
    "progress.percentage": "white",
})


class FetchProgressBar:
    """
    Progress bar for the batch auto-fill.

    Displays:
    - Description (default "Fetching")
    - Status: ✓ filled, · nothing to fill, ✗ failed
    - Progress bar and percentage

    Example:
        Fetching        ✓ 12  · 3  ✗ 1        ━━━━━━━━━━━━━━━━━  80%

    A disabled bar (enabled=False) counts but draws nothing; the CLI uses
    that when stderr is not a terminal.
    """

    def __init__(self, total: int, description: str = "Fetching", enabled: bool = True):
        self.total = total
        self.description = description
        self.enabled = enabled
        self.completed = 0
        self.filled = 0
        self.unchanged = 0
        self.failed = 0

        self.console = get_console()
        self.progress = Progress(
            TextColumn("[white]{task.description:<15}"),
            TextColumn("{task.fields[status]}", style="white"),
            BarColumn(bar_width=40, finished_style="green"),
            "[progress.percentage]{task.percentage:>3.0f}%",
            console=self.console,
            transient=False,
            refresh_per_second=10,
        )
        self.task_id: TaskID | None = None
        self._started = False

    def __enter__(self) -> "FetchProgressBar":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    def start(self) -> None:
        if self._started or not self.enabled:
            return
        self.console.push_theme(PROGRESS_THEME)
        self.progress.start()
        self.task_id = self.progress.add_task(
            description=self.description,
            total=self.total,
            status=self._get_status_text(),
        )
        self._started = True

    def stop(self) -> None:
        if self._started:
            self.progress.stop()
            self.console.pop_theme()
            self._started = False

    def _get_status_text(self) -> str:
        parts = [
            f"[green]✓ {self.filled}[/green]",
            f"[white]· {self.unchanged}[/white]",
        ]
        if self.failed > 0:
            parts.append(f"[red]✗ {self.failed}[/red]")
        return "  ".join(parts)

    def update(self, filled: bool = False, failed: bool = False) -> None:
        """
        Count one processed record.

        Args:
            filled: At least one empty field was filled.
            failed: The metadata lookup failed.
        """
        self.completed += 1
        if failed:
            self.failed += 1
        elif filled:
            self.filled += 1
        else:
            self.unchanged += 1

        if self.task_id is not None:
            self.progress.update(
                self.task_id,
                completed=self.completed,
                status=self._get_status_text(),
            )
