"""
Rich-based live progress panel for line-at-a-time dump processing.

Shows counters (lines read, blocks found, ...) plus elapsed time and line
rate in a panel that refreshes in place instead of scrolling the terminal.
"""

import time
from typing import Any, Dict, Optional

from rich import box
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text


class ProgressDisplay:
    """
    Context manager for a live-updating metrics panel.

    Usage:
        with ProgressDisplay("Extracting infoboxes") as progress:
            for n, line in enumerate(lines, 1):
                progress.update(Lines=n, Included=included)

    With enabled=False the display is never started and update() only
    records metrics, so callers need no separate quiet code path.
    """

    def __init__(
        self,
        title: str = "Progress",
        update_interval: int = 5000,
        refresh_per_second: int = 4,
        enabled: bool = True,
    ):
        """
        Args:
            title: Panel title
            update_interval: Redraw every N calls to update()
            refresh_per_second: Rich refresh rate
            enabled: Start the live display
        """
        self.title = title
        self.update_interval = update_interval
        self.refresh_per_second = refresh_per_second
        self.enabled = enabled

        self.metrics: Dict[str, Any] = {}
        self.live: Optional[Live] = None
        self.start_time: float = 0.0
        self.calls: int = 0
        self._rate_metric: Optional[str] = None

    def __enter__(self):
        self.start_time = time.time()
        if self.enabled:
            self.live = Live(self._make_panel(), refresh_per_second=self.refresh_per_second)
            self.live.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.live:
            self._refresh()
            self.live.__exit__(exc_type, exc_val, exc_tb)
            self.live = None
        return False

    @property
    def elapsed(self) -> float:
        return time.time() - self.start_time

    def update(self, **metrics):
        """Record metrics; the first metric ever passed drives the rate."""
        self.calls += 1
        self.metrics.update(metrics)

        if self._rate_metric is None and metrics:
            self._rate_metric = next(iter(metrics))

        if self.calls % self.update_interval == 0:
            self._refresh()

    def _refresh(self):
        if self.live:
            self.live.update(self._make_panel())

    def _make_panel(self) -> Panel:
        grid = Table.grid(padding=(0, 2))
        grid.add_column(justify="left", no_wrap=True)
        grid.add_column(justify="right", no_wrap=True)

        rows = dict(self.metrics)
        elapsed = self.elapsed if self.start_time else 0.0
        rows["Elapsed"] = elapsed
        if self._rate_metric and elapsed > 0:
            count = self.metrics.get(self._rate_metric)
            if isinstance(count, (int, float)):
                rows["Rate"] = count / elapsed

        for key, value in rows.items():
            grid.add_row(
                Text(f"{key}:", style="bold grey50"),
                Text(format_metric(key, value), style="bright_cyan"),
            )

        return Panel(grid, title=self.title, box=box.SIMPLE, border_style="bright_black")


def format_metric(key: str, value: Any) -> str:
    """Format a metric value for display."""
    if key == "Elapsed":
        minutes, seconds = divmod(int(value), 60)
        hours, minutes = divmod(minutes, 60)
        if hours:
            return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
        return f"{minutes:02d}:{seconds:02d}"
    if key == "Rate":
        return f"{value:,.1f}/s"
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, int):
        return f"{value:,}"
    if isinstance(value, float):
        return f"{value:,.2f}"
    return str(value)
