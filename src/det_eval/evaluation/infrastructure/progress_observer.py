"""ProgressEvaluationObserver — renders a Rich request progress bar to stderr."""

from __future__ import annotations

from rich.console import Console, Group
from rich.live import Live
from rich.progress import (
    Progress,
    ProgressColumn,
    Task,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)
from rich.text import Text


class _CountsColumn(ProgressColumn):
    """Renders done+failed/total with colors matching the bar segments."""

    def render(self, task: Task) -> Text:
        done = int(task.fields.get("done", 0))
        failed = int(task.fields.get("failed", 0))
        total = int(task.total or 0)
        return Text.assemble(
            (str(done), "bright_green"),
            ("+", "dim white"),
            (str(failed), "red"),
            ("/", "dim white"),
            (str(total), "default"),
        )


class _ThreeSegmentBarColumn(ProgressColumn):
    """ProgressColumn that renders three segments: done, failed, remaining."""

    def __init__(self, bar_width: int = 40) -> None:
        super().__init__()
        self.bar_width = bar_width

    def render(self, task: Task) -> Text:
        bar_width = self.bar_width or 40
        total = task.total or 0
        if total > 0:
            done_cells = int(int(task.fields.get("done", 0)) / total * bar_width)
            failed = int(task.fields.get("failed", 0))
            # Failed fills from where done ends; capped so done+failed <= bar_width.
            failed_cells = min(int(failed / total * bar_width), bar_width - done_cells)
        else:
            done_cells = 0
            failed_cells = 0
        remaining_cells = bar_width - done_cells - failed_cells

        result = Text()
        result.append("█" * done_cells, style="bright_green")
        result.append("▒" * failed_cells, style="red")
        result.append("░" * remaining_cells, style="dim white")
        return result


def _make_progress(console: Console) -> Progress:
    """Create a Progress instance with the standard column layout."""
    return Progress(
        TextColumn("{task.description}"),
        _ThreeSegmentBarColumn(bar_width=40),
        _CountsColumn(),
        TimeElapsedColumn(),
        TextColumn("{task.fields[status]}"),
        console=console,
        refresh_per_second=10,
        transient=False,
    )


class ProgressEvaluationObserver:
    """Renders one Rich progress row for the requests of an evaluation on stderr.

    The status column shows the current phase and, once throttling starts,
    the number of throttled requests.

    Pass ``disabled=True`` to suppress all terminal output (useful in tests).

    Does NOT inherit from EvaluationObserver (structural typing via Protocol).
    """

    def __init__(self, disabled: bool = False) -> None:
        self._disabled = disabled
        self._done = 0
        self._failed = 0
        self._throttled = 0
        self._total = 0
        self._phase = ""
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None
        self._live: Live | None = None

    @property
    def counts(self) -> tuple[int, int, int]:
        """(done, failed, throttled) as last reported."""
        return self._done, self._failed, self._throttled

    def _status(self) -> str:
        if self._throttled:
            return f"[yellow]{self._phase} · {self._throttled} throttled[/yellow]"
        return self._phase

    def _update(self) -> None:
        if self._progress is None or self._task_id is None:
            return
        self._progress.update(
            self._task_id,
            completed=self._done + self._failed,
            done=self._done,
            failed=self._failed,
            status=self._status(),
        )

    def _stop(self) -> None:
        if self._live is not None:
            self._live.stop()
        self._progress = None
        self._task_id = None
        self._live = None

    def evaluation_started(
        self,
        evaluation_id: str,
        config_name: str,
        total_requests: int,
        tool_mode: str,
        max_concurrent: int,
    ) -> None:
        self._done = 0
        self._failed = 0
        self._throttled = 0
        self._total = total_requests
        self._phase = "collecting"

        if self._disabled:
            return

        console = Console(stderr=True)
        legend = Text.assemble(
            "  Legend:  ",
            ("█", "bright_green"),
            " done  ",
            ("▒", "red"),
            " failed/abandoned  ",
            ("░", "dim white"),
            " remaining",
        )
        self._progress = _make_progress(console=console)
        self._task_id = self._progress.add_task(
            description=f"[bold]{config_name}[/bold]",
            total=float(total_requests),
            done=0,
            failed=0,
            status=self._status(),
        )
        self._live = Live(
            Group(self._progress, Text(""), legend),
            console=console,
            refresh_per_second=10,
        )
        self._live.start()

    def evaluation_progress(
        self,
        evaluation_id: str,
        phase: str,
        completed: int,
        failed: int,
        throttled: int,
        total: int,
    ) -> None:
        self._done = completed
        self._failed = failed
        self._throttled = throttled
        self._phase = phase
        if not self._disabled:
            self._update()

    def request_throttled(
        self,
        evaluation_id: str,
        request_index: int,
        attempt: int,
        backoff_seconds: float,
        error: str,
    ) -> None:
        pass

    def tool_executed(
        self,
        evaluation_id: str,
        request_index: int,
        tool_name: str,
        success: bool,
        iteration: int,
    ) -> None:
        pass

    def evaluation_phase_changed(self, evaluation_id: str, phase: str) -> None:
        self._phase = phase
        if not self._disabled:
            self._update()

    def evaluation_completed(
        self,
        evaluation_id: str,
        grade: str | None,
        score: int,
        method: str,
        partial: bool,
        elapsed_seconds: float,
    ) -> None:
        self._stop()

    def evaluation_cancelled(
        self, evaluation_id: str, completed: int, total: int
    ) -> None:
        self._stop()

    def evaluation_failed(self, evaluation_id: str, reason: str) -> None:
        self._stop()
