"""Coloured terminal summary of an evaluation export."""

from pathlib import Path

import typer

from det_eval.evaluation.domain.export import EvaluationExport
from det_eval.grading.domain.report import ConsistencyReport

# ---------------------------------------------------------------------------
# ANSI helpers
# ---------------------------------------------------------------------------
_RESET = "\033[0m"
_BOLD = "\033[1m"
_DIM = "\033[2m"
_CYAN = "\033[36m"
_YELLOW = "\033[33m"
_GREEN = "\033[32m"
_RED = "\033[31m"
_BLUE = "\033[34m"
_WHITE = "\033[97m"

_GRADE_COLORS: dict[str, str] = {
    "A": _GREEN,
    "B": _GREEN,
    "C": _YELLOW,
    "D": _RED,
    "F": _RED,
}
_BAR_CELLS = 10


def _rule(width: int = 72, color: str = _DIM) -> None:
    typer.echo(f"{color}{'─' * width}{_RESET}")


def _rate_color(rate: float) -> str:
    if rate >= 0.9:
        return _GREEN
    if rate >= 0.7:
        return _YELLOW
    return _RED


def _format_elapsed(elapsed_seconds: float) -> str:
    """Format elapsed seconds as '1m 23.4s' or '5.2s'."""
    minutes, seconds = divmod(elapsed_seconds, 60)
    if minutes >= 1:
        return f"{int(minutes)}m {seconds:.1f}s"
    return f"{elapsed_seconds:.1f}s"


def _print_metrics(report: ConsistencyReport) -> None:
    if report.metrics is None:
        return
    rows: list[tuple[str, float]] = [
        ("Tool usage", report.metrics.tool_usage_consistency),
        ("Decisions", report.metrics.decision_consistency),
        ("Semantic", report.metrics.semantic_similarity),
        ("Structure", report.metrics.structural_similarity),
    ]
    label_w = max(len(label) for label, _ in rows)
    typer.echo("")
    typer.echo(f"  {_DIM}{'Metric':<{label_w}}  {'Rate':>5}  Bar{_RESET}")
    typer.echo(f"  {'─' * label_w}  {'─' * 5}  {'─' * _BAR_CELLS}")
    for label, rate in rows:
        color = _rate_color(rate=rate)
        filled = round(rate * _BAR_CELLS)
        bar = f"{color}{'█' * filled}{_DIM}{'░' * (_BAR_CELLS - filled)}{_RESET}"
        typer.echo(
            f"  {_WHITE}{label:<{label_w}}{_RESET}  {color}{rate:>5.2f}{_RESET}  {bar}"
        )
    typer.echo(
        f"  {_DIM}exact matches {report.metrics.exact_match_count}"
        f" · unique responses {report.metrics.unique_response_count}{_RESET}"
    )


def _print_report(report: ConsistencyReport | None) -> None:
    typer.echo("")
    _rule(color=_BLUE)
    if report is None:
        typer.echo(f"{_YELLOW}{_BOLD}  Not graded{_RESET}")
        _rule(color=_BLUE)
        return

    if report.grade is None:
        typer.echo(f"{_YELLOW}{_BOLD}  Insufficient data{_RESET}")
    else:
        color = _GRADE_COLORS.get(report.grade, _WHITE)
        typer.echo(
            f"{color}{_BOLD}  Grade {report.grade}{_RESET}"
            f"  {_DIM}score {report.score}/100 · {report.analysis_method}{_RESET}"
        )
    _rule(color=_BLUE)

    _print_metrics(report=report)

    if report.notable_variations:
        typer.echo("")
        typer.echo(f"  {_YELLOW}{_BOLD}Notable variations{_RESET}")
        for variation in report.notable_variations[:10]:
            typer.echo(f"  {_DIM}-{_RESET} {variation}")
    if report.notes:
        typer.echo("")
        typer.echo(f"  {_DIM}{report.notes}{_RESET}")
    if report.partial is not None:
        typer.echo(
            f"  {_YELLOW}Partial result: {report.partial.completed}/"
            f"{report.partial.target} responses, {report.partial.quality} quality, "
            f"{report.partial.confidence} confidence{_RESET}"
        )


def print_summary(export: EvaluationExport, export_path: Path | None = None) -> None:
    """Print a colorized summary of an evaluation to stdout."""
    stats = export.throttling_stats
    valid = sum(1 for response in export.responses if response.is_valid)
    elapsed = (
        (export.ended_at - export.started_at).total_seconds()
        if export.ended_at is not None
        else 0.0
    )

    typer.echo("")
    _rule(color=_CYAN)
    typer.echo(f"{_CYAN}{_BOLD}  det-eval  ·  {export.phase.title()}{_RESET}")
    _rule(color=_CYAN)
    typer.echo("")

    meta_rows: list[tuple[str, str]] = [
        ("Evaluation ID", f"{export.evaluation_id[:8]}-..."),
        ("Config", f"{export.config.name} v{export.config.version}"),
        ("Model", export.config.model.model),
        ("Tool mode", export.config.request.tool_mode),
        ("Responses", f"{valid} valid / {export.total_requests} requested"),
        ("Throttled", str(stats.throttled_count)),
        ("Abandoned", str(stats.abandoned_count)),
        ("Elapsed", _format_elapsed(elapsed_seconds=elapsed)),
    ]
    if export.batch_summary is not None and export.batch_summary.total_tool_calls:
        tools = ", ".join(export.batch_summary.unique_tool_names)
        meta_rows.append(
            ("Tool calls", f"{export.batch_summary.total_tool_calls} ({tools})")
        )
    if export_path is not None:
        meta_rows.append(("Export JSON", str(export_path)))
    if export.error_message:
        meta_rows.append(("Error", export.error_message))

    label_w = max(len(label) for label, _ in meta_rows)
    for label, value in meta_rows:
        typer.echo(f"  {_DIM}{label:<{label_w}}{_RESET}  {_WHITE}{value}{_RESET}")

    _print_report(report=export.report)

    typer.echo("")
    _rule(color=_CYAN)
    typer.echo("")
