"""CLI entrypoint for det-eval — typer app with `run`, `regrade` and `show` commands."""

import asyncio
import signal
import sys
from datetime import datetime
from pathlib import Path

import structlog
import typer

from det_eval.cli.output.summary import print_summary
from det_eval.config.domain.config import EvalConfig
from det_eval.config.domain.model import GraderConfig
from det_eval.config.infrastructure.observer import StructlogConfigObserver
from det_eval.config.infrastructure.yaml_loader import YamlConfigLoader
from det_eval.conversation.infrastructure.observer import StructlogConversationObserver
from det_eval.conversation.infrastructure.registry import ToolRegistry, load_tool_registry
from det_eval.core.errors import DetEvalError
from det_eval.evaluation.application.coordinator import EvaluationCoordinator
from det_eval.evaluation.domain.observer import EvaluationObserver
from det_eval.evaluation.domain.state import EvaluationState
from det_eval.evaluation.infrastructure.exporter import read_export, write_export
from det_eval.evaluation.infrastructure.observer import StructlogEvaluationObserver
from det_eval.evaluation.infrastructure.progress_observer import ProgressEvaluationObserver
from det_eval.grading.application.grader import ConsistencyGrader
from det_eval.grading.infrastructure.errors import InsufficientDataError
from det_eval.grading.infrastructure.observer import StructlogGradingObserver
from det_eval.invoker.domain.invoker import ModelInvoker
from det_eval.invoker.infrastructure.cache import CachingModelInvoker
from det_eval.invoker.infrastructure.litellm import LiteLLMModelInvoker
from det_eval.invoker.infrastructure.observer import StructlogInvokerObserver
from det_eval.scheduling.application.scheduler import BatchScheduler
from det_eval.scheduling.infrastructure.observer import StructlogSchedulingObserver

app = typer.Typer(add_completion=False)


def _configure_structlog(log_format: str) -> None:
    """Configure structlog based on the requested format."""
    if log_format == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    elif log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        typer.echo(f"Invalid log format: {log_format!r}. Must be 'console' or 'json'.")
        raise typer.Exit(code=1)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(0),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def _output_stem(config_name: str, evaluation_id: str) -> str:
    """Build the output file stem: {config_name}_{YYYYMMDD}_{short_evaluation_id}."""
    date_str = datetime.now().strftime("%Y%m%d")
    return f"{config_name}_{date_str}_{evaluation_id[:8]}"


def _build_grader(grader_config: GraderConfig | None) -> ConsistencyGrader:
    """Build the grader; a configured cache wraps only the grading model's invoker."""
    observer = StructlogGradingObserver()
    if grader_config is None or not grader_config.enabled:
        return ConsistencyGrader(observer=observer)

    invoker: ModelInvoker = LiteLLMModelInvoker(observer=StructlogInvokerObserver())
    if grader_config.cache_ttl_seconds > 0:
        invoker = CachingModelInvoker(
            inner=invoker,
            observer=StructlogInvokerObserver(),
            ttl_seconds=grader_config.cache_ttl_seconds,
            capacity=grader_config.cache_capacity,
        )
    return ConsistencyGrader(observer=observer, invoker=invoker, config=grader_config)


def _build_coordinator(
    grader_config: GraderConfig | None,
    observers: list[EvaluationObserver],
    tool_registry: ToolRegistry | None = None,
) -> EvaluationCoordinator:
    coordinator = EvaluationCoordinator(
        invoker=LiteLLMModelInvoker(observer=StructlogInvokerObserver()),
        scheduler=BatchScheduler(observer=StructlogSchedulingObserver()),
        grader=_build_grader(grader_config=grader_config),
        observer=observers[0],
        conversation_observer=StructlogConversationObserver(),
        tool_executor=tool_registry,
    )
    for observer in observers[1:]:
        coordinator.add_listener(listener=observer)
    return coordinator


async def _run_evaluation(
    coordinator: EvaluationCoordinator, config: EvalConfig
) -> EvaluationState:
    """Run an evaluation; Ctrl-C cancels it and finalises with partial data when possible."""
    state = coordinator.start(config=config)
    loop = asyncio.get_running_loop()
    loop.add_signal_handler(signal.SIGINT, coordinator.cancel, state.id)
    try:
        state = await coordinator.run(evaluation_id=state.id)
    finally:
        loop.remove_signal_handler(signal.SIGINT)

    if state.phase == "cancelled":
        typer.echo("Evaluation cancelled; grading the responses collected so far.")
        try:
            state = await coordinator.complete_with_partial_data(
                evaluation_id=state.id, reason="interrupted"
            )
        except InsufficientDataError as exc:
            typer.echo(str(exc))
    return state


@app.command()
def run(
    config_path: Path = typer.Argument(..., help="Path to evaluation config YAML"),
    output_dir: Path = typer.Option(
        Path("./results"),
        "--output-dir",
        "-o",
        help="Directory for output files",
    ),
    log_format: str = typer.Option(
        "console",
        "--log-format",
        help="Log format: 'console' or 'json'",
    ),
    tools: str | None = typer.Option(
        None,
        "--tools",
        help="Python module defining register_tools(registry); overrides tools_module",
    ),
) -> None:
    """Run a determinism evaluation from a YAML config file."""
    try:
        _configure_structlog(log_format=log_format)

        loader = YamlConfigLoader(observer=StructlogConfigObserver())
        config = loader.load(path=config_path)

        tools_module = tools or config.tools_module
        registry = (
            load_tool_registry(module_path=tools_module) if tools_module else None
        )

        observers: list[EvaluationObserver] = [StructlogEvaluationObserver()]
        if log_format != "json":
            observers.append(ProgressEvaluationObserver())
        coordinator = _build_coordinator(
            grader_config=config.grader, observers=observers, tool_registry=registry
        )

        state = asyncio.run(_run_evaluation(coordinator=coordinator, config=config))

        export = coordinator.export(evaluation_id=state.id)
        stem = _output_stem(config_name=config.name, evaluation_id=state.id)
        json_path = write_export(export=export, path=output_dir / f"{stem}.json")
        print_summary(export=export, export_path=json_path)

    except KeyboardInterrupt:
        typer.echo("Evaluation interrupted.")
        sys.exit(1)
    except DetEvalError as exc:
        typer.echo(str(exc))
        sys.exit(1)
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"Unexpected error: {exc}\nPlease report this bug.")
        sys.exit(1)


@app.command()
def regrade(
    export_path: Path = typer.Argument(..., help="Path to an evaluation export JSON"),
    grader_model: str | None = typer.Option(
        None,
        "--grader-model",
        help="Grade with this model instead of the one in the export's config",
    ),
    local_only: bool = typer.Option(
        False,
        "--local-only",
        help="Skip the grading model and use local statistical analysis only",
    ),
    log_format: str = typer.Option(
        "console",
        "--log-format",
        help="Log format: 'console' or 'json'",
    ),
) -> None:
    """Re-import an evaluation export and grade it again."""
    try:
        _configure_structlog(log_format=log_format)
        export = read_export(path=export_path)

        grader_config = export.config.grader
        if grader_model is not None:
            grader_config = (
                grader_config.model_copy(update={"model": grader_model})
                if grader_config is not None
                else GraderConfig(model=grader_model)
            )

        coordinator = _build_coordinator(
            grader_config=grader_config, observers=[StructlogEvaluationObserver()]
        )
        state = coordinator.import_export(export=export)
        state = asyncio.run(
            coordinator.regrade(evaluation_id=state.id, local_only=local_only)
        )

        regraded = coordinator.export(evaluation_id=state.id)
        out_path = write_export(
            export=regraded,
            path=export_path.with_name(f"{export_path.stem}.regraded.json"),
        )
        print_summary(export=regraded, export_path=out_path)

    except DetEvalError as exc:
        typer.echo(str(exc))
        sys.exit(1)
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"Unexpected error: {exc}\nPlease report this bug.")
        sys.exit(1)


@app.command()
def show(
    export_path: Path = typer.Argument(..., help="Path to an evaluation export JSON"),
) -> None:
    """Print the summary of an evaluation export."""
    try:
        print_summary(export=read_export(path=export_path), export_path=export_path)
    except DetEvalError as exc:
        typer.echo(str(exc))
        sys.exit(1)


if __name__ == "__main__":
    app()
