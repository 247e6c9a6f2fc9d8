"""Tests for the det-eval CLI commands that need no model access."""

import re
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path

import pytest
import structlog
from typer.testing import CliRunner

from det_eval.cli.main import _output_stem, app
from det_eval.config.domain.config import EvalConfig
from det_eval.config.domain.model import ModelConfig
from det_eval.config.domain.request import RequestConfig
from det_eval.evaluation.domain.export import EvaluationExport
from det_eval.evaluation.domain.state import EvaluationState
from det_eval.evaluation.infrastructure.exporter import write_export
from det_eval.scheduling.domain.response import StructuredResponse

runner = CliRunner()


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Commands bind structlog to the runner's captured stderr."""
    yield
    structlog.reset_defaults()


def _write_sample_export(path: Path) -> Path:
    config = EvalConfig(
        name="refund-policy",
        version="1",
        model=ModelConfig(model="gpt-4o-mini"),
        request=RequestConfig(user_prompt="Refund?"),
    )
    state = EvaluationState(
        id="abcdef0123456789",
        config=config,
        settings=config.settings,
        total_requests=2,
        started_at=datetime(2024, 5, 1, tzinfo=UTC),
    )
    for index in range(2):
        state.append_response(StructuredResponse(text="Yes", request_index=index))
    state.phase = "completed"
    return write_export(export=EvaluationExport.from_state(state=state), path=path)


class TestOutputStem:
    def test_stem_format(self) -> None:
        stem = _output_stem(config_name="refund-policy", evaluation_id="abcdef0123456789")

        assert re.fullmatch(r"refund-policy_\d{8}_abcdef01", stem)


class TestShowCommand:
    def test_prints_summary(self, tmp_path: Path) -> None:
        path = _write_sample_export(path=tmp_path / "eval.json")

        result = runner.invoke(app, ["show", str(path)])

        assert result.exit_code == 0
        assert "refund-policy v1" in result.output
        assert "2 valid / 2 requested" in result.output

    def test_missing_export_exits_nonzero(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["show", str(tmp_path / "absent.json")])

        assert result.exit_code == 1
        assert "Failed to read export" in result.output


class TestRegradeCommand:
    def test_local_only_writes_regraded_file(self, tmp_path: Path) -> None:
        path = _write_sample_export(path=tmp_path / "eval.json")

        result = runner.invoke(
            app, ["regrade", str(path), "--local-only", "--log-format", "json"]
        )

        assert result.exit_code == 0
        assert (tmp_path / "eval.regraded.json").exists()

    def test_invalid_log_format_exits(self, tmp_path: Path) -> None:
        path = _write_sample_export(path=tmp_path / "eval.json")

        result = runner.invoke(app, ["regrade", str(path), "--log-format", "xml"])

        assert result.exit_code == 1
