"""JSON file I/O for evaluation exports."""

from pathlib import Path

from pydantic import ValidationError

from det_eval.evaluation.domain.export import EvaluationExport
from det_eval.evaluation.infrastructure.errors import ExportReadError


def write_export(export: EvaluationExport, path: Path) -> Path:
    """Write the export as indented JSON, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(export.model_dump_json(indent=2), encoding="utf-8")
    return path


def read_export(path: Path) -> EvaluationExport:
    """Load and validate an export file.

    Raises:
        ExportReadError: if the file is missing, unreadable or invalid.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ExportReadError(path=path, reason=exc.strerror or str(exc)) from exc
    try:
        return EvaluationExport.model_validate_json(raw)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise ExportReadError(path=path, reason=f"{location}: {first['msg']}") from exc
