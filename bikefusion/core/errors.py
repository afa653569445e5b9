"""Pipeline error taxonomy.

Every error is structural and raised at a stage boundary. Nothing here is
retried: the run aborts on the first error and the message names the stage
and the offending column / rows.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any


class PipelineError(Exception):
    """Base class for dataset assembly failures."""

    stage: str = "pipeline"

    def __init__(
        self,
        message: str,
        *,
        stage: str | None = None,
        column: str | None = None,
        rows: Sequence[Any] | None = None,
    ) -> None:
        if stage is not None:
            self.stage = stage
        self.column = column
        self.rows = list(rows) if rows is not None else []
        self.message = message
        super().__init__(self._format())

    def _format(self) -> str:
        parts = [f"[{self.stage}] {self.message}"]
        if self.column is not None:
            parts.append(f"column={self.column!r}")
        if self.rows:
            sample = self.rows[:10]
            more = f" (+{len(self.rows) - len(sample)} more)" if len(self.rows) > len(sample) else ""
            parts.append(f"rows={sample}{more}")
        return " | ".join(parts)


class LoadError(PipelineError):
    """Missing/unreadable file or malformed rows."""

    stage = "load"


class AmbiguousRelationError(PipelineError):
    """A sensor id maps to more than one zone id."""

    stage = "relation"


class JoinKeyError(PipelineError):
    """A declared join key is missing from an operand (or cannot be joined)."""

    stage = "merge"


class LabelError(PipelineError):
    """A categorical column holds a value outside its fixed label set."""

    stage = "clean"


class ColumnError(PipelineError):
    """A configured column is absent or has the wrong type."""

    stage = "normalize"


class DivisionError(PipelineError):
    """Zero or missing divisor during area normalization."""

    stage = "normalize"


class DegenerateColumnError(PipelineError):
    """Zero-variance column during standardization."""

    stage = "normalize"


class ReductionError(PipelineError, ValueError):
    """Feature table cannot be handed to a selection/extraction routine."""

    stage = "reduce"


class ModelInputError(PipelineError, ValueError):
    """Feature table cannot be handed to a model-fitting routine."""

    stage = "fit"
