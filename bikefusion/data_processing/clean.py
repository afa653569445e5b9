"""Drop non-feature columns, cast categorical labels, drop rows without counts."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from bikefusion.core.config import SAMPLE_COUNT_COL, TARGET_COL
from bikefusion.core.errors import ColumnError, LabelError
from bikefusion.core.pipeline_config import PipelineConfig

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class CleanConfig:
    drop_columns: tuple[str, ...] = ()
    # column -> fixed label set (None infers the sorted set of observed values)
    categoricals: Mapping[str, Sequence[Any] | None] = field(default_factory=dict)
    target: str = TARGET_COL
    sample_count: str = SAMPLE_COUNT_COL

    @classmethod
    def from_pipeline(cls, config: PipelineConfig) -> CleanConfig:
        return cls(
            drop_columns=tuple(config.drop_columns),
            categoricals={spec.column: spec.labels for spec in config.categoricals},
            target=config.target,
            sample_count=config.sample_count,
        )


@dataclass(frozen=True)
class CleanResult:
    table: pd.DataFrame
    n_dropped: int
    dropped_columns: tuple[str, ...]


def _as_categorical(series: pd.Series, labels: Sequence[Any] | None) -> pd.Series:
    if labels is None:
        labels = sorted(series.dropna().unique().tolist())

    known = series.isna() | series.isin(list(labels))
    if not known.all():
        bad = series.loc[~known]
        raise LabelError(
            f"{int((~known).sum())} value(s) outside label set {list(labels)} "
            f"(e.g. {sorted({str(v) for v in bad.head(5)})})",
            column=str(series.name),
            rows=bad.index.tolist(),
        )
    return pd.Series(
        pd.Categorical(series, categories=list(labels)), index=series.index, name=series.name
    )


def clean_table(df: pd.DataFrame, config: CleanConfig) -> CleanResult:
    """Return a cleaned copy of `df`; `df` itself is not modified."""
    for col in (config.target, config.sample_count):
        if col not in df.columns:
            raise ColumnError(f"required count column is absent: {col!r}", stage="clean", column=col)

    protected = {config.target, config.sample_count, *config.categoricals}
    to_drop = [c for c in config.drop_columns if c in df.columns and c not in protected]
    absent = [c for c in config.drop_columns if c not in df.columns]
    if absent:
        LOGGER.debug("Clean: configured drop column(s) not present: %s", absent)

    out = df.drop(columns=to_drop)

    for col, labels in config.categoricals.items():
        if col not in out.columns:
            raise ColumnError(f"categorical column is absent: {col!r}", stage="clean", column=col)
        out[col] = _as_categorical(out[col], labels)

    keep = out[config.target].notna() & out[config.sample_count].notna()
    n_dropped = int((~keep).sum())
    out = out.loc[keep].reset_index(drop=True)

    if n_dropped:
        LOGGER.warning(
            "Clean: dropped %d row(s) missing %r or %r", n_dropped, config.target, config.sample_count
        )
    LOGGER.info("Clean: %d rows, %d columns (dropped columns: %s)", len(out), out.shape[1], to_drop)

    return CleanResult(table=out, n_dropped=n_dropped, dropped_columns=tuple(to_drop))
