"""Dataset assembly: merge -> clean -> per-area -> z-score.

Each stage returns a new table; the summary records the row count after every
stage and every row-drop event so a run can be audited afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

from bikefusion.core.pipeline_config import PipelineConfig
from bikefusion.data_processing.clean import CleanConfig, clean_table
from bikefusion.data_processing.merge import merge_sources
from bikefusion.data_processing.normalize import (
    ColumnTransform,
    apply_transform,
    default_standardize_columns,
)
from bikefusion.io import SourceTables, load_sources
from bikefusion.models.schemas import MODEL_TABLE
from bikefusion.models.validate import validate_df

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssemblyResult:
    table: pd.DataFrame
    summary: dict[str, Any]


def build_transforms(df: pd.DataFrame, config: PipelineConfig) -> list[ColumnTransform]:
    """Column-subset transforms for the two normalization passes, in order."""
    per_area = ColumnTransform(
        name="per_area",
        kind="per_area",
        columns=tuple(config.per_area_columns),
        divisor=config.area_column,
    )
    if config.standardize_columns is not None:
        z_cols = tuple(c for c in config.standardize_columns if c not in config.standardize_exclude)
    else:
        z_cols = default_standardize_columns(
            df, target=config.target, exclude=(*config.standardize_exclude, *config.categorical_columns())
        )
    zscore = ColumnTransform(
        name="zscore", kind="zscore", columns=z_cols, on_degenerate=config.on_degenerate
    )
    return [per_area, zscore]


def assemble_dataset(sources: SourceTables, config: PipelineConfig | None = None) -> AssemblyResult:
    config = config or PipelineConfig()
    summary: dict[str, Any] = {"source_rows": sources.row_counts()}

    merged = merge_sources(sources, config)
    summary["joins"] = merged.summary()
    summary["rows_merged"] = int(len(merged.table))

    cleaned = clean_table(merged.table, CleanConfig.from_pipeline(config))
    summary["clean"] = {
        "rows_dropped": cleaned.n_dropped,
        "dropped_columns": list(cleaned.dropped_columns),
    }
    summary["rows_cleaned"] = int(len(cleaned.table))

    df = cleaned.table
    for transform in build_transforms(df, config):
        result = apply_transform(df, transform)
        summary[transform.name] = {
            "columns": list(result.columns),
            "dropped_columns": list(result.dropped_columns),
        }
        df = result.table

    df = validate_df(df, MODEL_TABLE, coerce_dtypes=False)
    summary["rows_out"] = int(len(df))
    summary["columns_out"] = list(df.columns)

    LOGGER.info(
        "Assembled model table: %d rows x %d cols (merged=%d, cleaned=%d)",
        len(df),
        df.shape[1],
        summary["rows_merged"],
        summary["rows_cleaned"],
    )
    return AssemblyResult(table=df, summary=summary)


def run_pipeline(data_dir: Path, config: PipelineConfig | None = None) -> AssemblyResult:
    """Load the five source tables from `data_dir` and assemble the model table."""
    config = config or PipelineConfig()
    sources = load_sources(data_dir, config)
    return assemble_dataset(sources, config)
