"""Pipeline configuration model (YAML-backed).

All column subsets used by the cleaning and normalization passes live here so
that stages receive them as configuration rather than hard-coded lists.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field

from bikefusion.core.config import (
    AREA_COL,
    INFRASTRUCTURE_COLS,
    SAMPLE_COUNT_COL,
    SENSOR_ID,
    STRATUM_KEYS,
    TARGET_COL,
    ZONE_ID,
)


class SourceFiles(BaseModel):
    """File names of the five source tables, relative to the raw data directory."""

    relation: str = "counter_taz_relation.csv"
    sensor_counts: str = "sfmta_counts.csv"
    sample_counts: str = "strava_counts.csv"
    zone_attributes: str = "taz_land_use.csv"
    infrastructure: str = "taz_bike_infrastructure.csv"
    sep: str = ","


class CategoricalSpec(BaseModel):
    column: str
    # None means "infer the label set from the data"
    labels: list[str] | list[int] | None = None


class PipelineConfig(BaseModel):
    sources: SourceFiles = Field(default_factory=SourceFiles)

    sensor_key: str = SENSOR_ID
    zone_key: str = ZONE_ID
    stratum_keys: tuple[str, ...] = STRATUM_KEYS

    target: str = TARGET_COL
    sample_count: str = SAMPLE_COUNT_COL
    area_column: str = AREA_COL

    drop_columns: tuple[str, ...] = ("counterid", "taz_id", "lat", "lon", "location")
    categoricals: list[CategoricalSpec] = Field(
        default_factory=lambda: [
            CategoricalSpec(column="day_type", labels=["weekday", "weekend"]),
            CategoricalSpec(column="day_part", labels=["EA", "AM", "MD", "PM", "EV"]),
            CategoricalSpec(column="month", labels=list(range(1, 13))),
        ]
    )

    per_area_columns: tuple[str, ...] = (SAMPLE_COUNT_COL, *INFRASTRUCTURE_COLS)
    # None means "every numeric column except target and categoricals"
    standardize_columns: tuple[str, ...] | None = None
    standardize_exclude: tuple[str, ...] = ()
    on_degenerate: Literal["raise", "drop"] = "raise"

    def categorical_columns(self) -> tuple[str, ...]:
        return tuple(spec.column for spec in self.categoricals)


def load_pipeline_config(path: Path | None) -> PipelineConfig:
    """Load a YAML pipeline config; a missing path yields the defaults."""
    if path is None:
        return PipelineConfig()
    raw = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    return PipelineConfig.model_validate(raw)
