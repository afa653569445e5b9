"""Schema definitions for the five source tables and the model-ready table.

This module contains only:
- `TableSchema` (schema metadata container)
- concrete table schemas (`RELATION`, `SENSOR_COUNTS`, ...)
"""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import BaseModel, Field

from bikefusion.core.config import INFRASTRUCTURE_COLS, LAND_USE_COLS

DEMOGRAPHIC_COLS: tuple[str, ...] = (
    "pct_low_income",
    "pct_high_income",
    "pct_college_educated",
    "pct_white",
    "pct_nonwhite",
    "pct_hh_with_children",
)


class TableSchema(BaseModel):
    """Column-level contract for a pandas DataFrame."""

    name: str
    required_columns: tuple[str, ...] = Field(default_factory=tuple)
    optional_columns: tuple[str, ...] = Field(default_factory=tuple)
    # pandas dtype strings, e.g. "string", "Int64", "float64"
    dtypes: Mapping[str, str] = Field(default_factory=dict)
    non_null: tuple[str, ...] = Field(default_factory=tuple)

    def allowed_columns(self) -> set[str]:
        return set(self.required_columns) | set(self.optional_columns)


RELATION = TableSchema(
    name="relation",
    required_columns=("counterid", "taz_id"),
    dtypes={"counterid": "string", "taz_id": "Int64"},
    non_null=("counterid", "taz_id"),
)

SENSOR_COUNTS = TableSchema(
    name="sensor_counts",
    required_columns=("counterid", "day_type", "day_part", "month", "sfmta_count"),
    optional_columns=("lat", "lon", "location"),
    dtypes={
        "counterid": "string",
        "day_type": "string",
        "day_part": "string",
        "month": "Int64",
        "sfmta_count": "float64",
        "lat": "float64",
        "lon": "float64",
        "location": "string",
    },
    non_null=("counterid", "day_type", "day_part", "month"),
)

SAMPLE_COUNTS = TableSchema(
    name="sample_counts",
    required_columns=("taz_id", "day_type", "day_part", "month", "strtlght_count"),
    optional_columns=DEMOGRAPHIC_COLS,
    dtypes={
        "taz_id": "Int64",
        "day_type": "string",
        "day_part": "string",
        "month": "Int64",
        "strtlght_count": "float64",
        **{c: "float64" for c in DEMOGRAPHIC_COLS},
    },
    non_null=("taz_id", "day_type", "day_part", "month"),
)

ZONE_ATTRIBUTES = TableSchema(
    name="zone_attributes",
    required_columns=("taz_id", "SHAPE_Area"),
    optional_columns=LAND_USE_COLS,
    dtypes={"taz_id": "Int64", "SHAPE_Area": "float64", **{c: "float64" for c in LAND_USE_COLS}},
    non_null=("taz_id",),
)

INFRASTRUCTURE = TableSchema(
    name="infrastructure",
    required_columns=("taz_id", *INFRASTRUCTURE_COLS),
    dtypes={"taz_id": "Int64", **{c: "float64" for c in INFRASTRUCTURE_COLS}},
    non_null=("taz_id",),
)

MODEL_TABLE = TableSchema(
    name="model_table",
    required_columns=("sfmta_count", "strtlght_count"),
    dtypes={"sfmta_count": "float64", "strtlght_count": "float64"},
    non_null=("sfmta_count", "strtlght_count"),
)

SOURCE_SCHEMAS: dict[str, TableSchema] = {
    "relation": RELATION,
    "sensor_counts": SENSOR_COUNTS,
    "sample_counts": SAMPLE_COUNTS,
    "zone_attributes": ZONE_ATTRIBUTES,
    "infrastructure": INFRASTRUCTURE,
}
