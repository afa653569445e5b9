"""Pydantic table schemas and dataframe validators.

These are contracts to keep the pipeline deterministic:
- Source tables are validated once, at load time.
- Stage logic stays in pure functions that never mutate their inputs.
"""

from __future__ import annotations

from bikefusion.models.schemas import (
    INFRASTRUCTURE,
    MODEL_TABLE,
    RELATION,
    SAMPLE_COUNTS,
    SENSOR_COUNTS,
    SOURCE_SCHEMAS,
    ZONE_ATTRIBUTES,
    TableSchema,
)
from bikefusion.models.validate import validate_df

__all__ = [
    "TableSchema",
    "validate_df",
    "RELATION",
    "SENSOR_COUNTS",
    "SAMPLE_COUNTS",
    "ZONE_ATTRIBUTES",
    "INFRASTRUCTURE",
    "MODEL_TABLE",
    "SOURCE_SCHEMAS",
]
