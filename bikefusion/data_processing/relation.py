"""Resolve fixed-sensor count rows to their Traffic Analysis Zone.

The relation table is many-to-one sensor -> zone: a zone may host several
sensors, but a sensor belongs to a single zone. Count rows whose sensor has
no relation record are dropped and reported.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import pandas as pd

from bikefusion.core.config import SENSOR_ID, ZONE_ID
from bikefusion.core.errors import AmbiguousRelationError, JoinKeyError

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class RelationResult:
    table: pd.DataFrame
    n_input: int
    n_dropped: int
    unmatched_ids: list[str] = field(default_factory=list)


def _require_columns(df: pd.DataFrame, columns: list[str], *, side: str) -> None:
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise JoinKeyError(f"{side} is missing key column(s) {missing}", stage="relation")


def unique_relation(
    relation: pd.DataFrame, *, sensor_key: str = SENSOR_ID, zone_key: str = ZONE_ID
) -> pd.DataFrame:
    """Collapse exact duplicate relation rows; fail if a sensor maps to several zones."""
    _require_columns(relation, [sensor_key, zone_key], side="relation")

    pairs = relation[[sensor_key, zone_key]].drop_duplicates()
    zones_per_sensor = pairs.groupby(sensor_key, dropna=False)[zone_key].nunique(dropna=False)
    ambiguous = zones_per_sensor[zones_per_sensor > 1]
    if not ambiguous.empty:
        raise AmbiguousRelationError(
            f"{len(ambiguous)} sensor id(s) map to more than one {zone_key}",
            column=sensor_key,
            rows=[str(s) for s in ambiguous.index],
        )

    extras = [c for c in relation.columns if c not in (sensor_key, zone_key)]
    if extras:
        # keep the first occurrence of any descriptive columns
        return relation.drop_duplicates(subset=[sensor_key]).reset_index(drop=True)
    return pairs.reset_index(drop=True)


def resolve_relation(
    relation: pd.DataFrame,
    sensor_counts: pd.DataFrame,
    *,
    sensor_key: str = SENSOR_ID,
    zone_key: str = ZONE_ID,
) -> RelationResult:
    """Attach `zone_key` to every sensor-count row via the relation table.

    Left join from the count side, then drop (and report) rows whose sensor id
    has no relation record.
    """
    _require_columns(sensor_counts, [sensor_key], side="sensor_counts")
    rel = unique_relation(relation, sensor_key=sensor_key, zone_key=zone_key)

    if zone_key in sensor_counts.columns:
        raise JoinKeyError(
            f"sensor_counts already carries {zone_key!r}; refusing to overwrite it",
            stage="relation",
            column=zone_key,
        )

    rel_cols = [sensor_key, zone_key] + [
        c for c in rel.columns if c not in (sensor_key, zone_key) and c not in sensor_counts.columns
    ]
    try:
        joined = sensor_counts.merge(
            rel[rel_cols], on=sensor_key, how="left", validate="many_to_one", indicator=True
        )
    except ValueError as exc:
        raise JoinKeyError(f"cannot join on {sensor_key!r}: {exc}", stage="relation") from exc

    matched = joined["_merge"] == "both"
    unmatched_ids = sorted({str(v) for v in joined.loc[~matched, sensor_key].tolist()})
    out = joined.loc[matched].drop(columns="_merge").reset_index(drop=True)

    n_dropped = int(len(joined) - len(out))
    if n_dropped:
        LOGGER.warning(
            "Relation: dropped %d sensor-count row(s) with no zone (sensor ids: %s)",
            n_dropped,
            unmatched_ids[:10],
        )
    else:
        LOGGER.info("Relation: all %d sensor-count rows resolved to a zone", len(out))

    return RelationResult(
        table=out,
        n_input=int(len(sensor_counts)),
        n_dropped=n_dropped,
        unmatched_ids=unmatched_ids,
    )
