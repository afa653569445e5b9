"""Multi-key merge of the five source tables into one wide table.

Join order and policy per step (kept exactly as stated, not re-ordered):
1. relation + sensor counts on sensor id     (left, unresolved rows reported)
2. + sample counts on (zone, day_type, day_part, month)  (inner)
3. + zone attributes on zone id              (left)
4. + infrastructure on zone id               (left)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

import pandas as pd

from bikefusion.core.errors import JoinKeyError
from bikefusion.core.pipeline_config import PipelineConfig
from bikefusion.data_processing.relation import resolve_relation
from bikefusion.io import SourceTables

LOGGER = logging.getLogger(__name__)

JoinHow = Literal["inner", "left"]


@dataclass(frozen=True)
class JoinReport:
    name: str
    on: tuple[str, ...]
    how: str
    rows_left: int
    rows_right: int
    rows_out: int
    rows_dropped: int
    rows_unmatched: int

    def as_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "on": list(self.on),
            "how": self.how,
            "rows_left": self.rows_left,
            "rows_right": self.rows_right,
            "rows_out": self.rows_out,
            "rows_dropped": self.rows_dropped,
            "rows_unmatched": self.rows_unmatched,
        }


@dataclass(frozen=True)
class MergeResult:
    table: pd.DataFrame
    reports: tuple[JoinReport, ...]

    def summary(self) -> dict[str, object]:
        return {r.name: r.as_dict() for r in self.reports}


def _check_keys(df: pd.DataFrame, on: Sequence[str], *, name: str, side: str) -> None:
    missing = [k for k in on if k not in df.columns]
    if missing:
        raise JoinKeyError(f"join '{name}': {side} table is missing key column(s) {missing}")


def _check_key_dtypes(left: pd.DataFrame, right: pd.DataFrame, on: Sequence[str], *, name: str) -> None:
    for key in on:
        l_num = pd.api.types.is_numeric_dtype(left[key])
        r_num = pd.api.types.is_numeric_dtype(right[key])
        if l_num != r_num:
            raise JoinKeyError(
                f"join '{name}': key dtypes differ ({left[key].dtype} vs {right[key].dtype})",
                column=key,
            )


def join_tables(
    left: pd.DataFrame,
    right: pd.DataFrame,
    *,
    on: Sequence[str],
    how: JoinHow,
    name: str,
) -> tuple[pd.DataFrame, JoinReport]:
    """Relational join with key validation.

    Standard fan-out is preserved: a left row matching k right rows yields k
    output rows. Overlapping non-key columns keep the left name; the right
    copy is suffixed with `_<name>`.
    """
    if how not in ("inner", "left"):
        raise ValueError(f"join '{name}': unsupported policy {how!r}")
    on = list(on)
    _check_keys(left, on, name=name, side="left")
    _check_keys(right, on, name=name, side="right")
    _check_key_dtypes(left, right, on, name=name)

    try:
        joined = left.merge(right, on=on, how="left", suffixes=("", f"_{name}"), indicator=True)
    except ValueError as exc:
        raise JoinKeyError(f"join '{name}' failed on {on}: {exc}") from exc

    matched = joined["_merge"] == "both"
    n_unmatched = int((~matched).sum())
    if how == "inner":
        joined = joined.loc[matched]
    out = joined.drop(columns="_merge").reset_index(drop=True)

    n_dropped = n_unmatched if how == "inner" else 0
    report = JoinReport(
        name=name,
        on=tuple(on),
        how=how,
        rows_left=int(len(left)),
        rows_right=int(len(right)),
        rows_out=int(len(out)),
        rows_dropped=n_dropped,
        rows_unmatched=n_unmatched,
    )

    if n_dropped:
        LOGGER.warning("Join %s (%s on %s): dropped %d unmatched row(s)", name, how, on, n_dropped)
    elif n_unmatched:
        LOGGER.warning(
            "Join %s (%s on %s): %d row(s) without a match keep missing values",
            name,
            how,
            on,
            n_unmatched,
        )
    LOGGER.info("Join %s: %d -> %d rows", name, len(left), len(out))
    return out, report


def merge_sources(sources: SourceTables, config: PipelineConfig | None = None) -> MergeResult:
    """Run the four joins and return the wide table with per-join reports."""
    config = config or PipelineConfig()
    zone = [config.zone_key]

    resolved = resolve_relation(
        sources.relation,
        sources.sensor_counts,
        sensor_key=config.sensor_key,
        zone_key=config.zone_key,
    )
    relation_report = JoinReport(
        name="relation",
        on=(config.sensor_key,),
        how="left",
        rows_left=resolved.n_input,
        rows_right=int(len(sources.relation)),
        rows_out=int(len(resolved.table)),
        rows_dropped=resolved.n_dropped,
        rows_unmatched=resolved.n_dropped,
    )

    df, sample_report = join_tables(
        resolved.table, sources.sample_counts, on=config.stratum_keys, how="inner", name="sample_counts"
    )
    df, attr_report = join_tables(df, sources.zone_attributes, on=zone, how="left", name="zone_attributes")
    df, infra_report = join_tables(df, sources.infrastructure, on=zone, how="left", name="infrastructure")

    return MergeResult(table=df, reports=(relation_report, sample_report, attr_report, infra_report))
