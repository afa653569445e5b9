"""Column-subset transforms: per-area rescaling and z-score standardization.

Both passes go through one mechanism, `apply_transform(df, ColumnTransform)`,
so the column subsets are configuration rather than ad hoc lists at call sites.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

import numpy as np
import pandas as pd

from bikefusion.core.config import AREA_COL
from bikefusion.core.errors import ColumnError, DegenerateColumnError, DivisionError

LOGGER = logging.getLogger(__name__)

TransformKind = Literal["per_area", "zscore"]
DegeneratePolicy = Literal["raise", "drop"]


@dataclass(frozen=True)
class ColumnTransform:
    """Apply transform `kind` to the named column subset."""

    name: str
    kind: TransformKind
    columns: tuple[str, ...]
    divisor: str | None = None
    on_degenerate: DegeneratePolicy = "raise"


@dataclass(frozen=True)
class TransformResult:
    table: pd.DataFrame
    columns: tuple[str, ...]
    dropped_columns: tuple[str, ...] = ()
    # per-column (mean, std) for zscore passes
    parameters: dict[str, tuple[float, float]] | None = None


def _require_numeric(df: pd.DataFrame, columns: Iterable[str], *, name: str) -> None:
    for col in columns:
        if col not in df.columns:
            raise ColumnError(f"{name}: column not found", column=col)
        if isinstance(df[col].dtype, pd.CategoricalDtype) or not pd.api.types.is_numeric_dtype(df[col]):
            raise ColumnError(f"{name}: column is not numeric ({df[col].dtype})", column=col)


def area_normalize(
    df: pd.DataFrame, columns: Iterable[str], *, area_col: str = AREA_COL, name: str = "per_area"
) -> TransformResult:
    """Divide each column in `columns` by the row's area."""
    columns = tuple(columns)
    _require_numeric(df, (*columns, area_col), name=name)

    area = df[area_col].astype(float)
    bad = area.isna() | (area == 0)
    if bad.any():
        raise DivisionError(
            f"{name}: {int(bad.sum())} row(s) with zero or missing area",
            column=area_col,
            rows=df.index[bad].tolist(),
        )

    out = df.copy()
    for col in columns:
        out[col] = df[col].astype(float) / area
    LOGGER.info("%s: divided %d column(s) by %s", name, len(columns), area_col)
    return TransformResult(table=out, columns=columns)


def restore_area(
    df: pd.DataFrame, columns: Iterable[str], *, area_col: str = AREA_COL
) -> pd.DataFrame:
    """Inverse of `area_normalize`: multiply the per-area columns back by area."""
    columns = tuple(columns)
    _require_numeric(df, (*columns, area_col), name="restore_area")
    out = df.copy()
    for col in columns:
        out[col] = df[col].astype(float) * df[area_col].astype(float)
    return out


def standardize(
    df: pd.DataFrame,
    columns: Iterable[str],
    *,
    on_degenerate: DegeneratePolicy = "raise",
    name: str = "zscore",
) -> TransformResult:
    """Replace x with (x - mean) / std, population moments over all rows.

    Missing values are skipped when computing the moments and stay missing.
    A zero-variance (or all-missing) column raises `DegenerateColumnError`
    unless `on_degenerate="drop"`, in which case the column is removed.
    """
    if on_degenerate not in ("raise", "drop"):
        raise ValueError(f"unknown degenerate-column policy: {on_degenerate!r}")
    columns = tuple(columns)
    _require_numeric(df, columns, name=name)

    out = df.copy()
    kept: list[str] = []
    dropped: list[str] = []
    params: dict[str, tuple[float, float]] = {}
    for col in columns:
        values = df[col].astype(float)
        mu = float(values.mean())
        sigma = float(values.std(ddof=0))
        if not np.isfinite(sigma) or sigma == 0.0:
            if on_degenerate == "raise":
                raise DegenerateColumnError(
                    f"{name}: cannot standardize a constant column (std={sigma})", column=col
                )
            LOGGER.warning("%s: dropping constant column %r", name, col)
            out = out.drop(columns=col)
            dropped.append(col)
            continue
        out[col] = (values - mu) / sigma
        params[col] = (mu, sigma)
        kept.append(col)

    LOGGER.info("%s: standardized %d column(s), dropped %d", name, len(kept), len(dropped))
    return TransformResult(
        table=out, columns=tuple(kept), dropped_columns=tuple(dropped), parameters=params
    )


def default_standardize_columns(
    df: pd.DataFrame, *, target: str, exclude: Iterable[str] = ()
) -> tuple[str, ...]:
    """Numeric feature columns: everything numeric except target and categoricals."""
    skip = {target, *exclude}
    return tuple(
        c
        for c in df.columns
        if c not in skip
        and not isinstance(df[c].dtype, pd.CategoricalDtype)
        and pd.api.types.is_numeric_dtype(df[c])
        and not pd.api.types.is_bool_dtype(df[c])
    )


def apply_transform(df: pd.DataFrame, transform: ColumnTransform) -> TransformResult:
    if transform.kind == "per_area":
        return area_normalize(
            df, transform.columns, area_col=transform.divisor or AREA_COL, name=transform.name
        )
    if transform.kind == "zscore":
        return standardize(
            df, transform.columns, on_degenerate=transform.on_degenerate, name=transform.name
        )
    raise ValueError(f"unknown transform kind: {transform.kind!r}")
