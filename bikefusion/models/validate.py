"""Validation utilities for source-table contracts."""

from __future__ import annotations

import pandas as pd

from bikefusion.models.schemas import TableSchema


def _coerce(series: pd.Series, dtype: str) -> pd.Series:
    # Integer-valued floats ("12.0") must survive the cast to nullable integers.
    if dtype in {"Int64", "float64", "Float64"}:
        numeric = pd.to_numeric(series, errors="raise")
        return numeric.astype(dtype)
    return series.astype(dtype)


def validate_df(
    df: pd.DataFrame,
    schema: TableSchema,
    *,
    coerce_dtypes: bool = True,
    allow_extra_columns: bool = True,
) -> pd.DataFrame:
    """Validate a source table against its schema. Returns a (possibly coerced) copy."""
    duplicated = df.columns[df.columns.duplicated()].tolist()
    if duplicated:
        raise ValueError(f"{schema.name}: duplicate column names: {duplicated}")

    missing = [c for c in schema.required_columns if c not in df.columns]
    if missing:
        raise ValueError(f"{schema.name}: missing required columns: {missing}")

    if not allow_extra_columns:
        extra = [c for c in df.columns if c not in schema.allowed_columns()]
        if extra:
            raise ValueError(f"{schema.name}: unexpected columns: {extra}")

    out = df.copy()

    if coerce_dtypes:
        for col, dtype in schema.dtypes.items():
            if col not in out.columns or str(out[col].dtype) == dtype:
                continue
            try:
                out[col] = _coerce(out[col], dtype)
            except (TypeError, ValueError) as exc:
                raise TypeError(
                    f"{schema.name}: column '{col}' is not coercible to '{dtype}': {exc}"
                ) from exc

    na_counts = {c: int(out[c].isna().sum()) for c in schema.non_null if c in out.columns}
    bad = {c: n for c, n in na_counts.items() if n}
    if bad:
        raise ValueError(f"{schema.name}: non-null columns contain missing values: {bad}")

    return out
