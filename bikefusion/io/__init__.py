"""Lightweight I/O helpers.

This module centralises:
- the table loader (`read_table`) with its structural checks
- validated source reads (`read_csv_validated`, `load_sources`)
- simple JSON/CSV writers and checkpoint hashes used by scripts
"""

from __future__ import annotations

import csv
import hashlib
import json
import logging
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

from bikefusion.core.config import COLUMN_ALIASES
from bikefusion.core.errors import LoadError
from bikefusion.core.pipeline_config import PipelineConfig
from bikefusion.io.compressed import resolve_table_path
from bikefusion.models.schemas import SOURCE_SCHEMAS, TableSchema
from bikefusion.models.validate import validate_df

LOGGER = logging.getLogger(__name__)

# Recognised missing-value markers (in addition to pandas' defaults).
NA_MARKERS: tuple[str, ...] = ("", "NA", "N/A", "NaN", "nan", "null", "NULL", "None", "-")


def ensure_parent_dir(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def write_json(obj: Any, path: Path) -> None:
    ensure_parent_dir(path)
    path.write_text(json.dumps(obj, ensure_ascii=False, indent=2, default=str), encoding="utf-8")


def write_table(df: pd.DataFrame, path: Path) -> None:
    ensure_parent_dir(path)
    df.to_csv(path, index=False)


def sha256_file(path: Path) -> str:
    """Return SHA256 hex digest for a file."""
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def _check_row_widths(path: Path, sep: str) -> list[str]:
    """Return the header, failing on duplicate names or ragged rows."""
    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.reader(f, delimiter=sep)
        header = next(reader, None)
        if not header or all(not h.strip() for h in header):
            raise LoadError(f"{path.name}: missing header row")

        dupes = sorted(h for h, n in Counter(header).items() if n > 1)
        if dupes:
            raise LoadError(f"{path.name}: duplicate column names in header: {dupes}")

        width = len(header)
        ragged: list[int] = []
        for row in reader:
            if not row:
                continue
            if len(row) != width:
                ragged.append(reader.line_num)
        if ragged:
            raise LoadError(
                f"{path.name}: {len(ragged)} row(s) do not have {width} fields",
                rows=ragged,
            )
    return header


def read_table(
    path: Path,
    *,
    sep: str = ",",
    schema: TableSchema | None = None,
    rename: dict[str, str] | None = None,
    dtype: dict[str, str] | None = None,
) -> pd.DataFrame:
    """Read a delimited file into a DataFrame.

    Columns are numeric when every non-missing value parses as a number and
    pandas ``string`` otherwise (booleans included); missing markers stay
    missing. Columns named in `dtype` are parsed with that dtype directly, so
    identifiers such as "007" keep their leading zeros.
    """
    path = resolve_table_path(Path(path))
    if not path.exists():
        raise LoadError(f"file does not exist: {path}")
    if not path.is_file():
        raise LoadError(f"not a regular file: {path}")

    try:
        header = _check_row_widths(path, sep)
        read_dtype = {c: t for c, t in (dtype or {}).items() if c in header}
        df = pd.read_csv(
            path, sep=sep, dtype=read_dtype or None, na_values=list(NA_MARKERS), keep_default_na=True
        )
    except LoadError:
        raise
    except (OSError, UnicodeDecodeError, csv.Error, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise LoadError(f"failed to read {path}: {exc}") from exc

    text_cols = [
        c
        for c in df.columns
        if pd.api.types.is_bool_dtype(df[c]) or not pd.api.types.is_numeric_dtype(df[c])
    ]
    if text_cols:
        df[text_cols] = df[text_cols].astype("string")

    if rename:
        df = df.rename(columns={k: v for k, v in rename.items() if k in df.columns})

    if schema is not None:
        try:
            df = validate_df(df, schema)
        except (TypeError, ValueError) as exc:
            raise LoadError(str(exc)) from exc

    LOGGER.info("Loaded %s (%d rows, %d cols)", path.name, len(df), df.shape[1])
    return df


def read_csv_validated(path: Path, *, schema: TableSchema, sep: str = ",") -> pd.DataFrame:
    """Read a source table, normalise known column aliases, and validate it.

    Text columns of the schema are read as text, never via a numeric parse.
    """
    string_cols = {c: "string" for c, t in schema.dtypes.items() if t == "string"}
    string_cols.update({alias: "string" for alias, c in COLUMN_ALIASES.items() if c in string_cols})
    return read_table(path, sep=sep, schema=schema, rename=COLUMN_ALIASES, dtype=string_cols)


@dataclass(frozen=True)
class SourceTables:
    """The five raw inputs of the dataset assembly pipeline."""

    relation: pd.DataFrame
    sensor_counts: pd.DataFrame
    sample_counts: pd.DataFrame
    zone_attributes: pd.DataFrame
    infrastructure: pd.DataFrame

    def row_counts(self) -> dict[str, int]:
        return {name: int(len(getattr(self, name))) for name in SOURCE_SCHEMAS}


def load_sources(data_dir: Path, config: PipelineConfig | None = None) -> SourceTables:
    """Load and validate all five source tables from `data_dir`."""
    config = config or PipelineConfig()
    files = config.sources
    data_dir = Path(data_dir)

    tables: dict[str, pd.DataFrame] = {}
    for name, schema in SOURCE_SCHEMAS.items():
        tables[name] = read_csv_validated(data_dir / getattr(files, name), schema=schema, sep=files.sep)

    return SourceTables(**tables)
