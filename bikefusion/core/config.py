"""Project configuration (paths, column names, deterministic seed)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

# Reproducibility
SEED: int = 20250101

# Join keys shared by the source tables
SENSOR_ID: str = "counterid"
ZONE_ID: str = "taz_id"
DAY_TYPE: str = "day_type"
DAY_PART: str = "day_part"
MONTH: str = "month"
STRATUM_KEYS: tuple[str, ...] = (ZONE_ID, DAY_TYPE, DAY_PART, MONTH)

# Count columns
TARGET_COL: str = "sfmta_count"  # fixed-sensor count (model target)
SAMPLE_COUNT_COL: str = "strtlght_count"  # app-sampled zone count

# Zone attributes
AREA_COL: str = "SHAPE_Area"
LAND_USE_COLS: tuple[str, ...] = ("CIE", "MED", "MIPS", "PDR", "RETAIL", "VISITOR", "RESUNITS")
INFRASTRUCTURE_COLS: tuple[str, ...] = ("CLASS_I", "CLASS_II", "CLASS_III", "CLASS_IV")

# Some land-use extracts publish the retail/entertainment category as `RETAIL/ENT`.
COLUMN_ALIASES: dict[str, str] = {"RETAIL/ENT": "RETAIL", "RETAIL_ENT": "RETAIL"}


def project_root() -> Path:
    """Return repository root assuming this file lives in `<root>/bikefusion/core/config.py`."""
    return Path(__file__).resolve().parents[2]


@dataclass(frozen=True)
class Paths:
    root: Path
    config: Path
    data_raw: Path
    data_processed: Path


def get_paths(root: Path | None = None) -> Paths:
    r = project_root() if root is None else Path(root).resolve()
    return Paths(
        root=r,
        config=r / "config",
        data_raw=r / "data" / "raw",
        data_processed=r / "data" / "processed",
    )


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
