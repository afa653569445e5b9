from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from bikefusion.core.pipeline_config import PipelineConfig
from bikefusion.io import SourceTables

STRATA = [("weekday", "AM"), ("weekday", "PM"), ("weekend", "AM"), ("weekend", "PM")]
ZONES = [100, 200, 300]


def _relation() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "counterid": pd.array(["1", "2", "3", "4", "9"], dtype="string"),
            "taz_id": pd.array([100, 100, 200, 300, 300], dtype="Int64"),
        }
    )


def _sensor_counts() -> pd.DataFrame:
    rows = []
    base = {"1": 50.0, "2": 80.0, "3": 20.0, "4": 35.0, "5": 12.0}
    for i, (cid, b) in enumerate(base.items()):
        for j, (day_type, day_part) in enumerate(STRATA):
            rows.append(
                {
                    "counterid": cid,
                    "day_type": day_type,
                    "day_part": day_part,
                    "month": 1,
                    "sfmta_count": b + 7.0 * j + i,
                    "lat": 37.7 + 0.01 * i,
                    "lon": -122.4 - 0.01 * i,
                    "location": f"Street {cid}",
                }
            )
    df = pd.DataFrame(rows)
    # one missing target: counter 2, weekend PM
    df.loc[(df["counterid"] == "2") & (df["day_type"] == "weekend") & (df["day_part"] == "PM"), "sfmta_count"] = np.nan
    return df.astype(
        {
            "counterid": "string",
            "day_type": "string",
            "day_part": "string",
            "month": "Int64",
            "location": "string",
        }
    )


def _sample_counts() -> pd.DataFrame:
    rows = []
    for z_i, zone in enumerate(ZONES):
        strata = STRATA if zone != 300 else STRATA[:1]
        for s_i, (day_type, day_part) in enumerate(strata):
            rows.append(
                {
                    "taz_id": zone,
                    "day_type": day_type,
                    "day_part": day_part,
                    "month": 1,
                    "strtlght_count": 4.0 + 3.0 * z_i + s_i,
                    "pct_low_income": 0.2 + 0.05 * z_i + 0.01 * s_i,
                    "pct_college_educated": 0.6 - 0.1 * z_i + 0.02 * s_i,
                }
            )
    return pd.DataFrame(rows).astype(
        {"taz_id": "Int64", "day_type": "string", "day_part": "string", "month": "Int64"}
    )


def _zone_attributes() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "taz_id": pd.array(ZONES, dtype="Int64"),
            "SHAPE_Area": [2.0, 4.0, 5.0],
            "CIE": [10.0, 3.0, 7.0],
            "MED": [1.0, 0.5, 2.5],
            "RESUNITS": [30.0, 12.0, 18.0],
        }
    )


def _infrastructure() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "taz_id": pd.array(ZONES, dtype="Int64"),
            "CLASS_I": [0.0, 1.5, 0.4],
            "CLASS_II": [2.0, 0.0, 1.0],
            "CLASS_III": [1.2, 3.1, 0.7],
            "CLASS_IV": [0.0, 0.3, 0.9],
        }
    )


@pytest.fixture
def sources() -> SourceTables:
    return SourceTables(
        relation=_relation(),
        sensor_counts=_sensor_counts(),
        sample_counts=_sample_counts(),
        zone_attributes=_zone_attributes(),
        infrastructure=_infrastructure(),
    )


@pytest.fixture
def config() -> PipelineConfig:
    return PipelineConfig()


def write_sources(sources: SourceTables, data_dir: Path, config: PipelineConfig) -> Path:
    data_dir.mkdir(parents=True, exist_ok=True)
    for name in ("relation", "sensor_counts", "sample_counts", "zone_attributes", "infrastructure"):
        getattr(sources, name).to_csv(data_dir / getattr(config.sources, name), index=False)
    return data_dir


@pytest.fixture
def data_dir(tmp_path: Path, sources: SourceTables, config: PipelineConfig) -> Path:
    return write_sources(sources, tmp_path / "raw", config)
