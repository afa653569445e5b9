from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from bikefusion.core.errors import PipelineError, ReductionError
from bikefusion.data_processing.pipeline import assemble_dataset
from bikefusion.features.reduce import (
    elastic_net_coefficients,
    extract_components,
    numeric_feature_columns,
    select_features,
)

TARGET = "sfmta_count"


@pytest.fixture
def model_table(sources, config):
    return assemble_dataset(sources, config).table


def test_select_keeps_significant_columns_target_and_labels(model_table):
    coefs = {"CIE": 0.8, "MED": 0.0, "CLASS_I": -0.3, "RESUNITS": 0.01}
    out = select_features(model_table, target=TARGET, coefficients=coefs, threshold=0.05)

    assert set(out.columns) == {"CIE", "CLASS_I", TARGET, "day_type", "day_part", "month"}
    assert len(out) == len(model_table)
    pd.testing.assert_series_equal(out[TARGET], model_table[TARGET])


def test_select_rejects_unknown_coefficient_columns(model_table):
    with pytest.raises(ValueError, match="unknown column"):
        select_features(model_table, target=TARGET, coefficients={"nope": 1.0})


def test_elastic_net_scores_every_numeric_feature(model_table):
    coefs = elastic_net_coefficients(model_table, target=TARGET, cv=3)
    assert list(coefs.index) == numeric_feature_columns(model_table, target=TARGET)
    assert TARGET not in coefs.index
    assert np.isfinite(coefs.to_numpy()).all()


def test_extract_replaces_features_with_components(model_table):
    out = extract_components(model_table, target=TARGET, n_components=3)

    assert list(out.columns) == ["day_type", "day_part", "month", "PC1", "PC2", "PC3", TARGET]
    assert out.index.equals(model_table.index)
    pd.testing.assert_series_equal(out[TARGET], model_table[TARGET])


def test_extract_never_passes_target_to_projector(model_table):
    seen = {}

    def projector(features: pd.DataFrame) -> np.ndarray:
        seen["columns"] = list(features.columns)
        return features.to_numpy()[:, :2]

    out = extract_components(model_table, target=TARGET, n_components=2, projector=projector)
    assert TARGET not in seen["columns"]
    assert out["PC1"].tolist() == model_table[seen["columns"][0]].tolist()


def test_extract_validates_component_count(model_table):
    n_features = len(numeric_feature_columns(model_table, target=TARGET))
    with pytest.raises(ValueError):
        extract_components(model_table, target=TARGET, n_components=0)
    with pytest.raises(ValueError):
        extract_components(model_table, target=TARGET, n_components=n_features + 1)


def test_missing_feature_values_are_rejected(model_table):
    broken = model_table.copy()
    broken.loc[0, "CIE"] = np.nan
    with pytest.raises(ValueError, match="missing values"):
        extract_components(broken, target=TARGET, n_components=2)
    with pytest.raises(ValueError, match="missing values"):
        elastic_net_coefficients(broken, target=TARGET)


def test_reduction_errors_carry_the_reduce_stage(model_table):
    with pytest.raises(ReductionError) as excinfo:
        extract_components(model_table, target=TARGET, n_components=0)
    assert excinfo.value.stage == "reduce"
    assert isinstance(excinfo.value, PipelineError)
