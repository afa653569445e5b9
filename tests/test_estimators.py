from __future__ import annotations

import pytest
from sklearn.linear_model import Ridge

from bikefusion.core.errors import ModelInputError, PipelineError
from bikefusion.data_processing.pipeline import assemble_dataset
from bikefusion.features.estimators import MODEL_REGISTRY, fit_model, fit_models, split_features_target

TARGET = "sfmta_count"


@pytest.fixture
def model_table(sources, config):
    return assemble_dataset(sources, config).table


def test_split_one_hot_encodes_labels(model_table):
    X, y = split_features_target(model_table, target=TARGET)
    assert TARGET not in X.columns
    assert "day_type_weekday" in X.columns
    assert "month_1" in X.columns
    assert len(X) == len(y) == len(model_table)


def test_fit_model_reports_held_out_metrics(model_table):
    report = fit_model("linear", model_table, target=TARGET, test_size=0.25)
    assert report.name == "linear"
    assert set(report.metrics) == {"r2", "rmse", "mae", "n_train", "n_test"}
    assert report.metrics["n_test"] == 3.0
    assert report.metrics["rmse"] >= 0.0
    assert hasattr(report.model, "predict")


def test_fit_model_accepts_an_estimator_instance(model_table):
    report = fit_model(Ridge(alpha=1.0), model_table, target=TARGET)
    assert report.name == "Ridge"


def test_unknown_model_name(model_table):
    with pytest.raises(KeyError):
        fit_model("svm", model_table, target=TARGET)


@pytest.mark.parametrize("name", ["elastic_net", "decision_tree", "random_forest", "neural_net"])
def test_registered_models_fit(model_table, name):
    (report,) = fit_models([name], model_table, target=TARGET, test_size=0.25)
    assert report.name == name
    assert name in MODEL_REGISTRY
    assert set(report.metrics) >= {"r2", "rmse", "mae"}


def test_model_input_errors_are_pipeline_errors(model_table):
    with pytest.raises(ModelInputError) as excinfo:
        split_features_target(model_table.drop(columns=TARGET), target=TARGET)
    assert excinfo.value.stage == "fit"

    labelled = model_table.assign(note="x")
    with pytest.raises(PipelineError, match="non-numeric"):
        fit_model("linear", labelled, target=TARGET)
