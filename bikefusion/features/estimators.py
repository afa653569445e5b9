"""Model fitting boundary.

One capability: given a feature table and a target column, return a fitted
predictor and held-out quality metrics. Callers depend only on `fit_model`
and `FitReport`; the estimators themselves are scikit-learn's.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, Protocol

import numpy as np
import pandas as pd
from sklearn.ensemble import RandomForestRegressor
from sklearn.linear_model import ElasticNetCV, LinearRegression
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score
from sklearn.model_selection import train_test_split
from sklearn.neural_network import MLPRegressor
from sklearn.tree import DecisionTreeRegressor

from bikefusion.core.config import SEED
from bikefusion.core.errors import ModelInputError

LOGGER = logging.getLogger(__name__)


class Predictor(Protocol):
    def fit(self, X: Any, y: Any) -> Any: ...

    def predict(self, X: Any) -> Any: ...


MODEL_REGISTRY: dict[str, Callable[[int], Predictor]] = {
    "linear": lambda seed: LinearRegression(),
    "elastic_net": lambda seed: ElasticNetCV(l1_ratio=[0.1, 0.5, 0.9, 1.0], cv=5, random_state=seed),
    "decision_tree": lambda seed: DecisionTreeRegressor(max_depth=6, random_state=seed),
    "random_forest": lambda seed: RandomForestRegressor(n_estimators=200, random_state=seed),
    "neural_net": lambda seed: MLPRegressor(
        hidden_layer_sizes=(32, 16), max_iter=2000, early_stopping=False, random_state=seed
    ),
}


@dataclass(frozen=True)
class FitReport:
    name: str
    model: Predictor
    metrics: dict[str, float]
    feature_names: tuple[str, ...]


def split_features_target(df: pd.DataFrame, *, target: str) -> tuple[pd.DataFrame, pd.Series]:
    """One-hot encode categorical labels and separate the target column."""
    if target not in df.columns:
        raise ModelInputError(f"target column {target!r} not found")
    y = df[target].astype(float)
    X = df.drop(columns=target)
    cats = [c for c in X.columns if isinstance(X[c].dtype, pd.CategoricalDtype)]
    if cats:
        X = pd.get_dummies(X, columns=cats, prefix=cats, dtype=float)
    non_numeric = [c for c in X.columns if not pd.api.types.is_numeric_dtype(X[c])]
    if non_numeric:
        raise ModelInputError(f"non-numeric feature column(s) {non_numeric}; cast or drop them first")
    X = X.astype(float)
    if X.isna().any(axis=None) or y.isna().any():
        raise ModelInputError("features or target contain missing values")
    return X, y


def _metrics(y_true: pd.Series, y_pred: np.ndarray) -> dict[str, float]:
    return {
        "r2": float(r2_score(y_true, y_pred)),
        "rmse": float(np.sqrt(mean_squared_error(y_true, y_pred))),
        "mae": float(mean_absolute_error(y_true, y_pred)),
    }


def fit_model(
    model: str | Predictor,
    df: pd.DataFrame,
    *,
    target: str,
    test_size: float = 0.2,
    seed: int = SEED,
) -> FitReport:
    """Fit `model` (registry name or estimator instance) and score it on a held-out split."""
    if isinstance(model, str):
        if model not in MODEL_REGISTRY:
            raise KeyError(f"unknown model {model!r}; known: {sorted(MODEL_REGISTRY)}")
        name, estimator = model, MODEL_REGISTRY[model](seed)
    else:
        name, estimator = type(model).__name__, model

    X, y = split_features_target(df, target=target)
    X_train, X_test, y_train, y_test = train_test_split(X, y, test_size=test_size, random_state=seed)

    estimator.fit(X_train, y_train)
    metrics = _metrics(y_test, estimator.predict(X_test))
    metrics.update({"n_train": float(len(X_train)), "n_test": float(len(X_test))})

    LOGGER.info(
        "Model %s: r2=%.3f rmse=%.3f mae=%.3f (n_test=%d)",
        name,
        metrics["r2"],
        metrics["rmse"],
        metrics["mae"],
        len(X_test),
    )
    return FitReport(name=name, model=estimator, metrics=metrics, feature_names=tuple(X.columns))


def fit_models(
    names: Iterable[str], df: pd.DataFrame, *, target: str, test_size: float = 0.2, seed: int = SEED
) -> list[FitReport]:
    return [fit_model(n, df, target=target, test_size=test_size, seed=seed) for n in names]
