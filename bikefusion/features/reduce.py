"""Feature reduction boundary: elastic-net selection and PCA extraction.

The numerical work is done by scikit-learn. This module owns only the table
shape contract before and after the external call:
- selection keeps the significant columns + target + kept labels
- extraction replaces numeric features with PC1..PCk, target re-attached as-is
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping

import numpy as np
import pandas as pd
from sklearn.decomposition import PCA
from sklearn.linear_model import ElasticNetCV

from bikefusion.core.config import SEED
from bikefusion.core.errors import ReductionError

LOGGER = logging.getLogger(__name__)

Projector = Callable[[pd.DataFrame], np.ndarray]


def categorical_columns(df: pd.DataFrame) -> list[str]:
    return [c for c in df.columns if isinstance(df[c].dtype, pd.CategoricalDtype)]


def numeric_feature_columns(df: pd.DataFrame, *, target: str) -> list[str]:
    return [
        c
        for c in df.columns
        if c != target
        and not isinstance(df[c].dtype, pd.CategoricalDtype)
        and pd.api.types.is_numeric_dtype(df[c])
    ]


def _feature_matrix(df: pd.DataFrame, *, target: str) -> pd.DataFrame:
    if target not in df.columns:
        raise ReductionError(f"target column {target!r} not found")
    features = numeric_feature_columns(df, target=target)
    if not features:
        raise ReductionError("no numeric feature columns to reduce")
    X = df[features].astype(float)
    incomplete = [c for c in features if X[c].isna().any()]
    if incomplete:
        raise ReductionError(
            f"feature columns contain missing values {incomplete}; drop or impute before reduction"
        )
    return X


def elastic_net_coefficients(
    df: pd.DataFrame,
    *,
    target: str,
    l1_ratio: float | Iterable[float] = (0.1, 0.5, 0.9, 1.0),
    cv: int = 5,
    seed: int = SEED,
) -> pd.Series:
    """Fit a cross-validated elastic net and return its coefficients by column."""
    X = _feature_matrix(df, target=target)
    y = df[target].astype(float)
    if y.isna().any():
        raise ReductionError(f"target column {target!r} contains missing values")

    ratios = [l1_ratio] if isinstance(l1_ratio, (int, float)) else list(l1_ratio)
    model = ElasticNetCV(l1_ratio=ratios, cv=min(cv, len(X)), random_state=seed, max_iter=10000)
    model.fit(X.to_numpy(), y.to_numpy())
    LOGGER.info("ElasticNetCV: alpha=%.4g l1_ratio=%.2f", model.alpha_, model.l1_ratio_)
    return pd.Series(model.coef_, index=X.columns, name="coefficient")


def select_features(
    df: pd.DataFrame,
    *,
    target: str,
    coefficients: Mapping[str, float] | pd.Series,
    threshold: float = 0.0,
    keep: Iterable[str] | None = None,
) -> pd.DataFrame:
    """Restrict `df` to columns with |coefficient| > threshold, plus target and `keep`.

    `keep` defaults to the categorical label columns, which are never offered
    to the selection routine.
    """
    if target not in df.columns:
        raise ReductionError(f"target column {target!r} not found")
    coefs = pd.Series(coefficients, dtype=float)
    unknown = [c for c in coefs.index if c not in df.columns]
    if unknown:
        raise ReductionError(f"coefficients reference unknown column(s): {unknown}")

    keep = categorical_columns(df) if keep is None else list(keep)
    selected = set(coefs.index[coefs.abs() > threshold])
    wanted = selected | set(keep) | {target}
    cols = [c for c in df.columns if c in wanted]

    LOGGER.info(
        "Selection: kept %d of %d scored column(s) (threshold=%g)", len(selected), len(coefs), threshold
    )
    return df[cols].copy()


def pca_projector(n_components: int, *, seed: int = SEED) -> Projector:
    """Return a projector that fits PCA on the given features and transforms them."""

    def _project(features: pd.DataFrame) -> np.ndarray:
        pca = PCA(n_components=n_components, random_state=seed)
        scores = pca.fit_transform(features.to_numpy(dtype=float))
        LOGGER.info(
            "PCA: %d component(s) explain %.1f%% of variance",
            n_components,
            100.0 * float(np.sum(pca.explained_variance_ratio_)),
        )
        return scores

    return _project


def extract_components(
    df: pd.DataFrame,
    *,
    target: str,
    n_components: int,
    projector: Projector | None = None,
    keep: Iterable[str] | None = None,
    prefix: str = "PC",
) -> pd.DataFrame:
    """Replace numeric feature columns with the top `n_components` projections.

    The target column is never passed to the projector and is re-attached
    unchanged; the row index is preserved.
    """
    X = _feature_matrix(df, target=target)
    if n_components < 1 or n_components > X.shape[1]:
        raise ReductionError(f"n_components must be in [1, {X.shape[1]}], got {n_components}")
    if n_components > len(X):
        raise ReductionError(f"n_components={n_components} exceeds row count {len(X)}")

    projector = projector or pca_projector(n_components)
    scores = np.asarray(projector(X))
    if scores.ndim != 2 or scores.shape[0] != len(X) or scores.shape[1] < n_components:
        raise ReductionError(
            f"projector returned shape {scores.shape}, expected ({len(X)}, >={n_components})"
        )

    components = pd.DataFrame(
        scores[:, :n_components],
        index=df.index,
        columns=[f"{prefix}{i + 1}" for i in range(n_components)],
    )
    keep = categorical_columns(df) if keep is None else list(keep)
    return pd.concat([df[list(keep)], components, df[[target]]], axis=1)
