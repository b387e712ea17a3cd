"""
Resampling, tuning and metrics for the tree workflows.

- initial_split / vfold_cv: stratified by the outcome (numeric outcomes are
  binned into quantile groups first)
- fit_resamples: per-fold metrics of one workflow
- collect_metrics: mean, n and standard error per metric
- tune_grid / show_best / select_best: grid search over resamples
- last_fit: fit on the training set, evaluate on the test set
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn.base import clone, is_classifier
from sklearn.metrics import (
    accuracy_score,
    log_loss,
    mean_absolute_error,
    mean_squared_error,
    r2_score,
    roc_auc_score,
)
from sklearn.model_selection import KFold, ParameterGrid, StratifiedKFold, train_test_split
from sklearn.pipeline import Pipeline

from ..preprocessing.constants import DEFAULT_SEED


# =============================================================================
# SPLITTING
# =============================================================================

def strata_groups(values: pd.Series, breaks: int = 4) -> np.ndarray:
    """Stratification labels; numeric values are cut into ``breaks`` quantile groups."""
    if pd.api.types.is_numeric_dtype(values) and values.nunique() > breaks:
        return pd.qcut(values, q=breaks, labels=False, duplicates="drop").to_numpy()
    return values.astype(str).to_numpy()


def initial_split(
    df: pd.DataFrame,
    prop: float = 0.75,
    strata: Optional[str] = None,
    breaks: int = 4,
    seed: int = DEFAULT_SEED,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Train/test split with ``prop`` of the rows in training."""
    if not 0 < prop < 1:
        raise ValueError(f"prop must be in (0, 1), got {prop}")
    if strata is not None and strata not in df.columns:
        raise KeyError(f"Strata column '{strata}' not found")

    groups = strata_groups(df[strata], breaks) if strata else None
    train, test = train_test_split(df, train_size=prop, stratify=groups, random_state=seed)
    return train.reset_index(drop=True), test.reset_index(drop=True)


@dataclass
class Fold:
    """Positional row indices of one resample."""
    id: str
    analysis_idx: np.ndarray
    assessment_idx: np.ndarray


def vfold_cv(
    df: pd.DataFrame,
    v: int = 10,
    repeats: int = 1,
    strata: Optional[str] = None,
    breaks: int = 4,
    seed: int = DEFAULT_SEED,
) -> List[Fold]:
    """V-fold cross-validation, optionally repeated and stratified."""
    if v < 2 or v > len(df):
        raise ValueError(f"v must be between 2 and the number of rows ({len(df)}), got {v}")
    if repeats < 1:
        raise ValueError(f"repeats must be positive, got {repeats}")
    if strata is not None and strata not in df.columns:
        raise KeyError(f"Strata column '{strata}' not found")

    groups = strata_groups(df[strata], breaks) if strata else None
    folds = []
    for r in range(repeats):
        if groups is not None:
            splitter = StratifiedKFold(n_splits=v, shuffle=True, random_state=seed + r)
            splits = splitter.split(df, groups)
        else:
            splitter = KFold(n_splits=v, shuffle=True, random_state=seed + r)
            splits = splitter.split(df)
        for k, (tr, te) in enumerate(splits, 1):
            fold_id = f"Fold{k:02d}" if repeats == 1 else f"Repeat{r + 1}_Fold{k:02d}"
            folds.append(Fold(id=fold_id, analysis_idx=tr, assessment_idx=te))
    return folds


# =============================================================================
# METRICS
# =============================================================================

def rmse(y_true, y_pred, **_) -> float:
    return float(np.sqrt(mean_squared_error(y_true, y_pred)))


def rsq(y_true, y_pred, **_) -> float:
    """Squared Pearson correlation between observed and predicted values."""
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    if np.std(y_true) == 0 or np.std(y_pred) == 0:
        return np.nan
    return float(np.corrcoef(y_true, y_pred)[0, 1] ** 2)


def rsq_trad(y_true, y_pred, **_) -> float:
    return float(r2_score(y_true, y_pred))


def mae(y_true, y_pred, **_) -> float:
    return float(mean_absolute_error(y_true, y_pred))


def accuracy(y_true, y_pred, **_) -> float:
    return float(accuracy_score(y_true, y_pred))


def roc_auc(y_true, y_pred, proba=None, classes=None) -> float:
    if proba is None:
        return np.nan
    if len(np.unique(y_true)) < 2:
        return np.nan
    if proba.shape[1] == 2:
        return float(roc_auc_score(y_true, proba[:, 1]))
    return float(roc_auc_score(y_true, proba, multi_class="ovr", labels=classes))


def mn_log_loss(y_true, y_pred, proba=None, classes=None) -> float:
    if proba is None:
        return np.nan
    return float(log_loss(y_true, proba, labels=classes))


METRICS: Dict[str, Callable] = {
    "rmse": rmse,
    "rsq": rsq,
    "rsq_trad": rsq_trad,
    "mae": mae,
    "accuracy": accuracy,
    "roc_auc": roc_auc,
    "mn_log_loss": mn_log_loss,
}

METRIC_DIRECTION: Dict[str, str] = {
    "rmse": "minimize",
    "rsq": "maximize",
    "rsq_trad": "maximize",
    "mae": "minimize",
    "accuracy": "maximize",
    "roc_auc": "maximize",
    "mn_log_loss": "minimize",
}

DEFAULT_METRICS: Dict[str, List[str]] = {
    "regression": ["rmse", "rsq", "mae"],
    "classification": ["accuracy", "roc_auc", "mn_log_loss"],
}


def _check_metrics(metrics: Sequence[str]) -> List[str]:
    unknown = [m for m in metrics if m not in METRICS]
    if unknown:
        raise ValueError(f"Unknown metrics {unknown}. Valid: {list(METRICS)}")
    return list(metrics)


def _default_metrics(workflow: Pipeline) -> List[str]:
    return DEFAULT_METRICS["classification" if is_classifier(workflow) else "regression"]


def _predict(workflow: Pipeline, X: pd.DataFrame) -> Tuple[np.ndarray, Optional[np.ndarray]]:
    y_pred = workflow.predict(X)
    proba = workflow.predict_proba(X) if is_classifier(workflow) else None
    return y_pred, proba


def compute_metrics(
    metrics: Sequence[str],
    y_true,
    y_pred,
    proba: Optional[np.ndarray] = None,
    classes: Optional[Sequence[Any]] = None,
) -> Dict[str, float]:
    return {m: METRICS[m](y_true, y_pred, proba=proba, classes=classes) for m in _check_metrics(metrics)}


# =============================================================================
# RESAMPLED FITS
# =============================================================================

def fit_resamples(
    workflow: Pipeline,
    df: pd.DataFrame,
    outcome: str,
    folds: Sequence[Fold],
    metrics: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """
    Fit ``workflow`` on each fold's analysis rows and score its assessment rows.

    Returns
    -------
    pd.DataFrame
        One row per fold and metric: id, metric, estimate, fit_seconds, error.
        A fold whose fit raises is kept with NaN estimates and the error text.
    """
    metrics = _check_metrics(metrics or _default_metrics(workflow))
    X = df.drop(columns=[outcome])
    y = df[outcome]

    rows = []
    for fold in folds:
        start = time.perf_counter()
        try:
            fitted = clone(workflow).fit(X.iloc[fold.analysis_idx], y.iloc[fold.analysis_idx])
            y_pred, proba = _predict(fitted, X.iloc[fold.assessment_idx])
            classes = fitted.classes_ if proba is not None else None
            scores = compute_metrics(metrics, y.iloc[fold.assessment_idx], y_pred, proba=proba, classes=classes)
            error = None
        except Exception as e:
            print(f"  [WARNING] {fold.id} failed: {e}")
            scores = {m: np.nan for m in metrics}
            error = str(e)
        elapsed = time.perf_counter() - start

        for metric, estimate in scores.items():
            rows.append({
                "id": fold.id,
                "metric": metric,
                "estimate": estimate,
                "fit_seconds": elapsed,
                "error": error,
            })

    return pd.DataFrame(rows)


_PER_FOLD_COLUMNS = {"id", "estimate", "fit_seconds", "error"}


def collect_metrics(per_fold: pd.DataFrame) -> pd.DataFrame:
    """
    Aggregate per-fold metrics: mean, n and std_err (sd / sqrt(n)).

    Every column other than id/estimate/fit_seconds/error is a grouping key
    (metric, model, config, tuning parameters). Failed folds are excluded.
    """
    ok = per_fold[per_fold["error"].isna()] if "error" in per_fold else per_fold
    keys = [c for c in per_fold.columns if c not in _PER_FOLD_COLUMNS]

    grouped = ok.groupby(keys, dropna=False, sort=False)["estimate"]
    summary = grouped.agg(mean="mean", n="count", sd="std").reset_index()
    summary["std_err"] = summary["sd"] / np.sqrt(summary["n"])
    return summary.drop(columns="sd")


# =============================================================================
# TUNING
# =============================================================================

def tune_grid(
    workflow: Pipeline,
    df: pd.DataFrame,
    outcome: str,
    folds: Sequence[Fold],
    grid: Dict[str, Sequence[Any]],
    metrics: Optional[Sequence[str]] = None,
    verbose: bool = False,
) -> pd.DataFrame:
    """
    Resampled metrics for every combination in ``grid`` (pipeline parameter names).

    Returns the per-fold table with a 'config' column and one column per
    tuning parameter.
    """
    if not grid:
        raise ValueError("Tuning grid is empty")

    frames = []
    candidates = list(ParameterGrid({k: list(v) for k, v in grid.items()}))
    for i, params in enumerate(candidates, 1):
        config = f"config{i:02d}"
        if verbose:
            print(f"  [TUNE] {config}/{len(candidates)}: {params}")
        candidate = clone(workflow).set_params(**params)
        per_fold = fit_resamples(candidate, df, outcome, folds, metrics)
        per_fold.insert(0, "config", config)
        for key in grid:
            per_fold[key] = [params[key]] * len(per_fold)
        frames.append(per_fold)

    return pd.concat(frames, ignore_index=True)


def _param_columns(table: pd.DataFrame) -> List[str]:
    return [c for c in table.columns if "__" in c]


def show_best(tuned: pd.DataFrame, metric: str, n: int = 5) -> pd.DataFrame:
    """Top ``n`` configurations by the mean of ``metric``."""
    if metric not in METRIC_DIRECTION:
        raise ValueError(f"Unknown metric '{metric}'")
    summary = collect_metrics(tuned)
    summary = summary[summary["metric"] == metric]
    if summary.empty:
        raise ValueError(f"Metric '{metric}' was not computed")
    ascending = METRIC_DIRECTION[metric] == "minimize"
    return summary.sort_values("mean", ascending=ascending, na_position="last").head(n).reset_index(drop=True)


def _plain(value: Any) -> Any:
    if value is None or (isinstance(value, float) and np.isnan(value)):
        return None
    return value.item() if hasattr(value, "item") else value


def select_best(tuned: pd.DataFrame, metric: str) -> Dict[str, Any]:
    """Pipeline parameters of the best configuration."""
    best = show_best(tuned, metric, n=1).iloc[0]
    return {c: _plain(best[c]) for c in _param_columns(tuned)}


# =============================================================================
# LAST FIT
# =============================================================================

@dataclass
class LastFitResult:
    workflow: Pipeline
    metrics: pd.DataFrame
    predictions: pd.DataFrame


def last_fit(
    workflow: Pipeline,
    train: pd.DataFrame,
    test: pd.DataFrame,
    outcome: str,
    metrics: Optional[Sequence[str]] = None,
) -> LastFitResult:
    """Fit on the full training set and evaluate once on the test set."""
    metrics = _check_metrics(metrics or _default_metrics(workflow))
    fitted = clone(workflow).fit(train.drop(columns=[outcome]), train[outcome])

    y_true = test[outcome]
    y_pred, proba = _predict(fitted, test.drop(columns=[outcome]))
    classes = fitted.classes_ if is_classifier(fitted) else None
    scores = compute_metrics(metrics, y_true, y_pred, proba=proba, classes=classes)

    metric_table = pd.DataFrame({"metric": list(scores), "estimate": list(scores.values())})
    predictions = pd.DataFrame({"row": np.arange(len(test)), "truth": y_true.to_numpy(), "pred": y_pred})
    if proba is not None:
        for j, cls in enumerate(classes):
            predictions[f"pred_{cls}"] = proba[:, j]

    return LastFitResult(workflow=fitted, metrics=metric_table, predictions=predictions)
