"""
Tree ensemble specifications.

Three model types, each available as regressor or classifier:
- bagged_trees: bagging of unpruned decision trees
- random_forest: random forest (``max_features`` plays the role of mtry)
- boosted_trees: gradient boosting

A workflow is ``Pipeline([("prep", recipe), ("mdl", estimator)])`` so grid
keys address the estimator as ``mdl__<param>``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import numpy as np
import pandas as pd
from sklearn.base import clone
from sklearn.ensemble import (
    BaggingClassifier,
    BaggingRegressor,
    GradientBoostingClassifier,
    GradientBoostingRegressor,
    RandomForestClassifier,
    RandomForestRegressor,
)
from sklearn.pipeline import Pipeline
from sklearn.tree import DecisionTreeClassifier, DecisionTreeRegressor

from ..preprocessing.constants import DEFAULT_SEED


MODES = ("regression", "classification")

# Parameters of the base tree inside a bagging ensemble
TREE_PARAMS = {"max_depth", "min_samples_split", "min_samples_leaf", "max_leaf_nodes", "ccp_alpha"}


def _bagged(mode: str, params: Dict[str, Any], seed: int, n_jobs: Optional[int]):
    tree_kwargs = {k: v for k, v in params.items() if k in TREE_PARAMS}
    bag_kwargs = {k: v for k, v in params.items() if k not in TREE_PARAMS}
    if mode == "regression":
        tree = DecisionTreeRegressor(random_state=seed, **tree_kwargs)
        return BaggingRegressor(estimator=tree, random_state=seed, n_jobs=n_jobs, **bag_kwargs)
    tree = DecisionTreeClassifier(random_state=seed, **tree_kwargs)
    return BaggingClassifier(estimator=tree, random_state=seed, n_jobs=n_jobs, **bag_kwargs)


def _forest(mode: str, params: Dict[str, Any], seed: int, n_jobs: Optional[int]):
    cls = RandomForestRegressor if mode == "regression" else RandomForestClassifier
    return cls(random_state=seed, n_jobs=n_jobs, **params)


def _boosted(mode: str, params: Dict[str, Any], seed: int, n_jobs: Optional[int]):
    cls = GradientBoostingRegressor if mode == "regression" else GradientBoostingClassifier
    return cls(random_state=seed, **params)


MODEL_TYPES: Dict[str, Callable] = {
    "bagged_trees": _bagged,
    "random_forest": _forest,
    "boosted_trees": _boosted,
}


@dataclass
class ModelSpec:
    """One tree model: type, mode, fixed parameters and tuning grid."""
    name: str
    model_type: str
    mode: str = "regression"
    params: Dict[str, Any] = field(default_factory=dict)
    grid: Dict[str, List[Any]] = field(default_factory=dict)
    description: str = ""

    def __post_init__(self):
        if self.model_type not in MODEL_TYPES:
            raise ValueError(f"Unknown model type '{self.model_type}'. Valid: {list(MODEL_TYPES)}")
        if self.mode not in MODES:
            raise ValueError(f"Unknown mode '{self.mode}'. Valid: {MODES}")

    @property
    def tunable(self) -> bool:
        return bool(self.grid)


def param_key(spec: ModelSpec, param: str) -> str:
    """Pipeline parameter name for an estimator parameter."""
    if spec.model_type == "bagged_trees" and param in TREE_PARAMS:
        return f"mdl__estimator__{param}"
    return f"mdl__{param}"


def pipeline_grid(spec: ModelSpec) -> Dict[str, List[Any]]:
    return {param_key(spec, p): list(values) for p, values in spec.grid.items()}


def build_estimator(spec: ModelSpec, seed: int = DEFAULT_SEED, n_jobs: Optional[int] = None):
    return MODEL_TYPES[spec.model_type](spec.mode, dict(spec.params), seed, n_jobs)


def build_workflow(spec: ModelSpec, recipe, seed: int = DEFAULT_SEED, n_jobs: Optional[int] = None) -> Pipeline:
    """Unfitted pipeline of a fresh copy of ``recipe`` and the model."""
    return Pipeline([
        ("prep", clone(recipe)),
        ("mdl", build_estimator(spec, seed=seed, n_jobs=n_jobs)),
    ])


def specs_from_config(cfg: Dict[str, Any]) -> List[ModelSpec]:
    """
    ModelSpecs from the 'models' block.

    Each entry: ``{type, params, grid, description}``; ``type`` defaults to
    the entry name and the mode comes from the top-level 'mode' key.
    """
    mode = cfg.get("mode", "regression")
    models = cfg.get("models") or {}
    if not models:
        raise ValueError("Config has no 'models' block")

    specs = []
    for name, entry in models.items():
        entry = entry or {}
        specs.append(ModelSpec(
            name=name,
            model_type=entry.get("type", name),
            mode=mode,
            params=dict(entry.get("params") or {}),
            grid={k: list(v) for k, v in (entry.get("grid") or {}).items()},
            description=entry.get("description", ""),
        ))
    return specs


def impurity_importance(workflow: Pipeline) -> pd.DataFrame:
    """
    Impurity-based importances of a fitted workflow, by baked feature name.

    Bagging ensembles have no ``feature_importances_``; the base trees'
    importances are averaged over the features each tree saw.
    """
    names = list(workflow.named_steps["prep"].get_feature_names_out())
    model = workflow.named_steps["mdl"]

    if hasattr(model, "feature_importances_"):
        importance = np.asarray(model.feature_importances_, dtype=float)
    elif hasattr(model, "estimators_") and hasattr(model, "estimators_features_"):
        importance = np.zeros(len(names))
        for est, features in zip(model.estimators_, model.estimators_features_):
            importance[features] += est.feature_importances_
        importance /= len(model.estimators_)
    else:
        raise ValueError(f"{type(model).__name__} does not expose impurity importances")

    table = pd.DataFrame({"feature": names, "importance": importance})
    total = table["importance"].sum()
    table["importance_scaled"] = table["importance"] / total if total > 0 else np.nan
    return table.sort_values("importance", ascending=False).reset_index(drop=True)
