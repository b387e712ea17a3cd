# tests/test_models.py
"""Tests for tree model specifications and workflows."""

import pytest
from sklearn.ensemble import (
    BaggingRegressor,
    GradientBoostingClassifier,
    RandomForestRegressor,
)

from walkthrough.trees.models import (
    ModelSpec,
    build_estimator,
    build_workflow,
    impurity_importance,
    param_key,
    pipeline_grid,
    specs_from_config,
)
from walkthrough.trees.recipe import build_recipe, infer_column_roles


@pytest.fixture(scope="module")
def regression_data(student_frame):
    roles = infer_column_roles(student_frame, "score", date_columns=["tst_dt"])
    return student_frame, build_recipe(roles)


class TestModelSpec:

    def test_unknown_type(self):
        with pytest.raises(ValueError, match="model type"):
            ModelSpec("x", "svm")

    def test_unknown_mode(self):
        with pytest.raises(ValueError, match="mode"):
            ModelSpec("x", "random_forest", mode="survival")

    def test_bagged_tree_params_routed_to_base_tree(self):
        spec = ModelSpec("bag", "bagged_trees", params={"n_estimators": 7, "min_samples_leaf": 4})
        est = build_estimator(spec, seed=1)
        assert isinstance(est, BaggingRegressor)
        assert est.n_estimators == 7
        assert est.estimator.min_samples_leaf == 4
        assert param_key(spec, "min_samples_leaf") == "mdl__estimator__min_samples_leaf"
        assert param_key(spec, "n_estimators") == "mdl__n_estimators"

    def test_classification_estimator(self):
        est = build_estimator(ModelSpec("gb", "boosted_trees", mode="classification"))
        assert isinstance(est, GradientBoostingClassifier)

    def test_pipeline_grid(self):
        spec = ModelSpec("rf", "random_forest", grid={"max_features": [0.2, 0.5]})
        assert spec.tunable
        assert pipeline_grid(spec) == {"mdl__max_features": [0.2, 0.5]}


class TestSpecsFromConfig:

    def test_types_and_mode(self):
        cfg = {
            "mode": "classification",
            "models": {
                "random_forest": {"params": {"n_estimators": 10}},
                "small_boost": {"type": "boosted_trees", "grid": {"max_depth": [2, 3]}},
            },
        }
        specs = specs_from_config(cfg)
        assert [s.model_type for s in specs] == ["random_forest", "boosted_trees"]
        assert all(s.mode == "classification" for s in specs)
        assert specs[1].grid == {"max_depth": [2, 3]}

    def test_empty(self):
        with pytest.raises(ValueError, match="models"):
            specs_from_config({"models": {}})


class TestWorkflow:

    def test_fit_and_importance(self, regression_data):
        df, recipe = regression_data
        spec = ModelSpec("rf", "random_forest", params={"n_estimators": 20, "min_samples_leaf": 5})
        wf = build_workflow(spec, recipe, seed=1)
        assert isinstance(wf.named_steps["mdl"], RandomForestRegressor)
        wf.fit(df.drop(columns="score"), df["score"])

        imp = impurity_importance(wf)
        assert list(imp.columns) == ["feature", "importance", "importance_scaled"]
        assert imp["importance_scaled"].sum() == pytest.approx(1.0)
        assert imp["importance"].is_monotonic_decreasing
        assert "enrl_grd" in imp["feature"].head(3).tolist()

    def test_bagged_importance(self, regression_data):
        df, recipe = regression_data
        spec = ModelSpec("bag", "bagged_trees", params={"n_estimators": 5})
        wf = build_workflow(spec, recipe, seed=1).fit(df.drop(columns="score"), df["score"])
        imp = impurity_importance(wf)
        assert len(imp) == len(wf.named_steps["prep"].get_feature_names_out())
        assert imp["importance_scaled"].sum() == pytest.approx(1.0)
