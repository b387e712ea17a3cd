# tests/test_tree_suite.py
"""End-to-end runs of the tree model suite on small synthetic data."""

import json
from pathlib import Path

import pandas as pd
import pytest

from walkthrough.trees import tree_suite


def _read(output_dir, name):
    return pd.read_csv(Path(output_dir) / name, encoding="utf-8-sig")


class TestContext:

    def test_build_context(self, tree_config):
        ctx = tree_suite.build_context(tree_config)
        assert ctx.outcome == "score"
        assert "classification" not in ctx.data.columns
        assert "id" not in ctx.data.columns
        assert len(ctx.train) + len(ctx.test) == 300
        assert len(ctx.folds) == 3
        assert ctx.primary_metric == "rmse"
        assert ctx.roles.date == ["tst_dt"]

    def test_primary_metric_must_be_computed(self, tree_config):
        cfg = dict(tree_config, metrics=["rmse", "mae"], primary_metric="rsq")
        with pytest.raises(ValueError, match="Primary metric"):
            tree_suite.build_context(cfg)

    def test_missing_outcome(self, tree_config):
        cfg = dict(tree_config, outcome="gpa")
        with pytest.raises(KeyError, match="gpa"):
            tree_suite.build_context(cfg)


class TestRegressionRun:

    @pytest.fixture(scope="class")
    def full_run(self, tmp_path_factory):
        root = tmp_path_factory.mktemp("tree_run")
        cfg = tree_suite.resolve_config(overrides={
            "output_dir": str(root / "out"),
            "data": {
                "cache_path": str(root / "cache" / "students.parquet"),
                "synthetic": {"n_students": 300, "n_schools": 10},
            },
            "folds": {"v": 3},
            "models": {
                "bagged_trees": {"params": {"n_estimators": 5}},
                "random_forest": {
                    "params": {"n_estimators": 20},
                    "grid": {"max_features": [0.33, 0.5], "min_samples_leaf": [5]},
                },
                "boosted_trees": {
                    "params": {"n_estimators": 20},
                    "grid": {"learning_rate": [0.1], "max_depth": [2, 3]},
                },
            },
            "importance": {"n_repeats": 2},
        })
        results = tree_suite.run(config=cfg, verbose=False)
        return root / "out", results

    def test_all_outputs_written(self, full_run):
        output_dir, results = full_run
        assert set(results) == set(tree_suite.ANALYSES)
        for spec in tree_suite.ANALYSES.values():
            for filename in spec.outputs:
                assert (output_dir / filename).exists(), filename

    def test_data_summary_roles(self, full_run):
        output_dir, _ = full_run
        summary = _read(output_dir, "data_summary.csv").set_index("column")
        assert summary.loc["score", "role"] == "outcome"
        assert summary.loc["tst_dt", "role"] == "date"
        assert summary.loc["gndr", "role"] == "categorical"
        assert summary.loc["econ_dsvntg", "n_missing"] > 0

    def test_resample_metrics(self, full_run):
        output_dir, _ = full_run
        metrics = _read(output_dir, "resample_metrics.csv")
        assert set(metrics["model"]) == {"bagged_trees", "random_forest", "boosted_trees"}
        assert set(metrics["metric"]) == {"rmse", "rsq", "mae"}
        assert (metrics["n"] == 3).all()
        assert (metrics["mean_fit_seconds"] > 0).all()

    def test_tuning(self, full_run):
        output_dir, _ = full_run
        best = _read(output_dir, "tune_best.csv").set_index("model")
        assert set(best.index) == {"random_forest", "boosted_trees"}
        params = json.loads(best.loc["boosted_trees", "params"])
        assert set(params) == {"mdl__learning_rate", "mdl__max_depth"}

    def test_comparison_ranked(self, full_run):
        output_dir, _ = full_run
        comparison = _read(output_dir, "model_comparison.csv")
        assert len(comparison) == 5
        assert comparison["rank"].tolist() == [1, 2, 3, 4, 5]
        assert comparison["mean"].is_monotonic_increasing
        assert set(comparison["source"]) == {"default", "tuned"}

    def test_final_fit(self, full_run):
        output_dir, _ = full_run
        comparison = _read(output_dir, "model_comparison.csv")
        final = _read(output_dir, "final_metrics.csv")
        assert final["model"].unique().tolist() == [comparison["model"].iloc[0]]
        assert final["metric"].tolist() == ["rmse", "rsq", "mae"]
        predictions = _read(output_dir, "final_predictions.csv")
        assert len(predictions) == 75

    def test_importance(self, full_run):
        output_dir, _ = full_run
        impurity = _read(output_dir, "variable_importance.csv")
        assert impurity["importance_scaled"].sum() == pytest.approx(1.0)
        permutation = _read(output_dir, "permutation_importance.csv")
        assert "enrl_grd" in set(permutation["feature"])
        assert "score" not in set(permutation["feature"])


class TestClassificationRun:

    def test_classification_pipeline(self, tree_config):
        cfg = dict(tree_config, mode="classification", outcome="classification")
        cfg["models"] = {"random_forest": {"params": {"n_estimators": 20, "min_samples_leaf": 3}}}
        output_dir = Path(cfg["output_dir"])

        results = tree_suite.run("variable_importance", config=cfg, verbose=False)
        assert (output_dir / "model_comparison.csv").exists()
        assert not (output_dir / "tune_best.csv").exists()

        final = tree_suite.run("final_fit", config=cfg, verbose=False)["final_fit"]
        assert final["metrics"]["metric"].tolist() == ["accuracy", "roc_auc", "mn_log_loss"]
        assert any(c.startswith("pred_") for c in final["predictions"].columns)

        permutation = results["variable_importance"]["permutation"]
        assert not permutation.empty


class TestUpstreamOutputs:

    def _write(self, output_dir, name, rows, run_key):
        output_dir.mkdir(parents=True, exist_ok=True)
        table = pd.DataFrame(rows)
        table["run_key"] = run_key
        table.to_csv(output_dir / name, index=False, encoding="utf-8-sig")

    def test_results_key_ignores_output_settings(self, tree_config):
        key = tree_suite.results_key(tree_config)
        moved = dict(tree_config, output_dir="elsewhere", n_jobs=2, importance={"n_repeats": 9})
        moved["data"] = dict(tree_config["data"], cache_path="other.parquet", use_cache=False)
        assert tree_suite.results_key(moved) == key
        assert tree_suite.results_key(dict(tree_config, mode="classification")) != key
        assert tree_suite.results_key(dict(tree_config, folds={"v": 5})) != key

    def test_comparison_uses_only_primary_metric(self, tree_config):
        output_dir = Path(tree_config["output_dir"])
        key = tree_suite.results_key(tree_config)
        self._write(output_dir, "resample_metrics.csv", [
            {"model": "bagged_trees", "metric": "rmse", "mean": 9.0, "std_err": 0.5, "n": 3},
            {"model": "bagged_trees", "metric": "rsq", "mean": 0.4, "std_err": 0.05, "n": 3},
        ], key)
        self._write(output_dir, "tune_best.csv", [
            {"model": "random_forest", "config": "Preprocessor1_Model1", "metric": "rmse",
             "mean": 8.0, "std_err": 0.4, "n": 3, "params": "{}"},
            {"model": "random_forest", "config": "Preprocessor1_Model2", "metric": "rsq",
             "mean": 0.5, "std_err": 0.04, "n": 3, "params": "{}"},
        ], key)

        comparison = tree_suite.run("compare_models", config=tree_config, verbose=False)["compare_models"]["comparison"]
        assert comparison["metric"].tolist() == ["rmse", "rmse"]
        assert comparison["mean"].tolist() == [8.0, 9.0]
        assert comparison["model"].tolist() == ["random_forest", "bagged_trees"]

    def test_outputs_from_other_settings_are_rebuilt(self, tree_config):
        output_dir = Path(tree_config["output_dir"])
        tree_config["models"] = {"random_forest": {"params": {"n_estimators": 20, "min_samples_leaf": 3}}}
        tree_suite.run("fit_models", config=tree_config, verbose=False)
        regression = _read(output_dir, "resample_metrics.csv")
        assert set(regression["metric"]) == {"rmse", "rsq", "mae"}

        cfg = dict(tree_config, mode="classification", outcome="classification")
        tree_suite.run("compare_models", config=cfg, verbose=False)

        refit = pd.read_csv(output_dir / "resample_metrics.csv", encoding="utf-8-sig", dtype={"run_key": str})
        assert set(refit["metric"]) == {"accuracy", "roc_auc", "mn_log_loss"}
        assert (refit["run_key"] == tree_suite.results_key(cfg)).all()

        comparison = pd.read_csv(output_dir / "model_comparison.csv", encoding="utf-8-sig", dtype={"run_key": str})
        assert comparison["metric"].tolist() == ["accuracy"]
        assert comparison["mean"].between(0, 1).all()
        assert comparison["mode"].tolist() == ["classification"]

    def test_outputs_without_key_are_rebuilt(self, tree_config):
        output_dir = Path(tree_config["output_dir"])
        tree_config["models"] = {"random_forest": {"params": {"n_estimators": 20}}}
        output_dir.mkdir(parents=True, exist_ok=True)
        pd.DataFrame([{"model": "random_forest", "metric": "rmse", "mean": 0.0, "std_err": 0.0, "n": 3}]).to_csv(
            output_dir / "resample_metrics.csv", index=False, encoding="utf-8-sig")

        comparison = tree_suite.run("compare_models", config=tree_config, verbose=False)["compare_models"]["comparison"]
        assert comparison["mean"].iloc[0] > 0
