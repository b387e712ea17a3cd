# tests/test_config.py
"""Tests for YAML config loading and overrides."""

import pytest

from walkthrough.growth import growth_suite
from walkthrough.trees import tree_suite
from walkthrough.utils.config import apply_overrides, deep_update, load_config


class TestOverrides:

    def test_deep_update_does_not_mutate(self):
        base = {"a": {"b": 1, "c": 2}}
        out = deep_update(base, {"a": {"b": 5}})
        assert out == {"a": {"b": 5, "c": 2}}
        assert base["a"]["b"] == 1

    def test_dotted_overrides_parse_yaml(self):
        cfg = apply_overrides({"bootstrap": {"n_bootstrap": 200}}, [
            "bootstrap.n_bootstrap=50",
            "bootstrap.ci=0.9",
            "constructs=[a, b]",
            "output_dir=",
        ])
        assert cfg["bootstrap"] == {"n_bootstrap": 50, "ci": 0.9}
        assert cfg["constructs"] == ["a", "b"]
        assert cfg["output_dir"] is None

    def test_bad_override(self):
        with pytest.raises(ValueError, match="key=value"):
            apply_overrides({}, ["no_equals_sign"])


class TestLoadConfig:

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yml")

    def test_packaged_growth_config(self):
        cfg = load_config(growth_suite.DEFAULT_CONFIG_PATH)
        assert cfg["constructs"] == ["x", "y"]
        assert cfg["final_model"] in cfg["models"]
        for restricted, full in cfg["comparisons"]:
            assert restricted in cfg["models"] and full in cfg["models"]

    def test_packaged_tree_config(self):
        cfg = load_config(tree_suite.DEFAULT_CONFIG_PATH, overrides=["folds.v=5"])
        assert cfg["folds"]["v"] == 5
        assert set(cfg["models"]) == {"bagged_trees", "random_forest", "boosted_trees"}
