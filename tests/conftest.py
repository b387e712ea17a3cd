# tests/conftest.py
"""Shared fixtures for the walkthrough tests."""

from pathlib import Path
from typing import Dict

import numpy as np
import pandas as pd
import pytest

from walkthrough.growth import growth_suite
from walkthrough.preprocessing import (
    default_parallel_process,
    join_sources,
    simulate_student_scores,
    to_long,
)
from walkthrough.trees import tree_suite
from walkthrough.utils.config import load_config


@pytest.fixture(scope="session")
def wide_data() -> pd.DataFrame:
    """Two linear processes, 300 persons, 4 waves."""
    return default_parallel_process(n=300, n_waves=4, seed=7)


@pytest.fixture(scope="session")
def long_data(wide_data: pd.DataFrame) -> pd.DataFrame:
    return to_long(wide_data, constructs=["x", "y"])


@pytest.fixture(scope="session")
def heywood_data() -> pd.DataFrame:
    """
    One construct, 4 waves, whose sample covariance equals a linear growth
    model with slope variance -0.1, so the linear fit cannot be admissible.
    """
    rng = np.random.default_rng(11)
    times = np.arange(4.0)
    loadings = np.column_stack([np.ones(4), times])
    target = loadings @ np.array([[1.0, 0.0], [0.0, -0.1]]) @ loadings.T + 2.0 * np.eye(4)

    raw = rng.standard_normal((400, 4))
    raw -= raw.mean(axis=0)
    white = raw @ np.linalg.inv(np.linalg.cholesky(np.cov(raw, rowvar=False))).T
    values = white @ np.linalg.cholesky(target).T + 10.0 + 1.5 * times

    wide = pd.DataFrame(values, columns=[f"x{t}" for t in range(1, 5)])
    wide.insert(0, "id", np.arange(1, 401))
    return wide


@pytest.fixture(scope="session")
def student_tables() -> Dict[str, pd.DataFrame]:
    return simulate_student_scores(n_students=400, n_schools=12, seed=3)


@pytest.fixture(scope="session")
def student_frame(student_tables: Dict[str, pd.DataFrame]) -> pd.DataFrame:
    """Joined student table with ids and the classification outcome removed."""
    joined = join_sources(
        student_tables["scores"],
        student_tables["demographics"],
        student_tables["enrollment"],
        verbose=False,
    )
    return joined.drop(columns=["id", "classification"])


@pytest.fixture
def growth_config(tmp_path: Path) -> Dict:
    """Packaged growth config scaled down for tests."""
    return load_config(
        growth_suite.DEFAULT_CONFIG_PATH,
        overrides={
            "output_dir": str(tmp_path / "growth"),
            "simulation": {"n": 250},
            "bootstrap": {"n_bootstrap": 3, "n_jobs": 1},
        },
    )


@pytest.fixture
def tree_config(tmp_path: Path) -> Dict:
    """Packaged tree config scaled down for tests."""
    return load_config(
        tree_suite.DEFAULT_CONFIG_PATH,
        overrides={
            "output_dir": str(tmp_path / "trees"),
            "data": {
                "cache_path": str(tmp_path / "cache" / "students.parquet"),
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
        },
    )
