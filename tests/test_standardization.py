# tests/test_standardization.py
"""Tests for z-score helpers."""

import numpy as np
import pandas as pd
import pytest

from walkthrough.preprocessing.standardization import safe_zscore, standardize_columns


class TestSafeZscore:

    def test_mean_zero_unit_sd(self):
        z = safe_zscore(pd.Series([1.0, 2.0, 3.0, 4.0, 5.0]))
        assert z.mean() == pytest.approx(0.0)
        assert z.std(ddof=1) == pytest.approx(1.0)

    def test_keeps_nan_positions(self):
        z = safe_zscore(pd.Series([1.0, 2.0, np.nan, 5.0]))
        assert np.isnan(z.iloc[2])
        assert z.notna().sum() == 3

    def test_constant_series_warns_and_fills(self):
        with pytest.warns(UserWarning, match="Constant"):
            z = safe_zscore(pd.Series([3.0, 3.0, np.nan]), fill_constant=0.0)
        assert z.iloc[0] == 0.0
        assert np.isnan(z.iloc[2])


class TestStandardizeColumns:

    def test_adds_prefixed_columns(self):
        df = pd.DataFrame({"a": [1.0, 2.0, 3.0], "b": ["x", "y", "z"]})
        out = standardize_columns(df)
        assert "z_a" in out.columns
        assert "z_b" not in out.columns
        assert "z_a" not in df.columns

    def test_skips_missing_columns(self):
        df = pd.DataFrame({"a": [1.0, 2.0, 3.0]})
        out = standardize_columns(df, columns=["a", "missing"])
        assert list(out.columns) == ["a", "z_a"]
