"""
Standardization Utilities
=========================

Consistent z-score standardization for simulated and joined datasets.

Key features:
- NaN-safe: Uses pandas operations that skip NaN values by default
- Consistent ddof: Uses ddof=1 (sample standard deviation) throughout
- Prefix naming: standardized copies are written as z_<column>

Usage:
    from walkthrough.preprocessing import safe_zscore, standardize_columns

    df['z_score'] = safe_zscore(df['score'])
    df = standardize_columns(df, ['x1', 'x2', 'x3'])
"""

from __future__ import annotations

from typing import List, Optional
import warnings

import numpy as np
import pandas as pd


def safe_zscore(series: pd.Series, ddof: int = 1, fill_constant: float = 0.0) -> pd.Series:
    """
    Calculate z-score with NaN-safe operations.

    Parameters
    ----------
    series : pd.Series
        Input data series.
    ddof : int, default 1
        Delta degrees of freedom. Use 1 for sample std, 0 for population std.
    fill_constant : float, default 0.0
        Value to use when the column is constant or std is undefined.

    Returns
    -------
    pd.Series
        Z-scored series with same index as input. NaN positions are kept.

    Examples
    --------
    >>> s = pd.Series([1, 2, 3, np.nan, 5])
    >>> safe_zscore(s)
    0   -1.161895
    1   -0.387298
    2    0.387298
    3         NaN
    4    1.161895
    dtype: float64
    """
    mean_val = series.mean()
    std_val = series.std(ddof=ddof)

    if pd.isna(std_val) or std_val == 0:
        warnings.warn(f"Constant or undefined std ({std_val}) detected. Filling with {fill_constant}.")
        result = pd.Series(fill_constant, index=series.index, dtype=float)
        result[series.isna()] = np.nan
        return result

    return (series - mean_val) / std_val


def standardize_columns(
    df: pd.DataFrame,
    columns: Optional[List[str]] = None,
    prefix: str = "z_",
    ddof: int = 1,
    inplace: bool = False,
) -> pd.DataFrame:
    """
    Add z-scored copies of numeric columns.

    Columns not present in ``df`` are skipped. When ``columns`` is None every
    numeric column is standardized.
    """
    result = df if inplace else df.copy()

    if columns is None:
        columns = result.select_dtypes(include="number").columns.tolist()

    for col in columns:
        if col in result.columns:
            result[f"{prefix}{col}"] = safe_zscore(result[col], ddof=ddof)

    return result
