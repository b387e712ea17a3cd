"""
Preprocessing recipe for the tree models.

The recipe is a ColumnTransformer fitted on training data only:
- date columns -> days since 1970-01-01, median imputation
- numeric columns -> median imputation, zero-variance filter
- categorical columns -> constant "unknown" imputation, one-hot encoding
  that ignores levels unseen during fitting
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn.base import clone
from sklearn.compose import ColumnTransformer
from sklearn.feature_selection import VarianceThreshold
from sklearn.impute import SimpleImputer
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import FunctionTransformer, OneHotEncoder


EPOCH = pd.Timestamp("1970-01-01")
UNKNOWN_LEVEL = "unknown"


@dataclass
class ColumnRoles:
    """Predictor columns grouped by how the recipe treats them."""
    numeric: List[str] = field(default_factory=list)
    categorical: List[str] = field(default_factory=list)
    date: List[str] = field(default_factory=list)

    @property
    def predictors(self) -> List[str]:
        return self.date + self.numeric + self.categorical


def infer_column_roles(
    df: pd.DataFrame,
    outcome: str,
    id_columns: Optional[Sequence[str]] = None,
    date_columns: Optional[Sequence[str]] = None,
    drop_columns: Optional[Sequence[str]] = None,
) -> ColumnRoles:
    """
    Assign every predictor column a role.

    The outcome, id columns and ``drop_columns`` are excluded. Columns named
    in ``date_columns`` or with a datetime dtype are dates; remaining numeric
    and boolean columns are numeric; everything else is categorical.
    """
    if outcome not in df.columns:
        raise KeyError(f"Outcome column '{outcome}' not found")

    excluded = {outcome} | set(id_columns or []) | set(drop_columns or [])
    date_columns = [c for c in (date_columns or []) if c in df.columns]

    roles = ColumnRoles()
    for col in df.columns:
        if col in excluded:
            continue
        if col in date_columns or pd.api.types.is_datetime64_any_dtype(df[col]):
            roles.date.append(col)
        elif pd.api.types.is_bool_dtype(df[col]) or pd.api.types.is_numeric_dtype(df[col]):
            roles.numeric.append(col)
        else:
            roles.categorical.append(col)
    return roles


def dates_to_days(X: pd.DataFrame) -> pd.DataFrame:
    """Days since 1970-01-01 for each column; unparseable values become NaN."""
    frame = pd.DataFrame(X)
    out = {}
    for col in frame.columns:
        parsed = pd.to_datetime(frame[col], errors="coerce")
        out[col] = (parsed - EPOCH) / pd.Timedelta(days=1)
    return pd.DataFrame(out, index=frame.index).astype(float)


def categories_as_strings(X: pd.DataFrame) -> pd.DataFrame:
    """Cast levels to str, with every missing marker (None, NaN, NaT) as np.nan."""
    frame = pd.DataFrame(X).astype(object)
    frame = frame.where(frame.notna(), np.nan)
    return frame.apply(lambda s: s.map(str, na_action="ignore"))


def build_recipe(
    roles: ColumnRoles,
    impute: bool = True,
    min_category_frequency: Optional[float] = None,
) -> ColumnTransformer:
    """
    Build the (unfitted) preprocessing recipe.

    Parameters
    ----------
    roles : ColumnRoles
        Column assignment from infer_column_roles.
    impute : bool
        Add median / constant imputation steps.
    min_category_frequency : float or int, optional
        Levels rarer than this are pooled into an infrequent category
        (OneHotEncoder ``min_frequency``).
    """
    if not roles.predictors:
        raise ValueError("Recipe needs at least one predictor column")

    transformers = []

    if roles.date:
        date_steps = [("days", FunctionTransformer(dates_to_days, feature_names_out="one-to-one"))]
        if impute:
            date_steps.append(("imp", SimpleImputer(strategy="median")))
        transformers.append(("date", Pipeline(date_steps), list(roles.date)))

    if roles.numeric:
        num_steps = []
        if impute:
            num_steps.append(("imp", SimpleImputer(strategy="median")))
        num_steps.append(("zv", VarianceThreshold(threshold=0.0)))
        transformers.append(("num", Pipeline(num_steps), list(roles.numeric)))

    if roles.categorical:
        if min_category_frequency:
            ohe = OneHotEncoder(handle_unknown="infrequent_if_exist", min_frequency=min_category_frequency,
                                sparse_output=False)
        else:
            ohe = OneHotEncoder(handle_unknown="ignore", sparse_output=False)
        cat_steps = [("str", FunctionTransformer(categories_as_strings, feature_names_out="one-to-one"))]
        if impute:
            cat_steps.append(("imp", SimpleImputer(strategy="constant", fill_value=UNKNOWN_LEVEL)))
        cat_steps.append(("ohe", ohe))
        transformers.append(("cat", Pipeline(cat_steps), list(roles.categorical)))

    return ColumnTransformer(transformers, remainder="drop", verbose_feature_names_out=False)


def prep_recipe(recipe: ColumnTransformer, X: pd.DataFrame) -> Tuple[ColumnTransformer, pd.DataFrame]:
    """Fit a copy of ``recipe`` on ``X`` and return it with the baked training frame."""
    fitted = clone(recipe)
    baked = fitted.fit_transform(X)
    names = list(fitted.get_feature_names_out())
    return fitted, pd.DataFrame(np.asarray(baked, dtype=float), columns=names, index=X.index)
