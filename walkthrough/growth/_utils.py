"""
Growth Model Utilities
======================

Shared functions for the latent growth suite.

This module provides:
- SEM fitting (semopy ModelMeans with covariance-only fallback)
- Fit index extraction and model comparison tables
- Likelihood ratio (chi-square difference) tests
- Admissibility checks (Heywood cases)
- Factor score prediction
- Case-resampling bootstrap of model parameters
- Per-person OLS trajectories
"""

from __future__ import annotations

import re
import warnings
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
import statsmodels.formula.api as smf
from joblib import Parallel, delayed
from scipy import stats
from semopy import Model, ModelMeans, calc_stats

from ..preprocessing.constants import BOOTSTRAP_FAILURE_WARN, DEFAULT_SEED, ID_COLUMN
from .specs import GrowthSpec, build_growth_syntax


# semopy calc_stats column -> our name
FIT_INDEX_COLUMNS = {
    "DoF": "dof",
    "chi2": "chi2",
    "chi2 p-value": "chi2_p",
    "CFI": "cfi",
    "TLI": "tli",
    "RMSEA": "rmsea",
    "AIC": "aic",
    "BIC": "bic",
    "LogLik": "loglik",
}

# Optimizer failures that justify a covariance-only refit; syntax and data
# errors propagate
NUMERIC_FIT_ERRORS = (np.linalg.LinAlgError, FloatingPointError, OverflowError)

_MEAN_LINE = re.compile(r"^\s*\w+\s*~\s*(0\s*\*\s*)?1\s*$")


# =============================================================================
# FITTING
# =============================================================================

@dataclass
class GrowthFit:
    """Result of one semopy fit."""
    name: str
    syntax: str
    n_obs: int
    method: str
    converged: bool
    fit: Dict[str, float]
    params: pd.DataFrame
    model: Any = field(default=None, repr=False)

    @property
    def uses_means(self) -> bool:
        return self.method == "semopy_means"

    @property
    def admissible(self) -> bool:
        return check_admissibility(self.params).empty

    def to_row(self) -> Dict[str, Any]:
        row = {
            "model": self.name,
            "n_obs": self.n_obs,
            "method": self.method,
            "converged": self.converged,
            "admissible": self.admissible,
        }
        row.update(self.fit)
        return row


def has_mean_structure(syntax: str) -> bool:
    return any(_MEAN_LINE.match(line) for line in syntax.splitlines())


def strip_mean_structure(syntax: str) -> str:
    """Drop intercept lines (``f ~ 1``, ``x1 ~ 0*1``) from a model description."""
    return "\n".join(line for line in syntax.splitlines() if not _MEAN_LINE.match(line))


def _seed_latent_means(model: Any, starts: Dict[str, float]) -> None:
    # semopy derives default starts for "~ 1" terms from observed columns only,
    # which fails for latent variables
    rows, cols = model.names_gamma1
    latent = set(model.vars["latent"])
    for param in model.parameters.values():
        loc = param.locations[0]
        if param.start is not None or loc.matrix is not model.mx_gamma1:
            continue
        lval, rval = rows[loc.indices[0]], cols[loc.indices[1]]
        if rval == "1" and lval in latent:
            param.start = float(starts.get(lval, 0.0))


def _fit_semopy(
    syntax: str,
    data: pd.DataFrame,
    use_means: bool,
    mean_starts: Optional[Dict[str, float]] = None,
) -> Tuple[Any, bool]:
    if use_means:
        model = ModelMeans(syntax)
        _seed_latent_means(model, mean_starts or {})
    else:
        model = Model(syntax)
    result = model.fit(data)
    converged = bool(getattr(result, "success", True))
    return model, converged


def latent_mean_starts(spec: GrowthSpec, data: pd.DataFrame) -> Dict[str, float]:
    """Least-squares growth factor means from the wave means (starting values)."""
    starts: Dict[str, float] = {}
    for c in spec.constructs:
        wave_means = data[c.indicators].mean().to_numpy(dtype=float)
        times = np.asarray(c.time_codes, dtype=float)
        design = np.column_stack([times ** k for k in range(len(c.factors))])
        coef = np.linalg.lstsq(design, wave_means, rcond=None)[0]
        starts.update({f: float(b) for f, b in zip(c.factors, coef)})
    return starts


def estimated_means(params: pd.DataFrame) -> Dict[str, float]:
    """Latent means (``f ~ 1`` rows for latent f) of a tidy parameter table."""
    latent = set(latent_names(params))
    rows = params[(params["op"] == "~") & (params["rval"].astype(str) == "1") & params["lval"].isin(latent)]
    return dict(zip(rows["lval"], pd.to_numeric(rows["Estimate"], errors="coerce")))


def tidy_params(params: pd.DataFrame) -> pd.DataFrame:
    """
    Normalize ``model.inspect()`` output.

    Adds a ``free`` flag (fixed parameters carry '-' as standard error) and
    coerces estimate, standard error and p-value to numbers.
    """
    tidy = params.copy()
    tidy["free"] = tidy["Std. Err"].astype(str).str.strip() != "-"
    for col in ("Estimate", "Std. Err", "z-value", "p-value"):
        if col in tidy.columns:
            tidy[col] = pd.to_numeric(tidy[col], errors="coerce")
    tidy["parameter"] = tidy["lval"].astype(str) + " " + tidy["op"] + " " + tidy["rval"].astype(str)
    return tidy.reset_index(drop=True)


def fit_growth_model(
    spec_or_syntax: Union[GrowthSpec, str],
    data: pd.DataFrame,
    name: Optional[str] = None,
    mean_structure: Optional[bool] = None,
    verbose: bool = False,
) -> GrowthFit:
    """
    Fit a growth model with semopy.

    Parameters
    ----------
    spec_or_syntax : GrowthSpec or str
        Model specification or semopy syntax.
    data : pd.DataFrame
        Wide data with one column per indicator.
    name : str, optional
        Model name (defaults to the spec name).
    mean_structure : bool, optional
        Fit latent means with ModelMeans. Defaults to the spec setting, or to
        whether the syntax contains intercept lines.

    Returns
    -------
    GrowthFit
        ``method`` is 'semopy_means' for a mean-structure fit and
        'semopy_cov' for a covariance-only fit (including the fallback taken
        when the mean-structure fit hits a numerical error).
    """
    starts: Dict[str, float] = {}
    if isinstance(spec_or_syntax, GrowthSpec):
        syntax = build_growth_syntax(spec_or_syntax)
        name = name or spec_or_syntax.name
        if mean_structure is None:
            mean_structure = spec_or_syntax.mean_structure
        missing = [c for c in spec_or_syntax.indicators if c not in data.columns]
        if missing:
            raise KeyError(f"{name}: indicator columns missing from data: {missing}")
        data = data[spec_or_syntax.indicators]
        starts = latent_mean_starts(spec_or_syntax, data)
    else:
        syntax = spec_or_syntax
        name = name or "model"
        if mean_structure is None:
            mean_structure = has_mean_structure(syntax)

    method = "semopy_cov"
    model = None
    converged = False
    if mean_structure:
        try:
            model, converged = _fit_semopy(syntax, data, use_means=True, mean_starts=starts)
            method = "semopy_means"
        except NUMERIC_FIT_ERRORS as e:
            warnings.warn(f"{name}: mean-structure fit failed ({e}); refitting covariance structure only")
            syntax = strip_mean_structure(syntax)
            model = None

    if model is None:
        model, converged = _fit_semopy(syntax, data, use_means=False)

    if not converged:
        warnings.warn(f"{name}: optimizer did not report convergence")

    fit = GrowthFit(
        name=name,
        syntax=syntax,
        n_obs=len(data),
        method=method,
        converged=converged,
        fit=extract_fit_indices(model),
        params=tidy_params(model.inspect()),
        model=model,
    )
    if not fit.admissible:
        warnings.warn(f"{name}: inadmissible estimates (negative variance or |r| > 1)")
    if verbose:
        print(f"  [FIT] {name}: {method}, chi2={fit.fit['chi2']:.2f}, df={fit.fit['dof']:.0f}, "
              f"CFI={fit.fit['cfi']:.3f}, RMSEA={fit.fit['rmsea']:.3f}, AIC={fit.fit['aic']:.1f}")
    return fit


def extract_fit_indices(model: Any) -> Dict[str, float]:
    """Fit indices from semopy.calc_stats; indices semopy does not report are NaN."""
    indices = {key: np.nan for key in FIT_INDEX_COLUMNS.values()}
    try:
        stats_df = calc_stats(model)
    except Exception as e:
        warnings.warn(f"calc_stats failed: {e}")
        return indices

    for col, key in FIT_INDEX_COLUMNS.items():
        if col in stats_df.columns:
            indices[key] = float(stats_df.loc["Value", col])
    return indices


def compare_fits(fits: Sequence[GrowthFit]) -> pd.DataFrame:
    """Fit index table sorted by AIC, with AIC/BIC ranks and AIC differences."""
    if not fits:
        return pd.DataFrame()

    table = pd.DataFrame([f.to_row() for f in fits])
    table["aic_rank"] = table["aic"].rank(method="min")
    table["bic_rank"] = table["bic"].rank(method="min")
    table["delta_aic"] = table["aic"] - table["aic"].min()
    return table.sort_values("aic", na_position="last").reset_index(drop=True)


# =============================================================================
# MODEL COMPARISON
# =============================================================================

def likelihood_ratio_test(restricted: GrowthFit, full: GrowthFit, alpha: float = 0.05) -> Dict[str, Any]:
    """
    Chi-square difference test between nested models.

    Parameters
    ----------
    restricted : GrowthFit
        The model with fewer free parameters (more degrees of freedom).
    full : GrowthFit
        The model it is nested in.
    alpha : float
        Significance level.

    Returns
    -------
    dict
        restricted, full, delta_chi2, delta_df, p_value, significant, preferred
    """
    if restricted.method != full.method:
        raise ValueError(f"Cannot compare {restricted.name} ({restricted.method}) with "
                         f"{full.name} ({full.method}): fitted with different estimators")

    delta_df = restricted.fit["dof"] - full.fit["dof"]
    if not np.isfinite(delta_df) or delta_df <= 0:
        raise ValueError(f"{restricted.name} is not nested in {full.name}: "
                         f"delta_df = {delta_df}")

    delta_chi2 = restricted.fit["chi2"] - full.fit["chi2"]
    if np.isfinite(delta_chi2) and delta_chi2 < 0:
        warnings.warn(f"Negative chi-square difference ({delta_chi2:.4f}) for "
                      f"{restricted.name} vs {full.name}; set to 0")
        delta_chi2 = 0.0

    p_value = float(stats.chi2.sf(delta_chi2, delta_df)) if np.isfinite(delta_chi2) else np.nan
    significant = bool(np.isfinite(p_value) and p_value < alpha)

    return {
        "restricted": restricted.name,
        "full": full.name,
        "delta_chi2": delta_chi2,
        "delta_df": int(delta_df),
        "p_value": p_value,
        "significant": significant,
        "preferred": full.name if significant else restricted.name,
    }


# =============================================================================
# ADMISSIBILITY
# =============================================================================

def check_admissibility(params: pd.DataFrame, tol: float = 1e-8) -> pd.DataFrame:
    """
    Find Heywood cases in a parameter table.

    Returns one row per negative variance estimate, per covariance whose
    implied correlation exceeds 1 in absolute value, and per nonzero
    covariance of a variable whose variance sits at 0. semopy bounds
    variances below at 0, so the last case is how a negative variance shows
    up in its estimates. Empty when admissible.
    """
    columns = ["parameter", "lval", "rval", "estimate", "issue"]
    cov = params[params["op"] == "~~"]
    estimates = pd.to_numeric(cov["Estimate"], errors="coerce")

    is_var = cov["lval"] == cov["rval"]
    variances = dict(zip(cov.loc[is_var, "lval"], estimates[is_var]))

    rows = []
    for lval, est in variances.items():
        if est < -tol:
            rows.append({"parameter": f"{lval} ~~ {lval}", "lval": lval, "rval": lval,
                         "estimate": est, "issue": "negative_variance"})

    for (_, row), est in zip(cov[~is_var].iterrows(), estimates[~is_var]):
        var_a = variances.get(row["lval"], np.nan)
        var_b = variances.get(row["rval"], np.nan)
        if not (np.isfinite(var_a) and np.isfinite(var_b)):
            continue
        if var_a <= tol or var_b <= tol:
            if abs(est) > tol:
                rows.append({"parameter": f"{row['lval']} ~~ {row['rval']}", "lval": row["lval"],
                             "rval": row["rval"], "estimate": est, "issue": "covariance_with_zero_variance"})
            continue
        r = est / np.sqrt(var_a * var_b)
        if abs(r) > 1 + tol:
            rows.append({"parameter": f"{row['lval']} ~~ {row['rval']}", "lval": row["lval"],
                         "rval": row["rval"], "estimate": r, "issue": "correlation_out_of_range"})

    return pd.DataFrame(rows, columns=columns)


def latent_names(params: pd.DataFrame) -> List[str]:
    """Growth factors of a parameter table (semopy lists loadings as ``indicator ~ factor``)."""
    if "free" in params:
        free = params["free"].astype(bool)
    else:
        free = params["Std. Err"].astype(str).str.strip() != "-"
    loadings = params[(params["op"] == "~") & ~free & (params["rval"].astype(str) != "1")]
    names = list(loadings["rval"]) + list(params.loc[params["op"] == "=~", "lval"])
    return list(dict.fromkeys(names))


def growth_factor_table(params: pd.DataFrame, factors: Optional[Sequence[str]] = None) -> pd.DataFrame:
    """
    Latent means, variances and covariances in tidy form.

    Covariance rows carry the implied correlation. Without ``factors`` the
    latent variables are taken from the fixed loadings.
    """
    if factors is None:
        factors = latent_names(params)
    factors = set(factors)

    est = pd.to_numeric(params["Estimate"], errors="coerce")
    se = pd.to_numeric(params.get("Std. Err"), errors="coerce") if "Std. Err" in params else np.nan
    pval = pd.to_numeric(params.get("p-value"), errors="coerce") if "p-value" in params else np.nan
    table = params.assign(estimate=est, se=se, p_value=pval)

    is_mean = (table["op"] == "~") & (table["rval"] == "1") & table["lval"].isin(factors)
    is_cov = (table["op"] == "~~") & table["lval"].isin(factors) & table["rval"].isin(factors)

    means = table[is_mean].assign(kind="mean")
    covs = table[is_cov].copy()
    covs["kind"] = np.where(covs["lval"] == covs["rval"], "variance", "covariance")

    variances = dict(zip(covs.loc[covs["kind"] == "variance", "lval"],
                         covs.loc[covs["kind"] == "variance", "estimate"]))

    def _corr(row):
        if row["kind"] != "covariance":
            return np.nan
        denom = variances.get(row["lval"], np.nan) * variances.get(row["rval"], np.nan)
        return row["estimate"] / np.sqrt(denom) if denom > 0 else np.nan

    out = pd.concat([means, covs], ignore_index=True)
    out["correlation"] = out.apply(_corr, axis=1) if len(out) else np.nan
    return out[["kind", "lval", "rval", "estimate", "se", "p_value", "correlation"]]


# =============================================================================
# FACTOR SCORES
# =============================================================================

def _observed_columns(model: Any) -> List[str]:
    # ModelMeans may list the intercept symbol among observed variables
    observed = getattr(model, "vars", {}).get("observed", [])
    return [v for v in observed if v != "1"]


def predict_factor_scores(fit: GrowthFit, data: pd.DataFrame, id_col: str = ID_COLUMN) -> pd.DataFrame:
    """Factor scores from a fitted model with the id column re-attached."""
    observed = _observed_columns(fit.model) or [c for c in data.columns if c != id_col]
    missing = [c for c in observed if c not in data.columns]
    if missing:
        raise KeyError(f"Columns missing for factor scores: {missing}")

    complete = data.dropna(subset=observed)
    scores = fit.model.predict_factors(complete[observed])
    scores = pd.DataFrame(scores).reset_index(drop=True)
    if id_col in complete.columns:
        scores.insert(0, id_col, complete[id_col].to_numpy())
    return scores


# =============================================================================
# BOOTSTRAP
# =============================================================================

@dataclass
class BootstrapResult:
    """Percentile bootstrap summary of free parameters."""
    table: pd.DataFrame
    n_requested: int
    n_failed: int
    replicates: pd.DataFrame = field(default=None, repr=False)

    @property
    def n_successful(self) -> int:
        return self.n_requested - self.n_failed

    @property
    def failure_rate(self) -> float:
        return self.n_failed / self.n_requested if self.n_requested else 0.0


def _bootstrap_replicate(
    syntax: str,
    data: pd.DataFrame,
    use_means: bool,
    seed_seq: np.random.SeedSequence,
    parameters: Sequence[str],
    mean_starts: Optional[Dict[str, float]] = None,
) -> Optional[np.ndarray]:
    rng = np.random.default_rng(seed_seq)
    idx = rng.integers(0, len(data), size=len(data))
    sample = data.iloc[idx].reset_index(drop=True)
    try:
        model, converged = _fit_semopy(syntax, sample, use_means, mean_starts)
        if not converged:
            return None
        params = tidy_params(model.inspect()).set_index("parameter")["Estimate"]
    except Exception:
        return None

    values = params.reindex(parameters).to_numpy(dtype=float)
    if not np.all(np.isfinite(values)):
        return None
    return values


def bootstrap_parameters(
    fit_or_syntax: Union[GrowthFit, str],
    data: pd.DataFrame,
    n_bootstrap: int = 200,
    ci: float = 0.95,
    seed: int = DEFAULT_SEED,
    n_jobs: int = 1,
    mean_structure: Optional[bool] = None,
    verbose: bool = False,
) -> BootstrapResult:
    """
    Case-resampling bootstrap of all free parameters.

    Each replicate draws n rows with replacement and refits the model.
    Replicates that raise, fail to converge or give non-finite estimates are
    counted as failures. Replicate seeds are spawned from ``seed`` so results
    do not depend on ``n_jobs``.

    Parameters
    ----------
    fit_or_syntax : GrowthFit or str
        Fitted model (its syntax and estimator are reused) or semopy syntax.
    data : pd.DataFrame
        Data the model was fitted to.
    n_bootstrap : int
        Number of replicates.
    ci : float
        Confidence level of the percentile intervals.
    seed : int
        Random seed.
    n_jobs : int
        Parallel workers (joblib).

    Returns
    -------
    BootstrapResult
    """
    if n_bootstrap < 1:
        raise ValueError(f"n_bootstrap must be positive, got {n_bootstrap}")
    if not 0 < ci < 1:
        raise ValueError(f"ci must be in (0, 1), got {ci}")

    if isinstance(fit_or_syntax, GrowthFit):
        original = fit_or_syntax
    else:
        original = fit_growth_model(fit_or_syntax, data, name="bootstrap_original",
                                    mean_structure=mean_structure)

    free = original.params[original.params["free"]]
    parameters = list(free["parameter"])
    observed = _observed_columns(original.model) or list(data.columns)
    boot_data = data[observed].dropna().reset_index(drop=True)

    if verbose:
        print(f"  [BOOTSTRAP] {original.name}: {n_bootstrap} replicates, {len(parameters)} free parameters, "
              f"n_jobs={n_jobs}")

    mean_starts = estimated_means(original.params)
    children = np.random.SeedSequence(seed).spawn(n_bootstrap)
    results = Parallel(n_jobs=n_jobs)(
        delayed(_bootstrap_replicate)(original.syntax, boot_data, original.uses_means, child, parameters,
                                      mean_starts)
        for child in children
    )

    successful = [r for r in results if r is not None]
    n_failed = n_bootstrap - len(successful)
    if n_failed > n_bootstrap * BOOTSTRAP_FAILURE_WARN:
        warnings.warn(f"High bootstrap failure rate: {n_failed}/{n_bootstrap} "
                      f"({100 * n_failed / n_bootstrap:.1f}%)")

    replicates = pd.DataFrame(successful, columns=parameters)
    alpha = (1 - ci) / 2
    table = pd.DataFrame({
        "parameter": parameters,
        "lval": free["lval"].to_numpy(),
        "op": free["op"].to_numpy(),
        "rval": free["rval"].to_numpy(),
        "estimate": free["Estimate"].to_numpy(dtype=float),
    })
    if len(replicates):
        table["boot_mean"] = replicates.mean().to_numpy()
        table["boot_se"] = replicates.std(ddof=1).to_numpy() if len(replicates) > 1 else np.nan
        table["ci_low"] = replicates.quantile(alpha).to_numpy()
        table["ci_high"] = replicates.quantile(1 - alpha).to_numpy()
    else:
        for col in ("boot_mean", "boot_se", "ci_low", "ci_high"):
            table[col] = np.nan
    table["excludes_zero"] = (table["ci_low"] > 0) | (table["ci_high"] < 0)
    table["n_valid"] = len(replicates)

    if verbose:
        print(f"  [BOOTSTRAP] {len(successful)}/{n_bootstrap} replicates succeeded")

    return BootstrapResult(table=table, n_requested=n_bootstrap, n_failed=n_failed, replicates=replicates)


# =============================================================================
# INDIVIDUAL TRAJECTORIES
# =============================================================================

def individual_trajectories(
    long_df: pd.DataFrame,
    construct: str,
    id_col: str = ID_COLUMN,
    min_obs: int = 2,
) -> pd.DataFrame:
    """
    Per-person OLS of value on time for one construct.

    Persons with fewer than ``min_obs`` non-missing waves get NaN estimates.

    Returns
    -------
    pd.DataFrame
        Columns: id, n_obs, intercept, slope, r_squared.
    """
    subset = long_df[long_df["construct"] == construct]
    if subset.empty:
        raise KeyError(f"No rows for construct '{construct}'")

    rows: List[Dict[str, Any]] = []
    for person, g in subset.groupby(id_col, sort=True):
        g = g.dropna(subset=["value", "time"])
        row = {id_col: person, "n_obs": len(g), "intercept": np.nan, "slope": np.nan, "r_squared": np.nan}
        if len(g) >= min_obs and g["time"].nunique() >= 2:
            res = smf.ols("value ~ time", data=g).fit()
            row["intercept"] = res.params["Intercept"]
            row["slope"] = res.params["time"]
            row["r_squared"] = res.rsquared if len(g) > 2 else np.nan
        rows.append(row)

    return pd.DataFrame(rows)


__all__ = [
    "GrowthFit",
    "BootstrapResult",
    "FIT_INDEX_COLUMNS",
    "fit_growth_model",
    "extract_fit_indices",
    "compare_fits",
    "likelihood_ratio_test",
    "check_admissibility",
    "growth_factor_table",
    "latent_names",
    "latent_mean_starts",
    "estimated_means",
    "predict_factor_scores",
    "bootstrap_parameters",
    "individual_trajectories",
    "tidy_params",
    "has_mean_structure",
    "strip_mean_structure",
]
