"""
Data Simulation
===============

Population models used by the suites when no external data is configured.

- simulate_parallel_process: two-construct longitudinal data from a latent
  growth population (jointly distributed growth factors).
- simulate_student_scores: synthetic stand-ins for the student score table
  and the school-level demographic / enrollment tables, with the same join
  keys as the external sources.

Usage:
    from walkthrough.preprocessing.simulation import (
        default_parallel_process,
        simulate_parallel_process,
        to_long,
    )

    wide = default_parallel_process(n=500, seed=42)
    long = to_long(wide, constructs=['x', 'y'])
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from .constants import DEFAULT_N_WAVES, DEFAULT_SEED, ID_COLUMN, SCHOOL_KEY


# =============================================================================
# GROWTH POPULATION
# =============================================================================

@dataclass
class GrowthPopulation:
    """Growth factor means and residual SD of one construct."""
    construct: str
    means: Sequence[float]
    residual_sd: float = 1.0

    @property
    def n_factors(self) -> int:
        return len(self.means)


# Factor order: i_x, s_x, i_y, s_y
DEFAULT_POPULATIONS: List[GrowthPopulation] = [
    GrowthPopulation(construct="x", means=[10.0, 1.5], residual_sd=1.5),
    GrowthPopulation(construct="y", means=[20.0, -0.5], residual_sd=2.0),
]

DEFAULT_FACTOR_COV: List[List[float]] = [
    [4.00, 0.30, 2.00, 0.50],
    [0.30, 0.50, 0.20, 0.25],
    [2.00, 0.20, 6.00, 0.40],
    [0.50, 0.25, 0.40, 0.80],
]


def _loading_matrix(time_codes: np.ndarray, n_factors: int) -> np.ndarray:
    """Columns: intercept (1), slope (t), quadratic (t^2)."""
    columns = [np.ones_like(time_codes), time_codes, time_codes ** 2]
    return np.column_stack(columns[:n_factors])


def _validate_factor_cov(cov: np.ndarray, k: int) -> None:
    if cov.shape != (k, k):
        raise ValueError(f"Factor covariance must be {k}x{k} for {k} growth factors, got {cov.shape}")
    if not np.allclose(cov, cov.T):
        raise ValueError("Factor covariance must be symmetric")
    if np.linalg.eigvalsh(cov).min() < -1e-8:
        raise ValueError("Factor covariance must be positive semi-definite")


def simulate_parallel_process(
    n: int,
    populations: Sequence[GrowthPopulation],
    factor_cov: Sequence[Sequence[float]],
    n_waves: int = DEFAULT_N_WAVES,
    time_codes: Optional[Sequence[float]] = None,
    seed: int = DEFAULT_SEED,
    id_col: str = ID_COLUMN,
) -> pd.DataFrame:
    """
    Simulate wide-format longitudinal data for several constructs.

    Growth factors of all constructs are drawn jointly from a multivariate
    normal, so the covariance carries the cross-construct associations of the
    parallel process. Observed scores follow y_t = Lambda_t * eta + e_t.

    Parameters
    ----------
    n : int
        Number of individuals.
    populations : sequence of GrowthPopulation
        One entry per construct, in the order of ``factor_cov``.
    factor_cov : array-like
        Covariance of all growth factors (construct 1 factors first).
    n_waves : int
        Number of measurement occasions (>= 3).
    time_codes : sequence of float, optional
        Time scores per wave. Defaults to 0, 1, ..., n_waves - 1.
    seed : int
        Random seed.

    Returns
    -------
    pd.DataFrame
        Columns: id, <construct>1 .. <construct>T for each construct.
    """
    if n < 2:
        raise ValueError(f"Need at least 2 individuals, got n={n}")
    if n_waves < 3:
        raise ValueError(f"Need at least 3 waves, got n_waves={n_waves}")

    codes = np.arange(n_waves, dtype=float) if time_codes is None else np.asarray(time_codes, dtype=float)
    if len(codes) != n_waves:
        raise ValueError(f"Got {len(codes)} time codes for {n_waves} waves")

    k = sum(pop.n_factors for pop in populations)
    cov = np.asarray(factor_cov, dtype=float)
    _validate_factor_cov(cov, k)

    means = np.concatenate([np.asarray(pop.means, dtype=float) for pop in populations])
    rng = np.random.default_rng(seed)
    eta = rng.multivariate_normal(means, cov, size=n)

    data = {id_col: np.arange(1, n + 1)}
    offset = 0
    for pop in populations:
        loadings = _loading_matrix(codes, pop.n_factors)
        eta_pop = eta[:, offset:offset + pop.n_factors]
        offset += pop.n_factors

        observed = eta_pop @ loadings.T + rng.normal(0.0, pop.residual_sd, size=(n, n_waves))
        for w in range(n_waves):
            data[f"{pop.construct}{w + 1}"] = observed[:, w]

    return pd.DataFrame(data)


def populations_from_config(entries: Sequence[Dict]) -> List[GrowthPopulation]:
    """Build populations from config entries ``{construct, means, residual_sd}``."""
    return [
        GrowthPopulation(
            construct=str(entry["construct"]),
            means=[float(m) for m in entry["means"]],
            residual_sd=float(entry.get("residual_sd", 1.0)),
        )
        for entry in entries
    ]


def default_parallel_process(
    n: int = 500,
    n_waves: int = DEFAULT_N_WAVES,
    seed: int = DEFAULT_SEED,
) -> pd.DataFrame:
    """Two linear processes with correlated intercepts and slopes."""
    return simulate_parallel_process(
        n=n,
        populations=DEFAULT_POPULATIONS,
        factor_cov=DEFAULT_FACTOR_COV,
        n_waves=n_waves,
        seed=seed,
    )


def to_long(
    wide: pd.DataFrame,
    constructs: Sequence[str],
    id_col: str = ID_COLUMN,
    time_codes: Optional[Sequence[float]] = None,
) -> pd.DataFrame:
    """
    Reshape wide longitudinal data to long format.

    Returns
    -------
    pd.DataFrame
        Columns: id, construct, wave (1-based), time, value.
    """
    frames = []
    for construct in constructs:
        pattern = re.compile(rf"^{re.escape(construct)}(\d+)$")
        wave_cols = {}
        for col in wide.columns:
            match = pattern.match(str(col))
            if match:
                wave_cols[col] = int(match.group(1))
        if not wave_cols:
            raise KeyError(f"No wave columns found for construct '{construct}'")

        melted = wide[[id_col] + list(wave_cols)].melt(id_vars=id_col, var_name="column", value_name="value")
        melted["wave"] = melted["column"].map(wave_cols)
        melted["construct"] = construct
        frames.append(melted.drop(columns="column"))

    long = pd.concat(frames, ignore_index=True)
    if time_codes is None:
        long["time"] = (long["wave"] - 1).astype(float)
    else:
        codes = {w + 1: float(t) for w, t in enumerate(time_codes)}
        long["time"] = long["wave"].map(codes)

    long = long[[id_col, "construct", "wave", "time", "value"]]
    return long.sort_values([id_col, "construct", "wave"]).reset_index(drop=True)


# =============================================================================
# STUDENT SCORES
# =============================================================================

ETHNIC_CODES = ["A", "B", "H", "M", "W"]
ETHNIC_COLUMNS = {
    "A": "pct_asian",
    "B": "pct_black",
    "H": "pct_hispanic",
    "M": "pct_multiracial",
    "W": "pct_white",
}


def simulate_student_scores(
    n_students: int = 2000,
    n_schools: int = 40,
    seed: int = DEFAULT_SEED,
) -> Dict[str, pd.DataFrame]:
    """
    Simulate the three educational tables.

    Returns
    -------
    dict
        'scores'       : one row per student (id, school_id, demographics,
                         test date, score, classification)
        'demographics' : school-level ethnicity percentages
        'enrollment'   : school-level enrollment and free/reduced lunch share
    """
    rng = np.random.default_rng(seed)

    school_ids = np.arange(1001, 1001 + n_schools)
    ethnic_mix = rng.dirichlet([2.0, 1.0, 3.0, 1.0, 6.0], size=n_schools)
    demographics = pd.DataFrame({SCHOOL_KEY: school_ids})
    for j, code in enumerate(ETHNIC_CODES):
        demographics[ETHNIC_COLUMNS[code]] = ethnic_mix[:, j]

    enrollment = pd.DataFrame({
        SCHOOL_KEY: school_ids,
        "district_id": rng.integers(1, 9, size=n_schools),
        "enrollment": rng.integers(150, 1200, size=n_schools),
        "pct_frl": rng.beta(2.0, 2.5, size=n_schools),
    })

    school_idx = rng.integers(0, n_schools, size=n_students)
    school = school_ids[school_idx]
    ethnic = np.array([rng.choice(ETHNIC_CODES, p=ethnic_mix[i]) for i in school_idx])
    frl_share = enrollment["pct_frl"].to_numpy()[school_idx]

    grade = rng.integers(3, 9, size=n_students)
    gender = rng.choice(["F", "M"], size=n_students)
    econ = np.where(rng.random(n_students) < frl_share, "Y", "N").astype(object)
    sp_ed = np.where(rng.random(n_students) < 0.12, "Y", "N")
    tag_ed = np.where(rng.random(n_students) < 0.08, "Y", "N")
    test_day = pd.Timestamp("2018-03-01") + pd.to_timedelta(rng.integers(0, 90, size=n_students), unit="D")

    school_effect = rng.normal(0.0, 25.0, size=n_schools)[school_idx]
    score = (
        2400.0
        + 32.0 * (grade - 3)
        - 45.0 * (econ == "Y")
        - 60.0 * (sp_ed == "Y")
        + 55.0 * (tag_ed == "Y")
        - 40.0 * frl_share
        + school_effect
        + rng.normal(0.0, 70.0, size=n_students)
    )

    # Missing economic status for a small share of students
    econ[rng.random(n_students) < 0.03] = None

    scores = pd.DataFrame({
        "id": np.arange(1, n_students + 1),
        SCHOOL_KEY: school,
        "gndr": gender,
        "ethnic_cd": ethnic,
        "enrl_grd": grade,
        "econ_dsvntg": econ,
        "sp_ed_fg": sp_ed,
        "tag_ed_fg": tag_ed,
        "tst_dt": test_day.strftime("%Y-%m-%d"),
        "score": np.round(score, 0),
    })
    scores["classification"] = pd.cut(
        scores["score"] - 32.0 * (scores["enrl_grd"] - 3),
        bins=[-np.inf, 2330, 2400, 2470, np.inf],
        labels=[1, 2, 3, 4],
    ).astype(int)

    return {"scores": scores, "demographics": demographics, "enrollment": enrollment}
