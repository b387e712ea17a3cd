"""
Growth Model Specifications
===========================

Describes latent growth curve models (single construct or parallel process)
and renders them as semopy model syntax.

Each construct gets an intercept factor (i_<name>) and, depending on its
shape, a slope (s_<name>) and quadratic (q_<name>) factor. Loadings are fixed:
1 for the intercept, the time codes for the slope and squared time codes for
the quadratic factor.

Usage:
    from walkthrough.growth.specs import GrowthSpec, construct, build_growth_syntax

    spec = GrowthSpec(
        name='parallel_correlated',
        constructs=[construct('x', 4), construct('y', 4)],
        association='correlated',
    )
    print(build_growth_syntax(spec))
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from itertools import combinations
from typing import Any, Dict, List, Optional, Sequence, Tuple


SHAPES = ("intercept", "linear", "quadratic")
ASSOCIATIONS = ("none", "correlated", "regression")
FACTOR_PREFIXES = ("i", "s", "q")

# Waves needed for an identified model with free residual variances
MIN_WAVES = {"intercept": 2, "linear": 3, "quadratic": 4}


@dataclass
class ConstructSpec:
    """One repeatedly measured construct."""
    name: str
    indicators: List[str]
    time_codes: List[float]
    shape: str = "linear"

    @property
    def factors(self) -> List[str]:
        n = SHAPES.index(self.shape) + 1
        return [f"{prefix}_{self.name}" for prefix in FACTOR_PREFIXES[:n]]


@dataclass
class GrowthSpec:
    """A growth model over one or more constructs."""
    name: str
    constructs: List[ConstructSpec]
    association: str = "none"
    regressions: List[Tuple[str, str]] = field(default_factory=list)
    fixed_zero_variances: List[str] = field(default_factory=list)
    fixed_zero_paths: List[Tuple[str, str]] = field(default_factory=list)
    equal_residuals: bool = False
    mean_structure: bool = True
    description: str = ""

    @property
    def factors(self) -> List[str]:
        return [f for c in self.constructs for f in c.factors]

    @property
    def indicators(self) -> List[str]:
        return [ind for c in self.constructs for ind in c.indicators]


def construct(
    name: str,
    n_waves: int,
    shape: str = "linear",
    time_codes: Optional[Sequence[float]] = None,
) -> ConstructSpec:
    """Construct with indicators <name>1..<name>T and default codes 0..T-1."""
    codes = list(range(n_waves)) if time_codes is None else list(time_codes)
    return ConstructSpec(
        name=name,
        indicators=[f"{name}{w + 1}" for w in range(n_waves)],
        time_codes=[float(t) for t in codes],
        shape=shape,
    )


def factor_names(spec: ConstructSpec) -> List[str]:
    return spec.factors


# =============================================================================
# VALIDATION
# =============================================================================

def validate_spec(spec: GrowthSpec) -> None:
    """Raise ValueError for specifications semopy cannot identify or parse."""
    if not spec.constructs:
        raise ValueError(f"{spec.name}: at least one construct is required")

    for c in spec.constructs:
        if c.shape not in SHAPES:
            raise ValueError(f"{spec.name}: unknown shape '{c.shape}'. Valid: {SHAPES}")
        if len(c.indicators) != len(c.time_codes):
            raise ValueError(f"{spec.name}: {c.name} has {len(c.indicators)} indicators "
                             f"but {len(c.time_codes)} time codes")
        if len(c.indicators) < MIN_WAVES[c.shape] and not spec.equal_residuals:
            raise ValueError(f"{spec.name}: {c.shape} growth for {c.name} needs at least "
                             f"{MIN_WAVES[c.shape]} waves, got {len(c.indicators)}")

    if spec.association not in ASSOCIATIONS:
        raise ValueError(f"{spec.name}: unknown association '{spec.association}'. Valid: {ASSOCIATIONS}")
    if spec.association == "regression" and not spec.regressions:
        raise ValueError(f"{spec.name}: association 'regression' needs at least one regression")
    if spec.association != "regression" and spec.regressions:
        raise ValueError(f"{spec.name}: regressions require association 'regression'")

    factors = set(spec.factors)
    for outcome, predictor in spec.regressions:
        for f in (outcome, predictor):
            if f not in factors:
                raise ValueError(f"{spec.name}: regression names unknown factor '{f}'. Factors: {sorted(factors)}")
        if outcome == predictor:
            raise ValueError(f"{spec.name}: factor '{outcome}' cannot predict itself")

    regressions = {tuple(r) for r in spec.regressions}
    for path in spec.fixed_zero_paths:
        if tuple(path) not in regressions:
            raise ValueError(f"{spec.name}: fixed path {tuple(path)} is not one of the regressions")

    for f in spec.fixed_zero_variances:
        if f not in factors:
            raise ValueError(f"{spec.name}: cannot fix variance of unknown factor '{f}'")


# =============================================================================
# SYNTAX
# =============================================================================

def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else repr(float(value))


def _loading_line(factor: str, indicators: Sequence[str], weights: Sequence[float]) -> str:
    terms = [f"{_fmt(w)}*{ind}" for w, ind in zip(weights, indicators)]
    return f"{factor} =~ " + " + ".join(terms)


def build_growth_syntax(spec: GrowthSpec) -> str:
    """Render a GrowthSpec as semopy model syntax."""
    validate_spec(spec)

    lines: List[str] = ["# Growth factors"]
    for c in spec.constructs:
        weights = [
            [1.0] * len(c.time_codes),
            c.time_codes,
            [t ** 2 for t in c.time_codes],
        ]
        for factor, w in zip(c.factors, weights):
            lines.append(_loading_line(factor, c.indicators, w))

    fixed = set(spec.fixed_zero_variances)
    construct_of = {f: c.name for c in spec.constructs for f in c.factors}
    regression_pairs = {frozenset(r) for r in spec.regressions}

    if spec.regressions:
        lines.append("# Structural paths")
        zero_paths = {tuple(p) for p in spec.fixed_zero_paths}
        by_outcome: Dict[str, List[str]] = {}
        for outcome, predictor in spec.regressions:
            term = f"0*{predictor}" if (outcome, predictor) in zero_paths else predictor
            by_outcome.setdefault(outcome, []).append(term)
        for outcome, terms in by_outcome.items():
            lines.append(f"{outcome} ~ " + " + ".join(terms))

    lines.append("# Factor variances and covariances")
    for f in spec.factors:
        lines.append(f"{f} ~~ 0*{f}" if f in fixed else f"{f} ~~ {f}")

    for a, b in combinations(spec.factors, 2):
        if frozenset((a, b)) in regression_pairs:
            continue
        same_construct = construct_of[a] == construct_of[b]
        free = (same_construct or spec.association in ("correlated", "regression")) \
            and a not in fixed and b not in fixed
        lines.append(f"{a} ~~ {b}" if free else f"{a} ~~ 0*{b}")

    if spec.equal_residuals:
        lines.append("# Residual variances (equal within construct)")
        for c in spec.constructs:
            for ind in c.indicators:
                lines.append(f"{ind} ~~ res_{c.name}*{ind}")

    if spec.mean_structure:
        lines.append("# Mean structure")
        for f in spec.factors:
            lines.append(f"{f} ~ 1")
        for ind in spec.indicators:
            lines.append(f"{ind} ~ 0*1")

    return "\n".join(lines)


# =============================================================================
# CONFIG HELPERS
# =============================================================================

def spec_from_config(name: str, entry: Dict[str, Any], n_waves: int) -> GrowthSpec:
    """
    Build a GrowthSpec from a YAML entry.

    Expected keys: constructs (mapping name -> shape), association,
    regressions, fixed_zero_variances, fixed_zero_paths, equal_residuals,
    mean_structure, time_codes, description.
    """
    constructs_cfg = entry.get("constructs")
    if not constructs_cfg:
        raise ValueError(f"{name}: 'constructs' must map construct names to shapes")

    time_codes = entry.get("time_codes")
    constructs = [
        construct(c_name, n_waves, shape=shape, time_codes=time_codes)
        for c_name, shape in constructs_cfg.items()
    ]
    return GrowthSpec(
        name=name,
        constructs=constructs,
        association=entry.get("association", "none"),
        regressions=[tuple(r) for r in entry.get("regressions", [])],
        fixed_zero_variances=list(entry.get("fixed_zero_variances", [])),
        fixed_zero_paths=[tuple(p) for p in entry.get("fixed_zero_paths", [])],
        equal_residuals=bool(entry.get("equal_residuals", False)),
        mean_structure=bool(entry.get("mean_structure", True)),
        description=entry.get("description", ""),
    )


def with_fixed_variance(spec: GrowthSpec, factor: str) -> GrowthSpec:
    """Copy of ``spec`` with the variance (and covariances) of ``factor`` fixed at 0."""
    new = copy.deepcopy(spec)
    if factor not in new.fixed_zero_variances:
        new.fixed_zero_variances.append(factor)
    new.name = f"{spec.name}_fixed_{factor}"
    validate_spec(new)
    return new
