"""
Latent Growth Suite
===================

Parallel-process latent growth curve workflow for two longitudinal
constructs, fitted with semopy.

Analyses (run in this order):
- simulate: simulate wide longitudinal data from the configured population
- descriptives: wave statistics and per-person OLS trajectories
- univariate_growth: intercept-only / linear / quadratic growth per construct,
  LRT chain and admissibility checks
- parallel_process: configured parallel-process models and nested comparisons
- factor_scores: factor scores of the final model
- bootstrap: bootstrap confidence intervals of the final model's parameters

Usage:
    python -m walkthrough.growth.growth_suite                    # Run all
    python -m walkthrough.growth.growth_suite --analysis univariate_growth
    python -m walkthrough.growth.growth_suite --set bootstrap.n_bootstrap=50
    python -m walkthrough.growth.growth_suite --list

    from walkthrough.growth import growth_suite
    growth_suite.run('parallel_process')
    growth_suite.run()  # All analyses
"""

from __future__ import annotations

import sys
if sys.platform.startswith("win") and hasattr(sys.stdout, "reconfigure"):
    sys.stdout.reconfigure(encoding='utf-8')

import argparse
import hashlib
import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import numpy as np
import pandas as pd

from walkthrough.preprocessing import (
    DEFAULT_CONSTRUCTS,
    DEFAULT_SEED,
    GROWTH_OUTPUT_DIR,
    ID_COLUMN,
    populations_from_config,
    read_table,
    simulate_parallel_process,
    standardize_columns,
    to_long,
)
from walkthrough.utils.config import apply_overrides, load_config
from walkthrough.growth._utils import (
    GrowthFit,
    bootstrap_parameters,
    check_admissibility,
    compare_fits,
    fit_growth_model,
    growth_factor_table,
    individual_trajectories,
    likelihood_ratio_test,
    predict_factor_scores,
)
from walkthrough.growth.specs import (
    GrowthSpec,
    construct,
    spec_from_config,
    with_fixed_variance,
)


DEFAULT_CONFIG_PATH = Path(__file__).with_name("analyses.yml")
SIMULATED_FILE = "simulated_data.csv"
SIMULATION_KEY_FILE = "simulated_data.key"


# =============================================================================
# ANALYSIS REGISTRY
# =============================================================================

@dataclass
class AnalysisSpec:
    """Specification for an analysis."""
    name: str
    description: str
    function: Callable
    outputs: List[str] = field(default_factory=list)


ANALYSES: Dict[str, AnalysisSpec] = {}


def register_analysis(name: str, description: str, outputs: Optional[List[str]] = None):
    """Decorator to register an analysis function."""
    def decorator(func: Callable):
        ANALYSES[name] = AnalysisSpec(
            name=name,
            description=description,
            function=func,
            outputs=outputs or [],
        )
        return func
    return decorator


# =============================================================================
# DATA LOADING
# =============================================================================

def simulate_from_config(cfg: Dict[str, Any]) -> pd.DataFrame:
    """Simulate wide data from the 'simulation' block."""
    sim = cfg.get("simulation") or {}
    return simulate_parallel_process(
        n=int(sim.get("n", 500)),
        populations=populations_from_config(sim["populations"]),
        factor_cov=sim["factor_cov"],
        n_waves=int(sim.get("n_waves", 4)),
        time_codes=cfg.get("time_codes"),
        seed=int(cfg.get("seed", DEFAULT_SEED)),
        id_col=_id_col(cfg),
    )


def simulation_key(cfg: Dict[str, Any]) -> str:
    """Hash of the settings that determine the simulated data."""
    params = {
        "simulation": cfg.get("simulation") or {},
        "seed": cfg.get("seed", DEFAULT_SEED),
        "time_codes": cfg.get("time_codes"),
        "id_col": _id_col(cfg),
    }
    param_str = json.dumps(params, sort_keys=True, default=str)
    return hashlib.md5(param_str.encode()).hexdigest()[:8]


def _cached_simulation_matches(cfg: Dict[str, Any], output_dir: Path) -> bool:
    key_path = output_dir / SIMULATION_KEY_FILE
    if not (output_dir / SIMULATED_FILE).exists() or not key_path.exists():
        return False
    return key_path.read_text(encoding="utf-8").strip() == simulation_key(cfg)


def load_growth_data(cfg: Dict[str, Any], output_dir: Path, verbose: bool = True) -> pd.DataFrame:
    """
    Wide data for the suite.

    Priority: configured data.path, then the simulated file written by the
    'simulate' analysis (unless data.use_cache is false or the simulation
    settings changed since it was written), then a fresh simulation.
    """
    data_cfg = cfg.get("data") or {}
    if data_cfg.get("path"):
        if verbose:
            print(f"[DATA] Reading {data_cfg['path']}")
        return read_table(data_cfg)

    if data_cfg.get("use_cache", True):
        if _cached_simulation_matches(cfg, output_dir):
            return pd.read_csv(output_dir / SIMULATED_FILE, encoding='utf-8-sig')
        if verbose and (output_dir / SIMULATED_FILE).exists():
            print(f"[DATA] {SIMULATED_FILE} was simulated with other settings; ignoring it")

    if verbose:
        print("[DATA] Simulating from config")
    return simulate_from_config(cfg)


def _id_col(cfg: Dict[str, Any]) -> str:
    return (cfg.get("data") or {}).get("id_col", ID_COLUMN)


def _wave_columns(data: pd.DataFrame, name: str) -> List[str]:
    pattern = re.compile(rf"^{re.escape(name)}(\d+)$")
    cols = [c for c in data.columns if pattern.match(str(c))]
    if not cols:
        raise KeyError(f"No wave columns found for construct '{name}'")
    return sorted(cols, key=lambda c: int(pattern.match(str(c)).group(1)))


def _n_waves(data: pd.DataFrame, constructs: List[str]) -> int:
    counts = {c: len(_wave_columns(data, c)) for c in constructs}
    if len(set(counts.values())) != 1:
        raise ValueError(f"Constructs have different numbers of waves: {counts}")
    return next(iter(counts.values()))


def _model_spec(cfg: Dict[str, Any], name: str, n_waves: int) -> GrowthSpec:
    models = cfg.get("models") or {}
    if name not in models:
        raise KeyError(f"Model '{name}' not found in config. Available: {list(models)}")
    entry = dict(models[name])
    if cfg.get("time_codes") is not None and "time_codes" not in entry:
        entry["time_codes"] = cfg["time_codes"]
    return spec_from_config(name, entry, n_waves)


def _fit_final(cfg: Dict[str, Any], data: pd.DataFrame, verbose: bool) -> GrowthFit:
    constructs = list(cfg.get("constructs", DEFAULT_CONSTRUCTS))
    spec = _model_spec(cfg, cfg["final_model"], _n_waves(data, constructs))
    return fit_growth_model(spec, data, verbose=verbose)


# =============================================================================
# ANALYSES
# =============================================================================

@register_analysis(
    name="simulate",
    description="Simulate parallel-process data from the configured population",
    outputs=[SIMULATED_FILE, SIMULATION_KEY_FILE],
)
def analyze_simulate(cfg: Dict[str, Any], output_dir: Path, verbose: bool = True) -> Dict[str, pd.DataFrame]:
    """Simulate wide data and save it, with its settings key, for the downstream analyses."""
    data = simulate_from_config(cfg)
    data.to_csv(output_dir / SIMULATED_FILE, index=False, encoding='utf-8-sig')
    (output_dir / SIMULATION_KEY_FILE).write_text(simulation_key(cfg), encoding="utf-8")

    if verbose:
        print(f"  [DATA] Simulated N={len(data)}, columns: {list(data.columns)}")
        print(f"  Saved: {output_dir / SIMULATED_FILE}")

    return {"data": data}


@register_analysis(
    name="descriptives",
    description="Wave means/SDs/correlations and per-person OLS trajectories",
    outputs=["wave_descriptives.csv", "wave_correlations.csv",
             "individual_trajectories.csv", "trajectory_summary.csv"],
)
def analyze_descriptives(cfg: Dict[str, Any], output_dir: Path, verbose: bool = True) -> Dict[str, pd.DataFrame]:
    """Describe each construct over waves before modeling."""
    data = load_growth_data(cfg, output_dir, verbose)
    id_col = _id_col(cfg)
    constructs = list(cfg.get("constructs", DEFAULT_CONSTRUCTS))

    desc_rows = []
    corr_frames = []
    for name in constructs:
        cols = _wave_columns(data, name)
        for wave, col in enumerate(cols, start=1):
            series = data[col]
            desc_rows.append({
                "construct": name,
                "wave": wave,
                "column": col,
                "n": int(series.notna().sum()),
                "mean": series.mean(),
                "sd": series.std(ddof=1),
                "min": series.min(),
                "max": series.max(),
            })
        corr = data[cols].corr()
        corr.insert(0, "construct", name)
        corr_frames.append(corr.reset_index().rename(columns={"index": "column"}))

    descriptives = pd.DataFrame(desc_rows)
    correlations = pd.concat(corr_frames, ignore_index=True)

    long = to_long(data, constructs, id_col=id_col, time_codes=cfg.get("time_codes"))
    traj_frames = []
    summary_rows = []
    for name in constructs:
        traj = individual_trajectories(long, name, id_col=id_col)
        traj.insert(1, "construct", name)
        traj_frames.append(traj)
        valid = traj.dropna(subset=["intercept", "slope"])
        summary_rows.append({
            "construct": name,
            "n_persons": len(valid),
            "mean_intercept": valid["intercept"].mean(),
            "sd_intercept": valid["intercept"].std(ddof=1),
            "mean_slope": valid["slope"].mean(),
            "sd_slope": valid["slope"].std(ddof=1),
            "r_intercept_slope": valid["intercept"].corr(valid["slope"]),
            "mean_r_squared": valid["r_squared"].mean(),
        })

    trajectories = pd.concat(traj_frames, ignore_index=True)
    summary = pd.DataFrame(summary_rows)

    descriptives.to_csv(output_dir / "wave_descriptives.csv", index=False, encoding='utf-8-sig')
    correlations.to_csv(output_dir / "wave_correlations.csv", index=False, encoding='utf-8-sig')
    trajectories.to_csv(output_dir / "individual_trajectories.csv", index=False, encoding='utf-8-sig')
    summary.to_csv(output_dir / "trajectory_summary.csv", index=False, encoding='utf-8-sig')

    if verbose:
        print("\nWave means:")
        for _, row in descriptives.iterrows():
            print(f"  {row['column']}: M={row['mean']:.2f}, SD={row['sd']:.2f} (n={row['n']})")
        print("\nPer-person OLS trajectories:")
        for _, row in summary.iterrows():
            print(f"  {row['construct']}: intercept M={row['mean_intercept']:.2f}, "
                  f"slope M={row['mean_slope']:.2f}, r(i,s)={row['r_intercept_slope']:.2f}")

    return {"descriptives": descriptives, "correlations": correlations,
            "trajectories": trajectories, "summary": summary}


def _heywood_factor(spec: GrowthSpec, issues: pd.DataFrame) -> Optional[str]:
    """Highest-order growth factor involved in an inadmissible estimate."""
    factors = spec.factors
    involved = set(issues["lval"]) | set(issues["rval"])
    candidates = [f for f in factors if f in involved]
    return candidates[-1] if candidates else None


@register_analysis(
    name="univariate_growth",
    description="Intercept-only, linear and quadratic growth per construct with LRT chain",
    outputs=["univariate_fits.csv", "univariate_lrt.csv",
             "univariate_admissibility.csv", "selected_shapes.csv"],
)
def analyze_univariate_growth(cfg: Dict[str, Any], output_dir: Path, verbose: bool = True) -> Dict[str, pd.DataFrame]:
    """
    Select a growth shape per construct.

    The selected shape is the most complex one reached by consecutive
    significant LRTs whose fuller model is admissible.
    """
    data = load_growth_data(cfg, output_dir, verbose)
    constructs = list(cfg.get("constructs", DEFAULT_CONSTRUCTS))
    uni_cfg = cfg.get("univariate") or {}
    shapes = list(uni_cfg.get("shapes", ["intercept", "linear", "quadratic"]))
    alpha = float(uni_cfg.get("alpha", 0.05))
    resolve_heywood = bool(uni_cfg.get("resolve_heywood", True))
    mean_structure = bool(uni_cfg.get("mean_structure", True))

    fit_rows = []
    lrt_rows = []
    issue_frames = []
    selected_rows = []

    for name in constructs:
        n_waves = len(_wave_columns(data, name))
        if verbose:
            print(f"\n[FIT] {name}: {n_waves} waves, shapes {shapes}")

        fits: Dict[str, GrowthFit] = {}
        for shape in shapes:
            spec = GrowthSpec(
                name=f"{name}_{shape}",
                constructs=[construct(name, n_waves, shape=shape, time_codes=cfg.get("time_codes"))],
                mean_structure=mean_structure,
            )
            try:
                fit = fit_growth_model(spec, data, verbose=verbose)
            except ValueError as e:
                if verbose:
                    print(f"  [SKIP] {spec.name}: {e}")
                continue
            except Exception as e:
                print(f"  [WARNING] {spec.name} failed to fit: {e}")
                continue

            issues = check_admissibility(fit.params)
            if not issues.empty:
                issue_frames.append(issues.assign(model=fit.name))
                factor = _heywood_factor(spec, issues)
                if verbose:
                    print(f"  [WARNING] {fit.name} inadmissible: "
                          f"{', '.join(issues['parameter'] + ' (' + issues['issue'] + ')')}")
                if resolve_heywood and factor is not None:
                    fixed_spec = with_fixed_variance(spec, factor)
                    if verbose:
                        print(f"  [FIT] Refitting with var({factor}) fixed at 0")
                    try:
                        fit = fit_growth_model(fixed_spec, data, verbose=verbose)
                    except Exception as e:
                        print(f"  [WARNING] {fixed_spec.name} failed to fit: {e}")

            fits[shape] = fit
            row = fit.to_row()
            row.update({"construct": name, "shape": shape})
            fit_rows.append(row)

        selected = None
        fitted_shapes = [s for s in shapes if s in fits]
        if fitted_shapes:
            selected = fitted_shapes[0]
        for simpler, fuller in zip(fitted_shapes, fitted_shapes[1:]):
            try:
                lrt = likelihood_ratio_test(fits[simpler], fits[fuller], alpha=alpha)
            except ValueError as e:
                print(f"  [WARNING] LRT {simpler} vs {fuller} for {name}: {e}")
                break
            lrt["construct"] = name
            lrt_rows.append(lrt)
            if verbose:
                print(f"  [LRT] {fits[simpler].name} vs {fits[fuller].name}: "
                      f"dchi2={lrt['delta_chi2']:.2f}, ddf={lrt['delta_df']}, p={lrt['p_value']:.4f}")
            if not (lrt["significant"] and fits[fuller].admissible):
                break
            selected = fuller

        selected_rows.append({
            "construct": name,
            "selected_shape": selected,
            "model": fits[selected].name if selected else None,
        })
        if verbose:
            print(f"  Selected shape for {name}: {selected}")

    fit_table = pd.DataFrame(fit_rows)
    lrt_table = pd.DataFrame(lrt_rows)
    issues_table = pd.concat(issue_frames, ignore_index=True) if issue_frames else pd.DataFrame(
        columns=["parameter", "lval", "rval", "estimate", "issue", "model"])
    selected_table = pd.DataFrame(selected_rows)

    fit_table.to_csv(output_dir / "univariate_fits.csv", index=False, encoding='utf-8-sig')
    lrt_table.to_csv(output_dir / "univariate_lrt.csv", index=False, encoding='utf-8-sig')
    issues_table.to_csv(output_dir / "univariate_admissibility.csv", index=False, encoding='utf-8-sig')
    selected_table.to_csv(output_dir / "selected_shapes.csv", index=False, encoding='utf-8-sig')

    return {"fits": fit_table, "lrt": lrt_table, "admissibility": issues_table, "selected": selected_table}


@register_analysis(
    name="parallel_process",
    description="Parallel-process growth models and nested LRT comparisons",
    outputs=["parallel_fits.csv", "parallel_lrt.csv",
             "parallel_factor_estimates.csv", "parallel_params.csv"],
)
def analyze_parallel_process(cfg: Dict[str, Any], output_dir: Path, verbose: bool = True) -> Dict[str, pd.DataFrame]:
    """Fit each configured model and test the configured nested pairs."""
    data = load_growth_data(cfg, output_dir, verbose)
    constructs = list(cfg.get("constructs", DEFAULT_CONSTRUCTS))
    n_waves = _n_waves(data, constructs)
    alpha = float(cfg.get("alpha", 0.05))

    fits: Dict[str, GrowthFit] = {}
    for name in cfg.get("models") or {}:
        spec = _model_spec(cfg, name, n_waves)
        if verbose:
            print(f"\n[FIT] {name}: {spec.description}")
        try:
            fits[name] = fit_growth_model(spec, data, verbose=verbose)
        except Exception as e:
            print(f"  [WARNING] {name} failed to fit: {e}")
            continue
        issues = check_admissibility(fits[name].params)
        if not issues.empty and verbose:
            print(f"  [WARNING] {name} inadmissible: {', '.join(issues['parameter'])}")

    fit_table = compare_fits(list(fits.values()))

    lrt_rows = []
    for restricted, full in cfg.get("comparisons") or []:
        if restricted not in fits or full not in fits:
            print(f"  [SKIP] {restricted} vs {full}: model not fitted")
            continue
        try:
            lrt = likelihood_ratio_test(fits[restricted], fits[full], alpha=alpha)
        except ValueError as e:
            print(f"  [WARNING] {e}")
            continue
        lrt_rows.append(lrt)
        if verbose:
            print(f"  [LRT] {restricted} vs {full}: dchi2={lrt['delta_chi2']:.2f}, "
                  f"ddf={lrt['delta_df']}, p={lrt['p_value']:.4f} -> {lrt['preferred']}")
    lrt_table = pd.DataFrame(lrt_rows)

    final_name = cfg.get("final_model")
    if final_name in fits:
        final = fits[final_name]
        estimates = growth_factor_table(final.params, _model_spec(cfg, final_name, n_waves).factors)
        params = final.params
    else:
        estimates = pd.DataFrame()
        params = pd.DataFrame()

    fit_table.to_csv(output_dir / "parallel_fits.csv", index=False, encoding='utf-8-sig')
    lrt_table.to_csv(output_dir / "parallel_lrt.csv", index=False, encoding='utf-8-sig')
    estimates.to_csv(output_dir / "parallel_factor_estimates.csv", index=False, encoding='utf-8-sig')
    params.to_csv(output_dir / "parallel_params.csv", index=False, encoding='utf-8-sig')

    if verbose and not fit_table.empty:
        print("\n" + "-" * 60)
        print("MODEL FIT COMPARISON")
        print("-" * 60)
        for _, row in fit_table.iterrows():
            print(f"  {row['model']}: AIC={row['aic']:.1f}, BIC={row['bic']:.1f}, "
                  f"CFI={row['cfi']:.3f}, RMSEA={row['rmsea']:.3f}")
        if not estimates.empty:
            print(f"\nFinal model ({final_name}) growth factor correlations:")
            for _, row in estimates[estimates["kind"] == "covariance"].iterrows():
                print(f"  {row['lval']} ~~ {row['rval']}: r={row['correlation']:.3f}")

    return {"fits": fit_table, "lrt": lrt_table, "estimates": estimates, "params": params}


@register_analysis(
    name="factor_scores",
    description="Factor scores of the final model",
    outputs=["factor_scores.csv", "factor_score_correlations.csv"],
)
def analyze_factor_scores(cfg: Dict[str, Any], output_dir: Path, verbose: bool = True) -> Dict[str, pd.DataFrame]:
    """Predict growth factor scores per person from the final model."""
    data = load_growth_data(cfg, output_dir, verbose)
    id_col = _id_col(cfg)
    final = _fit_final(cfg, data, verbose)

    scores = predict_factor_scores(final, data, id_col=id_col)
    factor_cols = [c for c in scores.columns if c != id_col]
    correlations = scores[factor_cols].corr()
    scores = standardize_columns(scores, factor_cols)

    scores.to_csv(output_dir / "factor_scores.csv", index=False, encoding='utf-8-sig')
    correlations.to_csv(output_dir / "factor_score_correlations.csv", encoding='utf-8-sig')

    if verbose:
        print(f"\n  Factor scores: N={len(scores)}, factors={factor_cols}")
        print(scores[factor_cols].describe().loc[["mean", "std"]].round(3).to_string())

    return {"scores": scores, "correlations": correlations}


@register_analysis(
    name="bootstrap",
    description="Bootstrap percentile CIs for the final model's parameters",
    outputs=["bootstrap_ci.csv"],
)
def analyze_bootstrap(cfg: Dict[str, Any], output_dir: Path, verbose: bool = True) -> Dict[str, pd.DataFrame]:
    """Case-resampling bootstrap of the final model."""
    data = load_growth_data(cfg, output_dir, verbose)
    boot_cfg = cfg.get("bootstrap") or {}
    final = _fit_final(cfg, data, verbose)

    result = bootstrap_parameters(
        final,
        data,
        n_bootstrap=int(boot_cfg.get("n_bootstrap", 200)),
        ci=float(boot_cfg.get("ci", 0.95)),
        seed=int(cfg.get("seed", DEFAULT_SEED)),
        n_jobs=int(boot_cfg.get("n_jobs", 1)),
        verbose=verbose,
    )
    table = result.table.assign(n_requested=result.n_requested, n_failed=result.n_failed)
    table.to_csv(output_dir / "bootstrap_ci.csv", index=False, encoding='utf-8-sig')

    if verbose:
        print(f"\n  Replicates: {result.n_successful}/{result.n_requested} "
              f"(failure rate {100 * result.failure_rate:.1f}%)")
        for _, row in table.iterrows():
            if row["op"] == "~~" and row["lval"] != row["rval"]:
                print(f"  {row['parameter']}: {row['estimate']:.3f} "
                      f"[{row['ci_low']:.3f}, {row['ci_high']:.3f}]")

    return {"bootstrap": table}


# =============================================================================
# RUNNER
# =============================================================================

def list_analyses() -> None:
    """List all available analyses."""
    print("\nAvailable Growth Analyses:")
    print("-" * 60)
    for name, spec in ANALYSES.items():
        print(f"  {name}: {spec.description}")
        if spec.outputs:
            print(f"      Outputs: {', '.join(spec.outputs)}")
    print()


def resolve_config(
    config: Union[str, Path, Dict[str, Any], None] = None,
    overrides: Any = None,
) -> Dict[str, Any]:
    """Config dict from a path, a dict, or the packaged default."""
    if isinstance(config, dict):
        return apply_overrides(config, overrides)
    return load_config(config or DEFAULT_CONFIG_PATH, overrides=overrides)


def run(
    analysis: Optional[str] = None,
    config: Union[str, Path, Dict[str, Any], None] = None,
    overrides: Any = None,
    verbose: bool = True,
    force_rebuild: bool = False,
) -> Dict[str, Dict[str, pd.DataFrame]]:
    """
    Run growth analyses.

    Args:
        analysis: Specific analysis to run, or None for all
        config: Config path or dict (defaults to analyses.yml)
        overrides: Dict or "key.sub=value" strings applied on top of config
        verbose: Print output
        force_rebuild: Ignore cached data and rebuild it

    Returns:
        Dictionary of results per analysis
    """
    cfg = resolve_config(config, overrides)
    if force_rebuild:
        cfg = apply_overrides(cfg, {"data": {"use_cache": False}})
    output_dir = Path(cfg.get("output_dir") or GROWTH_OUTPUT_DIR)
    output_dir.mkdir(parents=True, exist_ok=True)
    np.random.seed(int(cfg.get("seed", DEFAULT_SEED)))

    results = {}

    if analysis:
        if analysis not in ANALYSES:
            raise ValueError(f"Unknown analysis: {analysis}. Use list_analyses() to see available.")

        spec = ANALYSES[analysis]
        results[analysis] = spec.function(cfg, output_dir, verbose=verbose)
    else:
        for name, spec in ANALYSES.items():
            if verbose:
                print(f"\n{'=' * 70}")
                print(f"Running: {name}")
                print(f"{'=' * 70}")
            results[name] = spec.function(cfg, output_dir, verbose=verbose)

    if verbose:
        print(f"\n[DONE] Growth outputs in {output_dir}")

    return results


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Latent Growth Suite")
    parser.add_argument('--analysis', type=str, help='Specific analysis to run')
    parser.add_argument('--config', type=str, default=None, help='Path to YAML config')
    parser.add_argument('--set', dest='overrides', action='append', default=[],
                        metavar='KEY=VALUE', help='Override a config value (repeatable)')
    parser.add_argument('--list', action='store_true', help='List available analyses')
    parser.add_argument('--quiet', action='store_true', help='Suppress output')
    parser.add_argument('--force-rebuild', action='store_true', help='Ignore cached data')

    args = parser.parse_args()

    if args.list:
        list_analyses()
        return

    run(analysis=args.analysis, config=args.config, overrides=args.overrides, verbose=not args.quiet,
        force_rebuild=args.force_rebuild)


if __name__ == "__main__":
    main()
