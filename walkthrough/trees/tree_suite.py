"""
Tree Model Suite
================

Bagged trees, random forest and boosted trees on the student score data.

Analyses (run in this order):
- prepare_data: load/join the student tables, train/test split
- recipe: fit the preprocessing recipe on the training set
- fit_models: resampled metrics of the three model types
- tune: grid search for models with a tuning grid
- compare_models: rank default and tuned models by the primary metric
- final_fit: fit the best model on the training set, evaluate on the test set
- variable_importance: impurity and permutation importances of the final model

Usage:
    python -m walkthrough.trees.tree_suite                    # Run all
    python -m walkthrough.trees.tree_suite --analysis fit_models
    python -m walkthrough.trees.tree_suite --set folds.v=5 --set data.sample_n=500
    python -m walkthrough.trees.tree_suite --list

    from walkthrough.trees import tree_suite
    tree_suite.run('compare_models')
    tree_suite.run()  # All analyses
"""

from __future__ import annotations

import sys
if sys.platform.startswith("win") and hasattr(sys.stdout, "reconfigure"):
    sys.stdout.reconfigure(encoding='utf-8')

import argparse
import hashlib
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

import numpy as np
import pandas as pd
from sklearn.inspection import permutation_importance
from sklearn.pipeline import Pipeline

from walkthrough.preprocessing import (
    DEFAULT_SEED,
    STUDENT_OUTCOME,
    TREES_OUTPUT_DIR,
    load_student_dataset,
)
from walkthrough.preprocessing.constants import STUDENT_DATE_COLUMNS, STUDENT_ID_COLUMNS
from walkthrough.utils.config import apply_overrides, load_config
from walkthrough.trees.models import (
    ModelSpec,
    build_workflow,
    impurity_importance,
    pipeline_grid,
    specs_from_config,
)
from walkthrough.trees.recipe import ColumnRoles, build_recipe, infer_column_roles, prep_recipe
from walkthrough.trees.resampling import (
    DEFAULT_METRICS,
    METRIC_DIRECTION,
    collect_metrics,
    fit_resamples,
    initial_split,
    last_fit,
    select_best,
    show_best,
    tune_grid,
    vfold_cv,
)


DEFAULT_CONFIG_PATH = Path(__file__).with_name("models.yml")

# Primary metric -> sklearn scorer for permutation importance
PERMUTATION_SCORERS = {
    "rmse": "neg_root_mean_squared_error",
    "rsq": "r2",
    "rsq_trad": "r2",
    "mae": "neg_mean_absolute_error",
    "accuracy": "accuracy",
    "roc_auc": "roc_auc_ovr",
    "mn_log_loss": "neg_log_loss",
}

# Config keys that do not change resampled results
_RESULT_KEY_EXCLUDED = ("output_dir", "importance", "n_jobs")
_DATA_KEY_EXCLUDED = ("use_cache", "cache_path")


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
# SHARED SETUP
# =============================================================================

@dataclass
class TreeContext:
    """Data, split, folds and recipe shared by the analyses."""
    outcome: str
    mode: str
    data: pd.DataFrame
    train: pd.DataFrame
    test: pd.DataFrame
    roles: ColumnRoles
    recipe: Any
    folds: list
    metrics: List[str]
    primary_metric: str
    specs: List[ModelSpec]
    seed: int
    n_jobs: Optional[int]


def _strata(block: Dict[str, Any], outcome: str) -> Optional[str]:
    if not block.get("stratify", True):
        return None
    return block.get("strata") or outcome


def load_modeling_frame(cfg: Dict[str, Any], verbose: bool = True) -> pd.DataFrame:
    """Joined student data restricted to predictors and the outcome."""
    data_cfg = dict(cfg.get("data") or {})
    data_cfg.setdefault("seed", cfg.get("seed", DEFAULT_SEED))
    outcome = cfg.get("outcome", STUDENT_OUTCOME)

    df = load_student_dataset(data_cfg, use_cache=bool(data_cfg.get("use_cache", True)), verbose=verbose)
    if outcome not in df.columns:
        raise KeyError(f"Outcome '{outcome}' not in dataset columns: {list(df.columns)}")

    id_columns = data_cfg.get("id_columns", STUDENT_ID_COLUMNS) or []
    drop = [c for c in list(id_columns) + (data_cfg.get("drop_columns") or [])
            if c != outcome and c in df.columns]
    before = len(df)
    df = df.drop(columns=drop).dropna(subset=[outcome]).reset_index(drop=True)
    if verbose and len(df) < before:
        print(f"  [DATA] Dropped {before - len(df)} rows with missing '{outcome}'")
    return df


def build_context(cfg: Dict[str, Any], verbose: bool = False) -> TreeContext:
    """Everything an analysis needs, derived deterministically from the config."""
    seed = int(cfg.get("seed", DEFAULT_SEED))
    mode = cfg.get("mode", "regression")
    outcome = cfg.get("outcome", STUDENT_OUTCOME)
    data_cfg = cfg.get("data") or {}

    data = load_modeling_frame(cfg, verbose=verbose)

    split_cfg = cfg.get("split") or {}
    train, test = initial_split(
        data,
        prop=float(split_cfg.get("prop", 0.75)),
        strata=_strata(split_cfg, outcome),
        breaks=int(split_cfg.get("breaks", 4)),
        seed=seed,
    )

    fold_cfg = cfg.get("folds") or {}
    folds = vfold_cv(
        train,
        v=int(fold_cfg.get("v", 10)),
        repeats=int(fold_cfg.get("repeats", 1)),
        strata=_strata(fold_cfg, outcome),
        breaks=int(fold_cfg.get("breaks", 4)),
        seed=seed,
    )

    date_columns = data_cfg.get("date_columns", STUDENT_DATE_COLUMNS)
    roles = infer_column_roles(train, outcome, date_columns=date_columns)
    recipe_cfg = cfg.get("recipe") or {}
    recipe = build_recipe(
        roles,
        impute=bool(recipe_cfg.get("impute", True)),
        min_category_frequency=recipe_cfg.get("min_category_frequency"),
    )

    metrics = list(cfg.get("metrics") or DEFAULT_METRICS[mode])
    primary = cfg.get("primary_metric") or metrics[0]
    if primary not in metrics:
        raise ValueError(f"Primary metric '{primary}' is not among the computed metrics {metrics}")

    return TreeContext(
        outcome=outcome,
        mode=mode,
        data=data,
        train=train,
        test=test,
        roles=roles,
        recipe=recipe,
        folds=folds,
        metrics=metrics,
        primary_metric=primary,
        specs=specs_from_config(cfg),
        seed=seed,
        n_jobs=cfg.get("n_jobs"),
    )


def _workflow(ctx: TreeContext, spec: ModelSpec, params: Optional[Dict[str, Any]] = None) -> Pipeline:
    wf = build_workflow(spec, ctx.recipe, seed=ctx.seed, n_jobs=ctx.n_jobs)
    if params:
        wf.set_params(**params)
    return wf


def _spec(ctx: TreeContext, name: str) -> ModelSpec:
    for spec in ctx.specs:
        if spec.name == name:
            return spec
    raise KeyError(f"Model '{name}' not found in config")


def results_key(cfg: Dict[str, Any]) -> str:
    """Hash of the settings that determine resampled results (mode, outcome, data, split, models, metrics)."""
    params = {k: v for k, v in cfg.items() if k not in _RESULT_KEY_EXCLUDED}
    params["data"] = {k: v for k, v in (cfg.get("data") or {}).items() if k not in _DATA_KEY_EXCLUDED}
    param_str = json.dumps(params, sort_keys=True, default=str)
    return hashlib.md5(param_str.encode()).hexdigest()[:8]


def _read_output(path: Path) -> pd.DataFrame:
    return pd.read_csv(path, encoding='utf-8-sig', dtype={"run_key": str})


def _load_or_run(name: str, filename: str, cfg: Dict[str, Any], output_dir: Path, verbose: bool) -> pd.DataFrame:
    """
    Read an upstream analysis output.

    The analysis is (re)run when the file is missing or was written under
    different settings (its ``run_key`` column differs from results_key(cfg)).
    """
    path = output_dir / filename
    key = results_key(cfg)
    if path.exists():
        table = _read_output(path)
        if "run_key" in table.columns and (table["run_key"] == key).all():
            return table
        if verbose:
            print(f"  [DATA] {filename} was produced with other settings; re-running '{name}'")
    elif verbose:
        print(f"  [DATA] {filename} not found; running '{name}' first")
    ANALYSES[name].function(cfg, output_dir, verbose=verbose)
    return _read_output(path)


# =============================================================================
# ANALYSES
# =============================================================================

@register_analysis(
    name="prepare_data",
    description="Load and join the student tables; train/test split",
    outputs=["data_summary.csv", "split_summary.csv"],
)
def analyze_prepare_data(cfg: Dict[str, Any], output_dir: Path, verbose: bool = True) -> Dict[str, pd.DataFrame]:
    """Describe the modeling frame and the split."""
    ctx = build_context(cfg, verbose=verbose)

    role_of = {c: "date" for c in ctx.roles.date}
    role_of.update({c: "numeric" for c in ctx.roles.numeric})
    role_of.update({c: "categorical" for c in ctx.roles.categorical})
    role_of[ctx.outcome] = "outcome"

    summary = pd.DataFrame({
        "column": ctx.data.columns,
        "dtype": [str(t) for t in ctx.data.dtypes],
        "role": [role_of.get(c, "unused") for c in ctx.data.columns],
        "n_missing": ctx.data.isna().sum().to_numpy(),
        "n_unique": ctx.data.nunique().to_numpy(),
    })

    split_rows = []
    for part, frame in (("train", ctx.train), ("test", ctx.test)):
        y = frame[ctx.outcome]
        row = {"split": part, "n": len(frame)}
        if ctx.mode == "regression":
            row.update({"outcome_mean": y.mean(), "outcome_sd": y.std(ddof=1)})
        else:
            row.update({f"share_{k}": v for k, v in y.value_counts(normalize=True).sort_index().items()})
        split_rows.append(row)
    split_summary = pd.DataFrame(split_rows)

    summary.to_csv(output_dir / "data_summary.csv", index=False, encoding='utf-8-sig')
    split_summary.to_csv(output_dir / "split_summary.csv", index=False, encoding='utf-8-sig')

    if verbose:
        print(f"\n  Modeling frame: N={len(ctx.data)}, outcome='{ctx.outcome}' ({ctx.mode})")
        print(f"  Predictors: {len(ctx.roles.numeric)} numeric, {len(ctx.roles.categorical)} categorical, "
              f"{len(ctx.roles.date)} date")
        print(f"  Split: train={len(ctx.train)}, test={len(ctx.test)}; {len(ctx.folds)} resamples")

    return {"summary": summary, "split": split_summary}


@register_analysis(
    name="recipe",
    description="Fit the preprocessing recipe on the training set",
    outputs=["recipe_features.csv"],
)
def analyze_recipe(cfg: Dict[str, Any], output_dir: Path, verbose: bool = True) -> Dict[str, pd.DataFrame]:
    """Bake the training set and describe the resulting features."""
    ctx = build_context(cfg)
    X = ctx.train.drop(columns=[ctx.outcome])
    _, baked = prep_recipe(ctx.recipe, X)

    features = pd.DataFrame({
        "feature": baked.columns,
        "mean": baked.mean().to_numpy(),
        "sd": baked.std(ddof=1).to_numpy(),
        "n_missing": baked.isna().sum().to_numpy(),
    })
    features.to_csv(output_dir / "recipe_features.csv", index=False, encoding='utf-8-sig')

    if verbose:
        print(f"\n  Baked training set: {baked.shape[0]} rows x {baked.shape[1]} features "
              f"(from {len(ctx.roles.predictors)} predictor columns)")

    return {"features": features}


@register_analysis(
    name="fit_models",
    description="Resampled metrics for bagged trees, random forest and boosted trees",
    outputs=["resample_folds.csv", "resample_metrics.csv"],
)
def analyze_fit_models(cfg: Dict[str, Any], output_dir: Path, verbose: bool = True) -> Dict[str, pd.DataFrame]:
    """fit_resamples for every configured model with its fixed parameters."""
    ctx = build_context(cfg)

    frames = []
    for spec in ctx.specs:
        if verbose:
            print(f"\n[FIT] {spec.name} ({spec.model_type}, {spec.mode}) on {len(ctx.folds)} resamples")
        per_fold = fit_resamples(_workflow(ctx, spec), ctx.train, ctx.outcome, ctx.folds, ctx.metrics)
        per_fold.insert(0, "model", spec.name)
        frames.append(per_fold)

    per_fold = pd.concat(frames, ignore_index=True)
    metrics = collect_metrics(per_fold)
    timing = per_fold.groupby("model", sort=False)["fit_seconds"].mean().rename("mean_fit_seconds")
    metrics = metrics.merge(timing, left_on="model", right_index=True, how="left")
    metrics["run_key"] = results_key(cfg)

    per_fold.to_csv(output_dir / "resample_folds.csv", index=False, encoding='utf-8-sig')
    metrics.to_csv(output_dir / "resample_metrics.csv", index=False, encoding='utf-8-sig')

    if verbose:
        print("\nResampled metrics:")
        for _, row in metrics.iterrows():
            print(f"  {row['model']:<16} {row['metric']:<12} {row['mean']:.4f} (SE {row['std_err']:.4f}, n={row['n']})")
        n_failed = per_fold.loc[per_fold["error"].notna(), ["model", "id"]].drop_duplicates()
        if len(n_failed):
            print(f"  [WARNING] {len(n_failed)} resample fits failed")

    return {"folds": per_fold, "metrics": metrics}


@register_analysis(
    name="tune",
    description="Grid search over resamples for models with a tuning grid",
    outputs=["tune_results.csv", "tune_best.csv"],
)
def analyze_tune(cfg: Dict[str, Any], output_dir: Path, verbose: bool = True) -> Dict[str, pd.DataFrame]:
    """tune_grid per tunable model; best configuration by the primary metric."""
    ctx = build_context(cfg)
    metric = ctx.primary_metric

    result_frames = []
    best_rows = []
    for spec in ctx.specs:
        if not spec.tunable:
            if verbose:
                print(f"  [SKIP] {spec.name}: no tuning grid")
            continue
        grid = pipeline_grid(spec)
        if verbose:
            print(f"\n[FIT] Tuning {spec.name}: {grid}")
        tuned = tune_grid(_workflow(ctx, spec), ctx.train, ctx.outcome, ctx.folds, grid, ctx.metrics,
                          verbose=verbose)

        summary = collect_metrics(tuned)
        summary.insert(0, "model", spec.name)
        result_frames.append(summary)

        best = show_best(tuned, metric, n=1).iloc[0]
        params = select_best(tuned, metric)
        best_rows.append({
            "model": spec.name,
            "config": best["config"],
            "metric": metric,
            "mean": best["mean"],
            "std_err": best["std_err"],
            "n": best["n"],
            "params": json.dumps(params),
        })
        if verbose:
            print(f"  Best {spec.name}: {params} -> {metric}={best['mean']:.4f}")

    results = pd.concat(result_frames, ignore_index=True) if result_frames else pd.DataFrame()
    best_table = pd.DataFrame(best_rows, columns=["model", "config", "metric", "mean", "std_err", "n", "params"])
    best_table["run_key"] = results_key(cfg)

    results.to_csv(output_dir / "tune_results.csv", index=False, encoding='utf-8-sig')
    best_table.to_csv(output_dir / "tune_best.csv", index=False, encoding='utf-8-sig')

    return {"results": results, "best": best_table}


@register_analysis(
    name="compare_models",
    description="Rank default and tuned models by the primary metric",
    outputs=["model_comparison.csv"],
)
def analyze_compare_models(cfg: Dict[str, Any], output_dir: Path, verbose: bool = True) -> Dict[str, pd.DataFrame]:
    """One row per model/parameter source, ranked by the primary metric."""
    ctx = build_context(cfg)
    metric = ctx.primary_metric

    resampled = _load_or_run("fit_models", "resample_metrics.csv", cfg, output_dir, verbose)
    rows = []
    for _, row in resampled[resampled["metric"] == metric].iterrows():
        rows.append({"model": row["model"], "source": "default", "params": json.dumps({}),
                     "metric": metric, "mean": row["mean"], "std_err": row["std_err"], "n": row["n"]})

    if any(spec.tunable for spec in ctx.specs):
        tuned = _load_or_run("tune", "tune_best.csv", cfg, output_dir, verbose)
        for _, row in tuned[tuned["metric"] == metric].iterrows():
            rows.append({"model": row["model"], "source": "tuned", "params": row["params"],
                         "metric": row["metric"], "mean": row["mean"], "std_err": row["std_err"], "n": row["n"]})

    comparison = pd.DataFrame(rows)
    if comparison.empty:
        raise ValueError(f"No resampled '{metric}' results to compare")

    ascending = METRIC_DIRECTION[metric] == "minimize"
    comparison = comparison.sort_values("mean", ascending=ascending, na_position="last").reset_index(drop=True)
    comparison["rank"] = np.arange(1, len(comparison) + 1)
    comparison["mode"] = ctx.mode
    comparison["outcome"] = ctx.outcome
    comparison["run_key"] = results_key(cfg)
    comparison.to_csv(output_dir / "model_comparison.csv", index=False, encoding='utf-8-sig')

    if verbose:
        print("\n" + "-" * 60)
        print(f"MODEL COMPARISON ({metric}, {'lower' if ascending else 'higher'} is better)")
        print("-" * 60)
        for _, row in comparison.iterrows():
            print(f"  {row['rank']}. {row['model']} [{row['source']}]: {row['mean']:.4f} (SE {row['std_err']:.4f})")
        best = comparison.iloc[0]
        print(f"\nBEST: {best['model']} ({best['source']})")

    return {"comparison": comparison}


def _final_workflow(ctx: TreeContext, cfg: Dict[str, Any], output_dir: Path, verbose: bool):
    comparison = _load_or_run("compare_models", "model_comparison.csv", cfg, output_dir, verbose)
    best = comparison.iloc[0]
    spec = _spec(ctx, best["model"])
    params = json.loads(best["params"]) if isinstance(best["params"], str) else {}
    return spec, params, _workflow(ctx, spec, params)


@register_analysis(
    name="final_fit",
    description="Fit the best model on the training set and evaluate on the test set",
    outputs=["final_metrics.csv", "final_predictions.csv"],
)
def analyze_final_fit(cfg: Dict[str, Any], output_dir: Path, verbose: bool = True) -> Dict[str, pd.DataFrame]:
    """last_fit of the top-ranked model."""
    ctx = build_context(cfg)
    spec, params, workflow = _final_workflow(ctx, cfg, output_dir, verbose)

    result = last_fit(workflow, ctx.train, ctx.test, ctx.outcome, ctx.metrics)
    metrics = result.metrics.assign(model=spec.name, params=json.dumps(params))

    metrics.to_csv(output_dir / "final_metrics.csv", index=False, encoding='utf-8-sig')
    result.predictions.to_csv(output_dir / "final_predictions.csv", index=False, encoding='utf-8-sig')

    if verbose:
        print(f"\n  Final model: {spec.name} {params or '(default parameters)'}")
        for _, row in result.metrics.iterrows():
            print(f"  Test {row['metric']}: {row['estimate']:.4f}")

    return {"metrics": metrics, "predictions": result.predictions}


@register_analysis(
    name="variable_importance",
    description="Impurity and permutation importances of the final model",
    outputs=["variable_importance.csv", "permutation_importance.csv"],
)
def analyze_variable_importance(cfg: Dict[str, Any], output_dir: Path, verbose: bool = True) -> Dict[str, pd.DataFrame]:
    """Impurity importances by baked feature; permutation importances by raw column on the test set."""
    ctx = build_context(cfg)
    imp_cfg = cfg.get("importance") or {}
    spec, _, workflow = _final_workflow(ctx, cfg, output_dir, verbose)

    X_train = ctx.train.drop(columns=[ctx.outcome])
    fitted = workflow.fit(X_train, ctx.train[ctx.outcome])
    impurity = impurity_importance(fitted).assign(model=spec.name)

    permutation = pd.DataFrame(columns=["feature", "importance_mean", "importance_std", "model"])
    if imp_cfg.get("permutation", True):
        X_test = ctx.test.drop(columns=[ctx.outcome])
        scoring = PERMUTATION_SCORERS[ctx.primary_metric]
        if scoring == "roc_auc_ovr" and ctx.test[ctx.outcome].nunique() == 2:
            scoring = "roc_auc"
        perm = permutation_importance(
            fitted,
            X_test,
            ctx.test[ctx.outcome],
            scoring=scoring,
            n_repeats=int(imp_cfg.get("n_repeats", 5)),
            random_state=ctx.seed,
            n_jobs=ctx.n_jobs,
        )
        permutation = pd.DataFrame({
            "feature": X_test.columns,
            "importance_mean": perm.importances_mean,
            "importance_std": perm.importances_std,
        }).sort_values("importance_mean", ascending=False).reset_index(drop=True)
        permutation["model"] = spec.name

    impurity.to_csv(output_dir / "variable_importance.csv", index=False, encoding='utf-8-sig')
    permutation.to_csv(output_dir / "permutation_importance.csv", index=False, encoding='utf-8-sig')

    if verbose:
        top_n = int(imp_cfg.get("top_n", 20))
        print(f"\n  Top {top_n} features ({spec.name}, impurity):")
        for _, row in impurity.head(top_n).iterrows():
            print(f"    {row['feature']:<30} {row['importance_scaled']:.3f}")

    return {"impurity": impurity, "permutation": permutation}


# =============================================================================
# RUNNER
# =============================================================================

def list_analyses() -> None:
    """List all available analyses."""
    print("\nAvailable Tree Model Analyses:")
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
    Run tree model analyses.

    Args:
        analysis: Specific analysis to run, or None for all
        config: Config path or dict (defaults to models.yml)
        overrides: Dict or "key.sub=value" strings applied on top of config
        verbose: Print output
        force_rebuild: Ignore cached data and rebuild it

    Returns:
        Dictionary of results per analysis
    """
    cfg = resolve_config(config, overrides)
    if force_rebuild:
        cfg = apply_overrides(cfg, {"data": {"use_cache": False}})
    output_dir = Path(cfg.get("output_dir") or TREES_OUTPUT_DIR)
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
        print(f"\n[DONE] Tree model outputs in {output_dir}")

    return results


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Tree Model Suite")
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
