"""
Suite Runner Module
===================

Provides programmatic access to both analysis suites.

Usage:
    from walkthrough.run import run_suite, list_suites

    # Run a specific suite
    run_suite('growth')

    # Run with specific analysis and config overrides
    run_suite('trees', analysis='fit_models', overrides=['folds.v=5'])

    # List available suites
    list_suites()
"""

from __future__ import annotations

import sys
if sys.platform.startswith("win") and hasattr(sys.stdout, "reconfigure"):
    sys.stdout.reconfigure(encoding='utf-8')

from typing import Any, Dict, List, Optional
import importlib

# Registry of available suites
SUITE_REGISTRY: Dict[str, str] = {
    'growth': 'walkthrough.growth.growth_suite',
    'trees': 'walkthrough.trees.tree_suite',
}

SUITE_DESCRIPTIONS: Dict[str, str] = {
    'growth': 'Parallel-process latent growth curve models (semopy)',
    'trees': 'Bagged trees, random forest and boosted trees (scikit-learn)',
}

# Recommended execution order
SUITE_ORDER: List[str] = ['growth', 'trees']


def run_suite(
    suite_name: str,
    analysis: Optional[str] = None,
    verbose: bool = True,
    force_rebuild: bool = False,
    **kwargs,
) -> Any:
    """
    Run a specific suite or analysis.

    Parameters
    ----------
    suite_name : str
        Suite identifier ('growth' or 'trees')
    analysis : str, optional
        Specific analysis within suite to run
    verbose : bool
        Print progress messages
    force_rebuild : bool
        Ignore cached data
    **kwargs
        Passed to the suite's run() (e.g. config, overrides)

    Returns
    -------
    Any
        Suite-specific return value (dict of results per analysis)
    """
    if suite_name not in SUITE_REGISTRY:
        available = ', '.join(sorted(SUITE_REGISTRY.keys()))
        raise ValueError(f"Unknown suite: {suite_name}. Available: {available}")

    module_path = SUITE_REGISTRY[suite_name]

    try:
        module = importlib.import_module(module_path)
    except ImportError as e:
        raise ImportError(f"Could not import suite {suite_name} from {module_path}: {e}") from e

    run_kwargs = {'verbose': verbose}

    if analysis:
        run_kwargs['analysis'] = analysis

    if force_rebuild:
        run_kwargs['force_rebuild'] = force_rebuild

    run_kwargs.update(kwargs)

    return module.run(**run_kwargs)


def run_all_suites(
    verbose: bool = True,
    force_rebuild: bool = False,
    skip_on_error: bool = True,
    **kwargs,
) -> Dict[str, Any]:
    """
    Run all suites in recommended order.

    Parameters
    ----------
    verbose : bool
        Print progress messages
    force_rebuild : bool
        Ignore cached data
    skip_on_error : bool
        Continue to next suite if one fails

    Returns
    -------
    dict
        Results from each suite (None if failed)
    """
    results = {}

    for suite_name in SUITE_ORDER:
        if verbose:
            print()
            print("=" * 80)
            print(f"RUNNING: {suite_name}")
            print("=" * 80)

        try:
            results[suite_name] = run_suite(
                suite_name,
                verbose=verbose,
                force_rebuild=force_rebuild,
                **kwargs,
            )
            if verbose:
                print(f"[OK] {suite_name} completed")
        except Exception as e:
            print(f"[ERROR] {suite_name}: {e}")
            results[suite_name] = None
            if not skip_on_error:
                raise

    return results


def list_suites(show_analyses: bool = True) -> None:
    """
    Print available suites and their analyses.

    Parameters
    ----------
    show_analyses : bool
        If True, also list analyses within each suite
    """
    print("\n" + "=" * 60)
    print("AVAILABLE ANALYSIS SUITES")
    print("=" * 60)

    for name in SUITE_ORDER:
        print(f"\n  {name}: {SUITE_DESCRIPTIONS.get(name, '')}")

        if show_analyses:
            try:
                module = importlib.import_module(SUITE_REGISTRY[name])
            except ImportError as e:
                print(f"    (module not available: {e})")
                continue
            for analysis_name, spec in module.ANALYSES.items():
                print(f"    - {analysis_name}: {spec.description}")

    print("\n" + "=" * 60)
    print("\nUsage examples:")
    print("  python -m walkthrough -s growth")
    print("  python -m walkthrough -s trees -a compare_models --set folds.v=5")
    print("  python -m walkthrough --all")
    print()
