"""
Trees Module
============

Bagged trees, random forest and boosted trees with a shared preprocessing
recipe, resampled evaluation and grid tuning.

Usage:
    from walkthrough.trees import tree_suite
    tree_suite.run()

    from walkthrough.trees import build_recipe, build_workflow, fit_resamples
"""

from walkthrough.trees.recipe import (
    ColumnRoles,
    infer_column_roles,
    build_recipe,
    prep_recipe,
)

from walkthrough.trees.models import (
    ModelSpec,
    MODEL_TYPES,
    build_estimator,
    build_workflow,
    pipeline_grid,
    specs_from_config,
    impurity_importance,
)

from walkthrough.trees.resampling import (
    Fold,
    LastFitResult,
    METRICS,
    METRIC_DIRECTION,
    initial_split,
    vfold_cv,
    fit_resamples,
    collect_metrics,
    tune_grid,
    show_best,
    select_best,
    last_fit,
)

__all__ = [
    # Recipe
    'ColumnRoles',
    'infer_column_roles',
    'build_recipe',
    'prep_recipe',
    # Models
    'ModelSpec',
    'MODEL_TYPES',
    'build_estimator',
    'build_workflow',
    'pipeline_grid',
    'specs_from_config',
    'impurity_importance',
    # Resampling
    'Fold',
    'LastFitResult',
    'METRICS',
    'METRIC_DIRECTION',
    'initial_split',
    'vfold_cv',
    'fit_resamples',
    'collect_metrics',
    'tune_grid',
    'show_best',
    'select_best',
    'last_fit',
]
