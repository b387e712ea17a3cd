"""
Growth Module
=============

Latent growth curve models for one or more longitudinal constructs.

Usage:
    from walkthrough.growth import growth_suite
    growth_suite.run()

    from walkthrough.growth import GrowthSpec, construct, fit_growth_model
"""

from walkthrough.growth.specs import (
    ConstructSpec,
    GrowthSpec,
    construct,
    factor_names,
    build_growth_syntax,
    spec_from_config,
    with_fixed_variance,
)

from walkthrough.growth._utils import (
    GrowthFit,
    BootstrapResult,
    fit_growth_model,
    latent_mean_starts,
    estimated_means,
    extract_fit_indices,
    compare_fits,
    likelihood_ratio_test,
    check_admissibility,
    growth_factor_table,
    latent_names,
    predict_factor_scores,
    bootstrap_parameters,
    individual_trajectories,
)

__all__ = [
    # Specifications
    'ConstructSpec',
    'GrowthSpec',
    'construct',
    'factor_names',
    'build_growth_syntax',
    'spec_from_config',
    'with_fixed_variance',
    # Fitting
    'GrowthFit',
    'BootstrapResult',
    'fit_growth_model',
    'latent_mean_starts',
    'estimated_means',
    'extract_fit_indices',
    'compare_fits',
    'likelihood_ratio_test',
    'check_admissibility',
    'growth_factor_table',
    'latent_names',
    'predict_factor_scores',
    'bootstrap_parameters',
    'individual_trajectories',
]
