"""
Modeling Walkthroughs
=====================

Two reproducible analysis suites that parameterize existing libraries:

- growth: parallel-process latent growth curve models (semopy)
- trees:  bagged trees, random forest and boosted trees (scikit-learn)

Usage:
    python -m walkthrough --list
    python -m walkthrough -s growth
    python -m walkthrough -s trees -a compare_models
"""

__version__ = "0.1.0"
