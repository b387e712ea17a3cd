"""
Preprocessing Module
====================

Data simulation, loading, joining and standardization.

Usage:
    from walkthrough.preprocessing import (
        default_parallel_process,
        load_student_dataset,
        safe_zscore,
        to_long,
    )
"""

from walkthrough.preprocessing.constants import (
    RESULTS_DIR,
    GROWTH_OUTPUT_DIR,
    TREES_OUTPUT_DIR,
    DATA_CACHE_DIR,
    STUDENT_CACHE_PATH,
    DEFAULT_SEED,
    DEFAULT_N_WAVES,
    DEFAULT_CONSTRUCTS,
    ID_COLUMN,
    BOOTSTRAP_FAILURE_WARN,
    STUDENT_OUTCOME,
    SCHOOL_KEY,
)

from walkthrough.preprocessing.standardization import (
    safe_zscore,
    standardize_columns,
)

from walkthrough.preprocessing.simulation import (
    GrowthPopulation,
    DEFAULT_POPULATIONS,
    DEFAULT_FACTOR_COV,
    simulate_parallel_process,
    populations_from_config,
    default_parallel_process,
    to_long,
    simulate_student_scores,
)

from walkthrough.preprocessing.loaders import (
    read_table,
    join_sources,
    load_student_dataset,
    get_cache_path,
)

__all__ = [
    # Constants
    'RESULTS_DIR',
    'GROWTH_OUTPUT_DIR',
    'TREES_OUTPUT_DIR',
    'DATA_CACHE_DIR',
    'STUDENT_CACHE_PATH',
    'DEFAULT_SEED',
    'DEFAULT_N_WAVES',
    'DEFAULT_CONSTRUCTS',
    'ID_COLUMN',
    'BOOTSTRAP_FAILURE_WARN',
    'STUDENT_OUTCOME',
    'SCHOOL_KEY',
    # Standardization
    'safe_zscore',
    'standardize_columns',
    # Simulation
    'GrowthPopulation',
    'DEFAULT_POPULATIONS',
    'DEFAULT_FACTOR_COV',
    'simulate_parallel_process',
    'populations_from_config',
    'default_parallel_process',
    'to_long',
    'simulate_student_scores',
    # Loaders
    'read_table',
    'join_sources',
    'load_student_dataset',
    'get_cache_path',
]
