"""
Shared constants for data preparation and suite outputs.
"""

from pathlib import Path

# Directory paths
RESULTS_DIR = Path("results")
GROWTH_OUTPUT_DIR = RESULTS_DIR / "growth"
TREES_OUTPUT_DIR = RESULTS_DIR / "trees"
DATA_CACHE_DIR = RESULTS_DIR / "data_cache"

# Cache path for the joined student dataset
STUDENT_CACHE_PATH = DATA_CACHE_DIR / "student_dataset.parquet"

# Reproducibility
DEFAULT_SEED = 42

# Longitudinal defaults
DEFAULT_N_WAVES = 4
DEFAULT_CONSTRUCTS = ("x", "y")
ID_COLUMN = "id"

# Bootstrap replicates allowed to fail before warning (fraction)
BOOTSTRAP_FAILURE_WARN = 0.10

# Student dataset conventions
STUDENT_OUTCOME = "score"
SCHOOL_KEY = "school_id"
STUDENT_ID_COLUMNS = ["id"]
STUDENT_DATE_COLUMNS = ["tst_dt"]

# File types understood by read_table
FLAT_FILE_SUFFIXES = {".csv", ".txt", ".tsv"}
SPREADSHEET_SUFFIXES = {".xlsx", ".xls"}
