"""
Data loading utilities for the tree-model walkthrough.

Reads the student score table and the school-level demographic and
enrollment tables from flat files or spreadsheets (local paths or URLs),
joins them on the school key and caches the joined frame.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union
from urllib.parse import urlparse

import pandas as pd

from .constants import (
    DEFAULT_SEED,
    FLAT_FILE_SUFFIXES,
    SCHOOL_KEY,
    SPREADSHEET_SUFFIXES,
    STUDENT_CACHE_PATH,
)
from .simulation import simulate_student_scores


SourceLike = Union[str, Path, Dict[str, Any]]

# Keyword arguments forwarded to pandas readers
_READER_OPTIONS = ("usecols", "dtype", "skiprows", "na_values", "nrows")


def _source_suffix(path: str) -> str:
    parsed = urlparse(path)
    target = parsed.path if parsed.scheme in ("http", "https", "ftp") else path
    return Path(target).suffix.lower()


def read_table(source: SourceLike) -> pd.DataFrame:
    """
    Read one flat file or spreadsheet.

    Parameters
    ----------
    source : str, Path or dict
        A path/URL, or a dict with 'path' and optional 'sheet', 'sep',
        'rename', 'usecols', 'dtype', 'skiprows', 'na_values', 'nrows'.

    Returns
    -------
    pd.DataFrame
    """
    spec: Dict[str, Any] = dict(source) if isinstance(source, dict) else {"path": source}
    if not spec.get("path"):
        raise ValueError("Source needs a 'path'")

    path = str(spec["path"])
    suffix = _source_suffix(path)
    options = {k: spec[k] for k in _READER_OPTIONS if spec.get(k) is not None}

    if suffix in FLAT_FILE_SUFFIXES:
        sep = spec.get("sep", "\t" if suffix == ".tsv" else ",")
        df = pd.read_csv(path, sep=sep, **options)
    elif suffix in SPREADSHEET_SUFFIXES:
        df = pd.read_excel(path, sheet_name=spec.get("sheet", 0), **options)
    else:
        raise ValueError(
            f"Unsupported file type '{suffix}' for {path}. "
            f"Expected one of {sorted(FLAT_FILE_SUFFIXES | SPREADSHEET_SUFFIXES)}"
        )

    if spec.get("rename"):
        df = df.rename(columns=spec["rename"])
    return df


def _resolve_keys(key: Union[str, Dict[str, str], None]) -> Tuple[str, str]:
    if key is None:
        return SCHOOL_KEY, SCHOOL_KEY
    if isinstance(key, dict):
        return key["left"], key["right"]
    return key, key


def _log_merge(left: pd.DataFrame, right: pd.DataFrame, name: str, left_key: str, right_key: str,
               verbose: bool = True) -> pd.DataFrame:
    """Left join with audit logging to catch silent row changes."""
    if left_key not in left.columns:
        raise KeyError(f"Join key '{left_key}' not found in student table")
    if right_key not in right.columns:
        raise KeyError(f"Join key '{right_key}' not found in {name} table")

    deduped = right.drop_duplicates(subset=[right_key], keep="last")
    if verbose and len(deduped) < len(right):
        print(f"  [WARNING] {name}: dropped {len(right) - len(deduped)} duplicate '{right_key}' rows")

    before = len(left)
    merged = left.merge(deduped, left_on=left_key, right_on=right_key, how="left",
                        suffixes=("", f"_{name}"))
    if right_key != left_key:
        merged = merged.drop(columns=[right_key])
    if verbose:
        print(f"  Merge students + {name}: {before} -> {len(merged)} rows (left join on '{left_key}')")
    return merged


def join_sources(
    scores: pd.DataFrame,
    demographics: Optional[pd.DataFrame] = None,
    enrollment: Optional[pd.DataFrame] = None,
    keys: Optional[Dict[str, Any]] = None,
    verbose: bool = True,
) -> pd.DataFrame:
    """Join school-level tables onto the student table."""
    keys = keys or {}
    joined = scores
    for name, table in (("demographics", demographics), ("enrollment", enrollment)):
        if table is None:
            continue
        left_key, right_key = _resolve_keys(keys.get(name))
        joined = _log_merge(joined, table, name, left_key, right_key, verbose=verbose)
    return joined


def _sample(df: pd.DataFrame, cfg: Dict[str, Any]) -> pd.DataFrame:
    seed = cfg.get("seed", DEFAULT_SEED)
    if cfg.get("sample_n"):
        n = min(int(cfg["sample_n"]), len(df))
        return df.sample(n=n, random_state=seed).reset_index(drop=True)
    if cfg.get("sample_frac"):
        return df.sample(frac=float(cfg["sample_frac"]), random_state=seed).reset_index(drop=True)
    return df


def _cache_key(cfg: Dict[str, Any]) -> str:
    """Hash of the settings that determine the joined table (sampling excluded)."""
    params = {
        "sources": cfg.get("sources") or {},
        "synthetic": cfg.get("synthetic") or {},
        "join_keys": cfg.get("join_keys") or {},
        "seed": cfg.get("seed", DEFAULT_SEED),
    }
    param_str = json.dumps(params, sort_keys=True, default=str)
    return hashlib.md5(param_str.encode()).hexdigest()[:8]


def get_cache_path(cfg: Optional[Dict[str, Any]] = None) -> Path:
    """Cache file for the joined table built from ``cfg``."""
    cfg = cfg or {}
    base = Path(cfg.get("cache_path") or STUDENT_CACHE_PATH)
    return base.with_name(f"{base.stem}_{_cache_key(cfg)}{base.suffix or '.parquet'}")


def load_student_dataset(
    cfg: Optional[Dict[str, Any]] = None,
    use_cache: bool = True,
    force_rebuild: bool = False,
    verbose: bool = True,
) -> pd.DataFrame:
    """
    Build (or load from cache) the joined student dataset.

    When no 'scores' source is configured, synthetic tables from
    simulate_student_scores are used. The full joined table is cached under
    a name keyed by the source settings; 'sample_n' / 'sample_frac' are
    applied after loading, so they never change the cache.

    Parameters
    ----------
    cfg : dict, optional
        The 'data' block of the tree suite config.
    use_cache : bool
        If True, load cached parquet when available.
    force_rebuild : bool
        If True, ignore cache and rebuild from sources.
    """
    cfg = cfg or {}
    cache_path = get_cache_path(cfg)

    if use_cache and not force_rebuild:
        csv_fallback = cache_path.with_suffix(".csv")
        if cache_path.exists():
            if verbose:
                print(f"[DATA] Loading cached student dataset: {cache_path}")
            return _sample(pd.read_parquet(cache_path), cfg)
        if csv_fallback.exists():
            if verbose:
                print(f"[DATA] Loading cached student dataset: {csv_fallback}")
            return _sample(pd.read_csv(csv_fallback), cfg)

    sources = cfg.get("sources") or {}
    if sources.get("scores"):
        if verbose:
            print("[DATA] Reading configured sources...")
        scores = read_table(sources["scores"])
        demographics = read_table(sources["demographics"]) if sources.get("demographics") else None
        enrollment = read_table(sources["enrollment"]) if sources.get("enrollment") else None
    else:
        synthetic = cfg.get("synthetic") or {}
        if verbose:
            print("[DATA] No sources configured; simulating student tables...")
        tables = simulate_student_scores(
            n_students=int(synthetic.get("n_students", 2000)),
            n_schools=int(synthetic.get("n_schools", 40)),
            seed=int(synthetic.get("seed", cfg.get("seed", DEFAULT_SEED))),
        )
        scores, demographics, enrollment = tables["scores"], tables["demographics"], tables["enrollment"]

    joined = join_sources(scores, demographics, enrollment, keys=cfg.get("join_keys"), verbose=verbose)

    cache_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        joined.to_parquet(cache_path, index=False)
    except (ImportError, ValueError):
        # Parquet engine might be missing; fall back to CSV
        fallback = cache_path.with_suffix(".csv")
        joined.to_csv(fallback, index=False)
        cache_path = fallback

    if verbose:
        print(f"  Student dataset built: N={len(joined)}, columns={joined.shape[1]} (cached at {cache_path})")

    return _sample(joined, cfg)
