"""
Configuration loading for the analysis suites.

Each suite ships a YAML file next to its module. Overrides are either a
nested dict (deep-merged) or a list of "dotted.key=value" strings whose
values are parsed as YAML scalars.

Usage:
    from walkthrough.utils.config import load_config

    cfg = load_config(CONFIG_PATH, overrides=["bootstrap.n_bootstrap=200"])
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

import yaml


Overrides = Union[Dict[str, Any], Iterable[str], None]


def deep_update(base: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``updates`` into a copy of ``base``."""
    result = copy.deepcopy(base)
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_update(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _dotlist_to_dict(items: Iterable[str]) -> Dict[str, Any]:
    nested: Dict[str, Any] = {}
    for item in items:
        if "=" not in item:
            raise ValueError(f"Override must look like key=value, got '{item}'")
        dotted, raw = item.split("=", 1)
        keys = [k for k in dotted.strip().split(".") if k]
        if not keys:
            raise ValueError(f"Empty key in override '{item}'")
        node = nested
        for key in keys[:-1]:
            node = node.setdefault(key, {})
        node[keys[-1]] = yaml.safe_load(raw) if raw.strip() else None
    return nested


def apply_overrides(cfg: Dict[str, Any], overrides: Overrides) -> Dict[str, Any]:
    """Return ``cfg`` with dict or dotted-string overrides applied."""
    if not overrides:
        return copy.deepcopy(cfg)
    if isinstance(overrides, dict):
        return deep_update(cfg, overrides)
    return deep_update(cfg, _dotlist_to_dict(overrides))


def load_config(path: Union[str, Path], overrides: Overrides = None) -> Dict[str, Any]:
    """Load analysis configuration from YAML."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        cfg: Optional[Dict[str, Any]] = yaml.safe_load(f)

    return apply_overrides(cfg or {}, overrides)
