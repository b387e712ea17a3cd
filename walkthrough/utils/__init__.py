# walkthrough.utils package
"""
Shared Utility Modules
======================

- config: YAML configuration loading with dotted-key overrides
"""

from walkthrough.utils.config import (
    load_config,
    apply_overrides,
    deep_update,
)

__all__ = [
    'load_config',
    'apply_overrides',
    'deep_update',
]
