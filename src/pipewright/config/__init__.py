"""
pipewright configuration.

- environment settings (`PIPEWRIGHT_*`, .env) via pydantic-settings
- Per-project and user-level YAML config files layered on top
"""

from pipewright.config.loader import (
    ConfigLoader,
    WizardConfig,
    get_config_path,
    load_config,
)
from pipewright.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "ConfigLoader",
    "WizardConfig",
    "get_config_path",
    "load_config",
]
