"""
YAML defaults for the wizard.

The first file found wins: ``--config``, then ``.pipewright/config.yaml``
under the current directory, then the same path under the home directory.
Values from the file sit underneath environment settings (see
``WizardConfig.apply_to``) and only fill what the environment leaves unset.

Example file::

    session:
      user_id: jane@contoso.com
      tenant_id: 72f988bf-0000-0000-0000-2d7cd011db47
      subscriptions:
        - 00000000-0000-0000-0000-000000000000
    templates:
      extra_dir: ~/pipeline-templates
    pipeline:
      github_host: azure-pipelines
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

from pipewright.config.settings import Settings

logger = structlog.get_logger()

CONFIG_DIR_NAME = ".pipewright"
CONFIG_FILE_NAME = "config.yaml"


def _default_locations() -> list[Path]:
    relative = Path(CONFIG_DIR_NAME) / CONFIG_FILE_NAME
    return [Path.cwd() / relative, Path.home() / relative]


def get_config_path(explicit_path: str | Path | None = None) -> Path | None:
    """Return the config file to read, or None when there is none.

    An explicit path that does not exist is not replaced by a default one.
    """
    if explicit_path:
        candidates = [Path(explicit_path).expanduser()]
    else:
        candidates = _default_locations()
    return next((candidate for candidate in candidates if candidate.exists()), None)


@dataclass
class WizardConfig:
    """Values read from the YAML config file."""

    user_id: str | None = None
    tenant_id: str | None = None
    subscriptions: list[str] = field(default_factory=list)
    templates_extra_dir: str | None = None
    github_host: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WizardConfig:
        session = data.get("session") or {}
        templates = data.get("templates") or {}
        pipeline = data.get("pipeline") or {}
        return cls(
            user_id=session.get("user_id"),
            tenant_id=session.get("tenant_id"),
            subscriptions=[str(s) for s in session.get("subscriptions") or []],
            templates_extra_dir=templates.get("extra_dir"),
            github_host=pipeline.get("github_host"),
        )

    def apply_to(self, settings: Settings) -> Settings:
        """Return a copy of ``settings`` with file values filling unset fields.

        A field given through the environment, ``.env`` or the constructor
        keeps its value.
        """
        extra_dir = str(Path(self.templates_extra_dir).expanduser()) if self.templates_extra_dir else None
        from_file = {
            "azure_user_id": self.user_id,
            "azure_tenant_id": self.tenant_id,
            "templates_extra_dir": extra_dir,
            "github_pipeline_host": self.github_host,
        }
        updates = {
            name: value for name, value in from_file.items() if value and name not in settings.model_fields_set
        }
        return settings.model_copy(update=updates)


class ConfigLoader:
    """Reads one config file. A missing or broken file reads as defaults."""

    def __init__(self, config_path: Path | None = None):
        self.config_path = config_path or get_config_path()

    def load(self) -> WizardConfig:
        path = self.config_path
        if path is None or not path.exists():
            return WizardConfig()
        try:
            data = yaml.safe_load(path.read_text())
        except (OSError, yaml.YAMLError) as e:
            logger.warning("config_file_unreadable", path=str(path), error=str(e))
            return WizardConfig()
        if data is None:
            data = {}
        if not isinstance(data, dict):
            logger.warning("config_file_not_a_mapping", path=str(path))
            return WizardConfig()
        logger.debug("config_file_loaded", path=str(path))
        return WizardConfig.from_dict(data)


def load_config(path: str | Path | None = None) -> WizardConfig:
    return ConfigLoader(get_config_path(path)).load()
