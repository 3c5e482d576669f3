"""
Pipeline template catalog.

Templates are listed in an ``index.yaml`` keyed by pipeline host::

    azure-pipelines:
      - label: Node.js with npm to Windows Web App
        path: azure_pipelines/nodejs_webapp.yml.j2
        language: node
        target_type: webapp
        target_kind: app

The built-in index ships with the package. An extra directory with its own
``index.yaml`` may add templates; an extra entry with the same host and label
replaces the built-in one.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog
import yaml

from pipewright.wizard.models import PipelineTemplate, TargetResourceType, WebAppKind

logger = structlog.get_logger()

BUILTIN_DIR = Path(__file__).parent / "builtin"
INDEX_FILE_NAME = "index.yaml"


def _parse_entry(host: str, entry: dict[str, Any], base_dir: Path) -> PipelineTemplate:
    for required in ("label", "path"):
        if required not in entry:
            raise ValueError(f"Missing required field '{required}' in template entry for {host}")

    target_kind = entry.get("target_kind")
    return PipelineTemplate(
        label=entry["label"],
        path=base_dir / entry["path"],
        pipeline_host=host,
        language=entry.get("language", "generic"),
        target_type=TargetResourceType(entry.get("target_type", TargetResourceType.WEB_APP)),
        target_kind=WebAppKind(target_kind) if target_kind else None,
    )


def load_index(directory: Path) -> list[PipelineTemplate]:
    """Load the templates listed in ``directory/index.yaml``.

    Raises:
        FileNotFoundError: the index does not exist
        ValueError: the index is malformed
    """
    index_path = directory / INDEX_FILE_NAME
    if not index_path.exists():
        raise FileNotFoundError(f"Template index not found: {index_path}")

    with open(index_path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Template index must be a mapping of pipeline host to templates: {index_path}")

    templates: list[PipelineTemplate] = []
    for host, entries in data.items():
        for entry in entries or []:
            templates.append(_parse_entry(str(host), entry, directory))
    return templates


class TemplateCatalog:
    """All known pipeline templates, in catalog order."""

    def __init__(self, templates: list[PipelineTemplate]) -> None:
        self._templates = list(templates)

    @classmethod
    def load(cls, extra_dir: str | Path | None = None) -> TemplateCatalog:
        templates = load_index(BUILTIN_DIR)
        if extra_dir:
            templates = _merge(templates, _load_extra(Path(extra_dir).expanduser()))
        return cls(templates)

    def for_host(self, pipeline_host: str) -> list[PipelineTemplate]:
        return [t for t in self._templates if t.pipeline_host == pipeline_host]

    def hosts(self) -> list[str]:
        return sorted({t.pipeline_host for t in self._templates})

    def __iter__(self):
        return iter(self._templates)

    def __len__(self) -> int:
        return len(self._templates)


def _load_extra(directory: Path) -> list[PipelineTemplate]:
    try:
        templates = load_index(directory)
    except (OSError, ValueError, yaml.YAMLError) as e:
        # A broken extra directory must not hide the built-in templates
        logger.warning("failed_to_load_extra_templates", path=str(directory), error=str(e))
        return []
    logger.debug("loaded_extra_templates", path=str(directory), count=len(templates))
    return templates


def _merge(builtin: list[PipelineTemplate], extra: list[PipelineTemplate]) -> list[PipelineTemplate]:
    overrides = {(t.pipeline_host, t.label): t for t in extra}
    merged = [overrides.pop((t.pipeline_host, t.label), t) for t in builtin]
    for template in extra:
        if (template.pipeline_host, template.label) in overrides:
            merged.append(template)
    return merged
