"""Pick the catalog templates that apply to a repository."""

from __future__ import annotations

from pathlib import Path

import structlog

from pipewright.templates.catalog import TemplateCatalog
from pipewright.wizard.models import AzureResource, PipelineTemplate, TargetResourceType, WebAppKind

logger = structlog.get_logger()

GENERIC_LANGUAGE = "generic"

# Marker file name -> language
LANGUAGE_MARKERS: dict[str, str] = {
    "package.json": "node",
    "requirements.txt": "python",
    "setup.py": "python",
    "pyproject.toml": "python",
}

LANGUAGE_GLOBS: dict[str, str] = {
    "*.csproj": "dotnet",
}

# Directories never scanned for language markers
IGNORED_DIRS = {".git", "node_modules", ".venv", "venv", "__pycache__", "bin", "obj"}
MAX_SCAN_DEPTH = 3


def _walk(root: Path, depth: int = 0):
    try:
        entries = sorted(root.iterdir())
    except OSError:
        return
    for entry in entries:
        if entry.is_dir():
            if entry.name not in IGNORED_DIRS and depth < MAX_SCAN_DEPTH:
                yield from _walk(entry, depth + 1)
        else:
            yield entry


def detect_languages(repository_path: Path) -> set[str]:
    """Languages detected from marker files under ``repository_path``.

    Always contains ``generic``.
    """
    languages = {GENERIC_LANGUAGE}
    for path in _walk(repository_path):
        language = LANGUAGE_MARKERS.get(path.name)
        if language is None:
            language = next(
                (lang for pattern, lang in LANGUAGE_GLOBS.items() if path.match(pattern)), None
            )
        if language:
            languages.add(language)
    return languages


def _target_kind(resource: AzureResource) -> str:
    return (resource.kind or WebAppKind.WINDOWS_APP).lower()


class RepositoryAnalyzer:
    """``TemplateAnalyzer`` over a ``TemplateCatalog``."""

    def __init__(self, catalog: TemplateCatalog) -> None:
        self._catalog = catalog

    def applicable_templates(
        self,
        repository_path: Path,
        pipeline_host: str,
        target_resource: AzureResource | None = None,
    ) -> list[PipelineTemplate]:
        languages = detect_languages(repository_path)
        candidates = [t for t in self._catalog.for_host(pipeline_host) if t.language in languages]

        if target_resource is not None:
            kind = _target_kind(target_resource)
            candidates = [
                t
                for t in candidates
                if t.target_type == TargetResourceType.WEB_APP
                and (t.target_kind or WebAppKind.WINDOWS_APP) == kind
            ]

        specific = [t for t in candidates if t.language != GENERIC_LANGUAGE]
        generic = [t for t in candidates if t.language == GENERIC_LANGUAGE]

        logger.debug(
            "templates_analyzed",
            path=str(repository_path),
            pipeline_host=pipeline_host,
            languages=sorted(languages),
            count=len(specific) + len(generic),
        )
        return specific + generic
