"""Pipeline template catalog, repository analysis and rendering."""

from pipewright.templates.analyzer import RepositoryAnalyzer, detect_languages
from pipewright.templates.catalog import TemplateCatalog, load_index
from pipewright.templates.renderer import JinjaTemplateRenderer, template_context

__all__ = [
    "JinjaTemplateRenderer",
    "RepositoryAnalyzer",
    "TemplateCatalog",
    "detect_languages",
    "load_index",
    "template_context",
]
