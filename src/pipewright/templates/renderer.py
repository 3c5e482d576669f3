"""Render pipeline templates with Jinja2."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import jinja2
import structlog

from pipewright.wizard.models import WizardInputs

logger = structlog.get_logger()

_RESOURCE_GROUP_IN_ID = re.compile(r"/resourceGroups/(?P<group>[^/]+)", re.IGNORECASE)

AZURE_SERVICE_CONNECTION = "azure"
GITHUB_SERVICE_CONNECTION = "github"


def template_context(inputs: WizardInputs) -> dict[str, Any]:
    """Names available to every pipeline template.

    ``inputs`` is always present; the rest are shortcuts that are empty
    strings when not applicable, so templates can test them with ``if``.
    """
    repository = inputs.source_repository
    resource = inputs.target_resource.resource
    resource_group = ""
    if resource is not None:
        match = _RESOURCE_GROUP_IN_ID.search(resource.id)
        resource_group = match.group("group") if match else ""

    return {
        "inputs": inputs,
        "repository_name": repository.repository_name if repository else "",
        "branch": repository.branch if repository else "",
        "working_directory": inputs.pipeline_parameters.working_directory or ".",
        "subscription_id": inputs.target_resource.subscription_id,
        "web_app_name": resource.name if resource else "",
        "web_app_kind": (resource.kind or "") if resource else "",
        "resource_group": resource_group,
        "azure_service_connection": inputs.service_connection_ids.get(AZURE_SERVICE_CONNECTION, ""),
        "github_service_connection": inputs.service_connection_ids.get(GITHUB_SERVICE_CONNECTION, ""),
    }


class JinjaTemplateRenderer:
    """``TemplateRenderer`` using a strict Jinja2 environment.

    Referencing an unknown name is an error rather than an empty string.
    """

    def __init__(self) -> None:
        self._env = jinja2.Environment(
            autoescape=False,
            undefined=jinja2.StrictUndefined,
            keep_trailing_newline=True,
        )

    def render(self, template_path: Path, inputs: WizardInputs) -> str:
        source = template_path.read_text(encoding="utf-8")
        rendered = self._env.from_string(source).render(**template_context(inputs))
        logger.debug("template_rendered", template=str(template_path), length=len(rendered))
        return rendered
