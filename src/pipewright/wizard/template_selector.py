"""Choose the pipeline template for a repository."""

from __future__ import annotations

import asyncio
from pathlib import Path

import structlog

from pipewright.core.errors import NoApplicableTemplateError
from pipewright.telemetry import TelemetryKeys
from pipewright.wizard.interfaces import PromptSurface, Telemetry, TemplateAnalyzer
from pipewright.wizard.models import AzureResource, Choice, PipelineTemplate

logger = structlog.get_logger()


class TemplateSelector:
    def __init__(self, *, analyzer: TemplateAnalyzer, prompts: PromptSurface, telemetry: Telemetry) -> None:
        self._analyzer = analyzer
        self._prompts = prompts
        self._telemetry = telemetry

    async def select(
        self,
        repository_path: Path,
        pipeline_host: str,
        target_resource: AzureResource | None = None,
    ) -> PipelineTemplate:
        """
        Ask the user to pick one of the templates that apply.

        Raises:
            NoApplicableTemplateError: nothing applies; no prompt is shown
            UserCancelledError: the prompt was dismissed
        """
        templates = await asyncio.to_thread(
            self._analyzer.applicable_templates, repository_path, pipeline_host, target_resource
        )
        if not templates:
            raise NoApplicableTemplateError(str(repository_path))

        self._telemetry.record_fact(TelemetryKeys.TEMPLATE_LIST_COUNT, len(templates))
        choice = await self._prompts.choose_one(
            "select_pipeline_template",
            [Choice(label=template.label, data=template) for template in templates],
            "Select a pipeline template",
        )
        template: PipelineTemplate = choice.data

        self._telemetry.record_fact(TelemetryKeys.CHOSEN_TEMPLATE, template.label)
        logger.info("pipeline_template_selected", template=template.label, pipeline_host=pipeline_host)
        return template
