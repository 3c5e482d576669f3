"""GitHub Actions provisioner.

The workflow file itself is the pipeline: pushing it starts the first run,
so there is nothing to create on a remote service.
"""

from __future__ import annotations

import re
from pathlib import Path

import structlog

from pipewright.provisioners.base import (
    ProvisionerContext,
    WebAppAdminClient,
    first_free_path,
    open_url,
    repository_root,
)
from pipewright.repositories.hosts import github_repository_id
from pipewright.telemetry import TelemetryKeys, TracePoints
from pipewright.wizard.models import (
    PipelineHost,
    QueuedPipeline,
    RepositoryProvider,
    TargetResourceType,
    WizardInputs,
)

logger = structlog.get_logger()

LAYER = "github_actions"
WORKFLOWS_DIR = Path(".github") / "workflows"
PUBLISH_PROFILE_SECRET = "AZURE_WEBAPP_PUBLISH_PROFILE"

_UNSAFE_FILE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def workflow_file_name(inputs: WizardInputs) -> str:
    """``<web app name>.yml``, or ``<repository name>.yml`` without a target."""
    resource = inputs.target_resource.resource
    base = resource.name if resource is not None else inputs.repository.repository_name.split("/")[-1]
    return f"{_UNSAFE_FILE_CHARS.sub('-', base) or 'pipeline'}.yml"


class GitHubActionsProvisioner:
    """Commits a workflow file; GitHub runs it on push."""

    pipeline_host = PipelineHost.GITHUB_ACTIONS
    requires_remote_project = False

    def __init__(self, context: ProvisionerContext) -> None:
        self._context = context
        self._queued: QueuedPipeline | None = None

    async def create_prerequisites(self, inputs: WizardInputs) -> None:
        if inputs.repository.repository_provider != RepositoryProvider.GITHUB:
            raise ValueError("GitHub Actions can only run pipelines for GitHub repositories")

        resource = inputs.target_resource.resource
        if inputs.template.target_type != TargetResourceType.NONE and resource is not None:
            self._context.prompts.show_info(
                f"The workflow deploys with the repository secret {PUBLISH_PROFILE_SECRET}. "
                f"Add the publish profile of {resource.name} under Settings > Secrets "
                "before the first run."
            )

    def pipeline_file_path(self, inputs: WizardInputs) -> Path:
        directory = repository_root(inputs) / WORKFLOWS_DIR
        return first_free_path(directory, workflow_file_name(inputs))

    async def create_and_queue_pipeline(self, inputs: WizardInputs) -> QueuedPipeline:
        repository = inputs.repository
        try:
            repository_id = repository.repository_id or github_repository_id(repository.remote_url)
        except Exception as e:
            self._context.telemetry.record_failure(
                LAYER, TracePoints.CREATE_AND_QUEUE_PIPELINE_FAILED, e
            )
            raise

        base_url = self._context.github_base_url.rstrip("/")
        self._queued = QueuedPipeline(url=f"{base_url}/{repository_id}/actions")
        inputs.queued_pipeline = self._queued
        logger.info(
            "pipeline_queued",
            pipeline_host=str(self.pipeline_host),
            repository=repository_id,
            commit_id=repository.commit_id,
        )
        return self._queued

    async def post_pipeline_creation_steps(
        self, inputs: WizardInputs, target_client: WebAppAdminClient | None
    ) -> None:
        resource = inputs.target_resource.resource
        if (
            target_client is None
            or resource is None
            or inputs.template.target_type == TargetResourceType.NONE
        ):
            return

        try:
            await target_client.update_scm_type(resource.id, "GitHubAction")
        except Exception as e:
            self._context.telemetry.record_fact(TelemetryKeys.UPDATED_WEB_APP_METADATA, False)
            self._context.telemetry.record_failure(
                LAYER, TracePoints.POST_DEPLOYMENT_ACTION_FAILED, e
            )
            return
        self._context.telemetry.record_fact(TelemetryKeys.UPDATED_WEB_APP_METADATA, True)

    async def browse_queued_pipeline(self) -> None:
        if self._queued is None:
            return
        open_url(self._context, self._queued.url)
