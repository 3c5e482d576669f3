"""Azure Pipelines provisioner."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import structlog

from pipewright.core.naming import generate_devops_project_name, service_connection_name
from pipewright.provisioners.base import (
    ProvisionerContext,
    WebAppAdminClient,
    first_free_path,
    open_url,
)
from pipewright.telemetry import TelemetryKeys, TracePoints
from pipewright.templates.renderer import AZURE_SERVICE_CONNECTION, GITHUB_SERVICE_CONNECTION
from pipewright.wizard.models import (
    DevOpsProject,
    PipelineHost,
    QueuedPipeline,
    RepositoryProvider,
    TargetResourceType,
    WizardInputs,
)

logger = structlog.get_logger()

LAYER = "azure_pipelines"
PIPELINE_FILE_NAME = "azure-pipelines.yml"


async def _require_token(value: str) -> str | None:
    if not value:
        return "A GitHub personal access token is required to connect Azure Pipelines to GitHub."
    return None


class AzurePipelinesProvisioner:
    """Creates the pipeline in an Azure DevOps project and queues the first build."""

    pipeline_host = PipelineHost.AZURE_PIPELINES
    requires_remote_project = True

    def __init__(self, context: ProvisionerContext) -> None:
        if context.devops_client_factory is None:
            raise ValueError("AzurePipelinesProvisioner needs an Azure DevOps client factory")
        self._context = context
        self._client_factory = context.devops_client_factory
        self._queued: QueuedPipeline | None = None

    def _client(self, inputs: WizardInputs) -> Any:
        if inputs.azure_session is None:
            raise RuntimeError("Azure session has not been resolved yet")
        return self._client_factory(inputs.azure_session)

    @staticmethod
    def _project(inputs: WizardInputs) -> DevOpsProject:
        if inputs.project is None:
            raise RuntimeError("Azure DevOps project has not been resolved yet")
        return inputs.project

    async def create_prerequisites(self, inputs: WizardInputs) -> None:
        client = self._client(inputs)
        repository = inputs.repository

        if inputs.is_new_organization:
            try:
                await self._create_organization_and_project(client, inputs)
            except Exception as e:
                self._context.telemetry.record_failure(
                    LAYER, TracePoints.CREATE_NEW_ORGANIZATION_AND_PROJECT_FAILURE, e
                )
                raise

        project = self._project(inputs)
        try:
            if repository.repository_provider == RepositoryProvider.GITHUB:
                inputs.github_pat = await self._context.prompts.secret_input(
                    "github_pat",
                    "Enter a GitHub personal access token (PAT) with repo scope",
                    validate=_require_token,
                )
                inputs.service_connection_ids[GITHUB_SERVICE_CONNECTION] = (
                    await client.create_github_service_connection(
                        inputs.organization_name,
                        project.id,
                        service_connection_name(repository.repository_name, self._context.suffix),
                        inputs.github_pat,
                    )
                )

            resource = inputs.target_resource.resource
            if inputs.template.target_type != TargetResourceType.NONE and resource is not None:
                subscription_id = inputs.target_resource.subscription_id
                inputs.service_connection_ids[AZURE_SERVICE_CONNECTION] = (
                    await client.create_azure_rm_service_connection(
                        inputs.organization_name,
                        project.id,
                        service_connection_name(resource.name, self._context.suffix),
                        subscription_id=subscription_id,
                        subscription_name=subscription_id,
                        tenant_id=inputs.azure_session.tenant_id if inputs.azure_session else None,
                    )
                )
        except Exception as e:
            self._context.telemetry.record_failure(LAYER, TracePoints.SERVICE_CONNECTION_FAILURE, e)
            raise

    async def _create_organization_and_project(self, client: Any, inputs: WizardInputs) -> None:
        organization = inputs.organization_name
        project_name = generate_devops_project_name(inputs.repository.repository_name)

        self._context.prompts.show_info(f"Creating Azure DevOps organization {organization}")
        await client.create_organization(organization)
        await client.create_project(organization, project_name)
        project_id = await client.get_project_id_from_name(organization, project_name)
        inputs.project = DevOpsProject(id=project_id, name=project_name)
        logger.info("devops_project_ready", organization=organization, project=project_name)

    def pipeline_file_path(self, inputs: WizardInputs) -> Path:
        return first_free_path(inputs.repository.local_path, PIPELINE_FILE_NAME)

    def _repository_payload(self, inputs: WizardInputs) -> dict[str, Any]:
        repository = inputs.repository
        if repository.repository_provider == RepositoryProvider.GITHUB:
            return {
                "id": repository.repository_id,
                "name": repository.repository_id,
                "type": "GitHub",
                "url": repository.remote_url,
                "defaultBranch": repository.branch,
                "properties": {
                    "connectedServiceId": inputs.service_connection_ids.get(GITHUB_SERVICE_CONNECTION, ""),
                },
            }
        return {
            "id": repository.repository_id,
            "name": repository.repository_name,
            "type": "TfsGit",
            "url": repository.remote_url,
            "defaultBranch": repository.branch,
        }

    async def create_and_queue_pipeline(self, inputs: WizardInputs) -> QueuedPipeline:
        client = self._client(inputs)
        project = self._project(inputs)
        repository = inputs.repository
        pipeline_name = service_connection_name(repository.repository_name, self._context.suffix)

        try:
            definition = await client.create_build_definition(
                inputs.organization_name,
                project.id,
                name=pipeline_name,
                yaml_path=inputs.pipeline_parameters.pipeline_file_name,
                repository=self._repository_payload(inputs),
            )
            build = await client.queue_build(
                inputs.organization_name,
                project.id,
                definition_id=definition["id"],
                source_branch=f"refs/heads/{repository.branch}",
                source_version=repository.commit_id,
            )
        except Exception as e:
            self._context.telemetry.record_failure(
                LAYER, TracePoints.CREATE_AND_QUEUE_PIPELINE_FAILED, e
            )
            raise

        self._queued = QueuedPipeline(
            url=client.build_url(inputs.organization_name, project.id, build["id"]),
            id=str(build["id"]),
            definition_id=str(definition["id"]),
        )
        inputs.queued_pipeline = self._queued
        logger.info(
            "pipeline_queued",
            pipeline_host=str(self.pipeline_host),
            definition_id=self._queued.definition_id,
            build_id=self._queued.id,
        )
        return self._queued

    async def post_pipeline_creation_steps(
        self, inputs: WizardInputs, target_client: WebAppAdminClient | None
    ) -> None:
        """Link the web app to the pipeline. Failures are recorded, never raised."""
        resource = inputs.target_resource.resource
        queued = inputs.queued_pipeline
        if (
            target_client is None
            or resource is None
            or queued is None
            or inputs.template.target_type == TargetResourceType.NONE
        ):
            return

        client = self._client(inputs)
        project = self._project(inputs)
        definition_url = client.build_definition_url(
            inputs.organization_name, project.id, queued.definition_id or ""
        )

        results = await asyncio.gather(
            target_client.update_scm_type(resource.id, "VSTSRM"),
            self._update_metadata(client, target_client, inputs, definition_url),
            target_client.publish_deployment(
                resource.id,
                message=f"Pipeline configured: {definition_url}",
                details_url=queued.url,
            ),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, BaseException)]
        self._context.telemetry.record_fact(TelemetryKeys.UPDATED_WEB_APP_METADATA, not failures)
        if failures:
            self._context.telemetry.record_failure(
                LAYER, TracePoints.POST_DEPLOYMENT_ACTION_FAILED, failures[0]
            )

    async def _update_metadata(
        self,
        client: Any,
        target_client: WebAppAdminClient,
        inputs: WizardInputs,
        definition_url: str,
    ) -> None:
        resource = inputs.target_resource.resource
        queued = inputs.queued_pipeline
        if resource is None or queued is None:
            return

        organizations = await client.list_organizations()
        account_id = next(
            (o.account_id for o in organizations if o.account_name == inputs.organization_name), ""
        )

        metadata = await target_client.get_metadata(resource.id)
        properties = metadata.setdefault("properties", {}) or {}
        properties.update(
            {
                "VSTSRM_ProjectId": self._project(inputs).id,
                "VSTSRM_AccountId": account_id,
                "VSTSRM_BuildDefinitionId": queued.definition_id or "",
                "VSTSRM_BuildDefinitionWebAccessUrl": definition_url,
                "VSTSRM_ConfiguredCDEndPoint": "",
                "VSTSRM_ReleaseDefinitionId": "",
            }
        )
        metadata["properties"] = properties
        await target_client.update_metadata(resource.id, metadata)

    async def browse_queued_pipeline(self) -> None:
        if self._queued is None:
            return
        open_url(self._context, self._queued.url)
