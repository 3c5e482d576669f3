"""Resolve the Azure DevOps organization and project that will host the pipeline."""

from __future__ import annotations

import dataclasses

import structlog

from pipewright.core.errors import UserCancelledError
from pipewright.core.naming import generate_devops_organization_name, user_name_local_part
from pipewright.repositories.hosts import parse_azure_repos_url
from pipewright.telemetry import TelemetryKeys, TracePoints
from pipewright.wizard.interfaces import (
    PromptSurface,
    RemoteProjectClient,
    RemoteProjectClientFactory,
    Telemetry,
)
from pipewright.wizard.models import Choice, RepositoryProvider, WizardInputs

logger = structlog.get_logger()

LAYER = "remote_project"


class RemoteProjectResolver:
    """
    Fills ``organization_name``, ``project`` and ``is_new_organization``.

    Azure Repos sources already live in a project, which is looked up from
    the remote URL. Other sources pick an existing organization and project,
    or get a generated name for a new organization when the user has none.
    """

    def __init__(
        self,
        *,
        prompts: PromptSurface,
        telemetry: Telemetry,
        client_factory: RemoteProjectClientFactory,
    ) -> None:
        self._prompts = prompts
        self._telemetry = telemetry
        self._client_factory = client_factory

    async def resolve(self, inputs: WizardInputs) -> None:
        if inputs.azure_session is None:
            raise RuntimeError("Azure session has not been resolved yet")
        client = self._client_factory(inputs.azure_session)

        try:
            if inputs.repository.repository_provider == RepositoryProvider.AZURE_REPOS:
                await self._resolve_native(client, inputs)
            else:
                await self._resolve_linked(client, inputs)
        except UserCancelledError:
            raise
        except Exception as e:
            self._telemetry.record_failure(LAYER, TracePoints.GET_AZURE_DEVOPS_DETAILS_FAILED, e)
            raise

        logger.info(
            "remote_project_resolved",
            organization=inputs.organization_name,
            project=inputs.project.name if inputs.project else None,
            new_organization=inputs.is_new_organization,
        )

    async def _resolve_native(self, client: RemoteProjectClient, inputs: WizardInputs) -> None:
        repository = inputs.repository
        details = parse_azure_repos_url(repository.remote_url)
        inputs.organization_name = details.organization_name

        remote = await client.get_repository(
            details.organization_name, details.project_name, repository.repository_name
        )
        inputs.source_repository = dataclasses.replace(repository, repository_id=remote.id)
        inputs.project = remote.project

    async def _resolve_linked(self, client: RemoteProjectClient, inputs: WizardInputs) -> None:
        inputs.is_new_organization = False
        organizations = await client.list_organizations()

        if organizations:
            self._telemetry.record_fact(TelemetryKeys.ORGANIZATION_LIST_COUNT, len(organizations))
            organization = await self._prompts.choose_one(
                "select_organization",
                [Choice(label=o.account_name, data=o) for o in organizations],
                "Select an Azure DevOps organization",
            )
            inputs.organization_name = organization.label

            project = await self._prompts.choose_one(
                "select_project",
                self._project_choices(client, inputs.organization_name),
                "Select an Azure DevOps project",
            )
            inputs.project = project.data
            return

        self._telemetry.record_fact(TelemetryKeys.NEW_ORGANIZATION, True)
        inputs.is_new_organization = True

        user_id = inputs.azure_session.user_id if inputs.azure_session else ""
        candidate = generate_devops_organization_name(
            user_name_local_part(user_id), inputs.repository.repository_name
        )
        problem = await client.validate_organization_name(candidate)
        if problem is None:
            inputs.organization_name = candidate
            return

        logger.debug("generated_organization_name_rejected", name=candidate, reason=problem)
        inputs.organization_name = await self._prompts.text_input(
            "enter_organization_name",
            "Enter a name for the new Azure DevOps organization",
            validate=client.validate_organization_name,
        )

    async def _project_choices(self, client: RemoteProjectClient, organization_name: str) -> list[Choice]:
        projects = await client.list_projects(organization_name)
        self._telemetry.record_fact(TelemetryKeys.PROJECT_LIST_COUNT, len(projects))
        return [Choice(label=p.name, data=p) for p in projects]
