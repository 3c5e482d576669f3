"""Find the source repository: workspace folder, branch, remote and host."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Sequence

import structlog

from pipewright.clients.azure import parse_subscription_id, validate_target_resource_type
from pipewright.core.errors import (
    NoRemoteConfiguredError,
    NoWorkspaceSelectedError,
    UserCancelledError,
)
from pipewright.repositories.hosts import (
    classify_remote_url,
    github_repository_id,
    parse_azure_repos_url,
)
from pipewright.telemetry import TelemetryKeys, TracePoints
from pipewright.wizard.interfaces import (
    DeploymentTargetClientFactory,
    GitContext,
    GitContextFactory,
    PromptSurface,
    SessionProvider,
    Telemetry,
)
from pipewright.wizard.models import (
    Choice,
    GitBranchDetails,
    GitRepositoryParameters,
    RepositoryProvider,
    SourceOption,
    TargetNode,
    WizardInputs,
    WorkspaceFolder,
)

logger = structlog.get_logger()

LAYER = "repository_context"


class RepositoryContextResolver:
    """
    Resolves ``inputs.source_repository`` and the working directory.

    When the wizard was started from a deployment target, the target is
    recorded first so target selection can be skipped later.
    """

    def __init__(
        self,
        *,
        prompts: PromptSurface,
        telemetry: Telemetry,
        sessions: SessionProvider,
        git_context_factory: GitContextFactory,
        target_client_factory: DeploymentTargetClientFactory,
        workspace_folders: Sequence[WorkspaceFolder] = (),
    ) -> None:
        self._prompts = prompts
        self._telemetry = telemetry
        self._sessions = sessions
        self._git_context_factory = git_context_factory
        self._target_client_factory = target_client_factory
        self._workspace_folders = list(workspace_folders)

    async def resolve(self, inputs: WizardInputs, target_node: TargetNode | None = None) -> GitContext:
        """Populate the source repository; returns the git context for later check-in."""
        if target_node is not None:
            await self._record_target(inputs, target_node)

        try:
            workspace_path = (await self._resolve_workspace()).resolve()
            git_context = await self._git_context_factory(workspace_path)
            branch_details = await self._branch_details(git_context)

            root = await git_context.root_directory()
            inputs.pipeline_parameters.working_directory = Path(
                os.path.relpath(workspace_path, root)
            ).as_posix()

            inputs.source_repository = await self._repository_parameters(
                git_context, branch_details, workspace_path
            )
        except UserCancelledError:
            raise
        except Exception as e:
            self._telemetry.record_failure(LAYER, TracePoints.GET_SOURCE_REPOSITORY_DETAILS_FAILED, e)
            raise

        self._telemetry.record_fact(
            TelemetryKeys.REPO_PROVIDER, str(inputs.source_repository.repository_provider)
        )
        logger.info(
            "source_repository_resolved",
            provider=str(inputs.source_repository.repository_provider),
            repository=inputs.source_repository.repository_name,
            branch=inputs.source_repository.branch,
            working_directory=inputs.pipeline_parameters.working_directory,
        )
        return git_context

    async def _record_target(self, inputs: WizardInputs, target_node: TargetNode) -> None:
        try:
            subscription_id = parse_subscription_id(target_node.resource_id)
            inputs.target_resource.subscription_id = subscription_id
            inputs.azure_session = self._sessions.session_for(subscription_id)

            client = self._target_client_factory(inputs.azure_session)
            resource = await client.get_resource(target_node.resource_id)
            validate_target_resource_type(resource)
        except Exception as e:
            self._telemetry.record_failure(LAYER, TracePoints.EXTRACT_TARGET_FROM_NODE_FAILED, e)
            raise

        inputs.target_resource.resource = resource
        logger.debug("target_resource_preselected", resource_id=resource.id)

    async def _resolve_workspace(self) -> Path:
        folders = self._workspace_folders
        if folders:
            self._telemetry.record_fact(TelemetryKeys.SOURCE_REPO_LOCATION, str(SourceOption.CURRENT_WORKSPACE))
            self._telemetry.record_fact(TelemetryKeys.MULTIPLE_WORKSPACE_FOLDERS, len(folders) > 1)
            if len(folders) == 1:
                return folders[0].path

            choice = await self._prompts.choose_one(
                "select_workspace_folder",
                [Choice(label=folder.name, data=folder, description=str(folder.path)) for folder in folders],
                "Select the folder to configure a pipeline for",
            )
            return choice.data.path

        self._telemetry.record_fact(TelemetryKeys.SOURCE_REPO_LOCATION, str(SourceOption.BROWSE_LOCAL_MACHINE))
        selected = await self._prompts.browse_folder("Select the folder to configure a pipeline for")
        if selected is None:
            raise NoWorkspaceSelectedError()
        return selected

    async def _branch_details(self, git_context: GitContext) -> GitBranchDetails:
        details = await git_context.branch_details()
        if details.remote_name:
            return details

        # No tracking branch: fall back to the repository's remotes
        remotes = await git_context.remotes()
        if not remotes:
            raise NoRemoteConfiguredError()
        if len(remotes) == 1:
            details.remote_name = remotes[0].name
        else:
            choice = await self._prompts.choose_one(
                "select_remote",
                [Choice(label=remote.name) for remote in remotes],
                "Select the remote to configure the pipeline for",
            )
            details.remote_name = choice.label
        return details

    async def _repository_parameters(
        self, git_context: GitContext, details: GitBranchDetails, workspace_path: Path
    ) -> GitRepositoryParameters:
        remote_name = details.remote_name or ""
        remote_url = await git_context.remote_url(remote_name)
        provider = classify_remote_url(remote_url)
        remote_url = remote_url or ""

        if provider == RepositoryProvider.AZURE_REPOS:
            repository_id = ""
            repository_name = parse_azure_repos_url(remote_url).repository_name
        else:
            repository_id = github_repository_id(remote_url)
            repository_name = repository_id

        return GitRepositoryParameters(
            repository_provider=provider,
            repository_id=repository_id,
            repository_name=repository_name,
            remote_name=remote_name,
            remote_url=remote_url,
            branch=details.branch,
            local_path=workspace_path,
        )
