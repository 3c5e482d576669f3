"""
Configure-pipeline workflow.

Stages run strictly in order; the first unhandled error or cancellation
ends the run. Nothing created before a failure is rolled back.

    gather_inputs -> create_prerequisites -> check_in
        -> create_and_queue_pipeline -> post_pipeline_creation
        -> display_created_pipeline
"""

from __future__ import annotations

from typing import Callable, Sequence

import structlog

from pipewright.core.errors import AzureLoginRequiredError, UserCancelledError, format_error_message
from pipewright.provisioners.base import PipelineProvisioner, ProvisionerContext, WebAppAdminClient
from pipewright.provisioners.registry import select_provisioner
from pipewright.telemetry import Result, TelemetryKeys, WizardTelemetry
from pipewright.wizard.check_in import CheckInCoordinator
from pipewright.wizard.interfaces import (
    DeploymentTargetClientFactory,
    GitContext,
    GitContextFactory,
    PromptSurface,
    RemoteProjectClientFactory,
    SessionProvider,
    TemplateAnalyzer,
    TemplateRenderer,
)
from pipewright.wizard.models import (
    PipelineHost,
    RepositoryProvider,
    TargetNode,
    WizardInputs,
    WorkspaceFolder,
)
from pipewright.wizard.remote_project import RemoteProjectResolver
from pipewright.wizard.repository_context import RepositoryContextResolver
from pipewright.wizard.target_resource import TargetResourceResolver
from pipewright.wizard.template_selector import TemplateSelector

logger = structlog.get_logger()

ProvisionerFactory = Callable[[RepositoryProvider], PipelineProvisioner]


class Orchestrator:
    """Sequences the wizard stages over one ``WizardInputs``."""

    def __init__(
        self,
        *,
        prompts: PromptSurface,
        telemetry: WizardTelemetry,
        sessions: SessionProvider,
        git_context_factory: GitContextFactory,
        analyzer: TemplateAnalyzer,
        renderer: TemplateRenderer,
        target_client_factory: DeploymentTargetClientFactory,
        remote_project_client_factory: RemoteProjectClientFactory,
        workspace_folders: Sequence[WorkspaceFolder] = (),
        github_host: str = PipelineHost.GITHUB_ACTIONS,
        provisioner_factory: ProvisionerFactory | None = None,
        open_browser: bool = True,
        github_base_url: str = "https://github.com",
    ) -> None:
        self.prompts = prompts
        self.telemetry = telemetry
        self.sessions = sessions
        self._target_client_factory = target_client_factory

        self._repository_context = RepositoryContextResolver(
            prompts=prompts,
            telemetry=telemetry,
            sessions=sessions,
            git_context_factory=git_context_factory,
            target_client_factory=target_client_factory,
            workspace_folders=workspace_folders,
        )
        self._template_selector = TemplateSelector(analyzer=analyzer, prompts=prompts, telemetry=telemetry)
        self._target_resource = TargetResourceResolver(
            prompts=prompts,
            telemetry=telemetry,
            sessions=sessions,
            target_client_factory=target_client_factory,
        )
        self._remote_project = RemoteProjectResolver(
            prompts=prompts,
            telemetry=telemetry,
            client_factory=remote_project_client_factory,
        )
        self._check_in = CheckInCoordinator(prompts=prompts, telemetry=telemetry, renderer=renderer)

        self._provisioner_context = ProvisionerContext(
            prompts=prompts,
            telemetry=telemetry,
            devops_client_factory=remote_project_client_factory,
            open_browser=open_browser,
            github_base_url=github_base_url,
        )
        self._github_host = github_host
        self._provisioner_factory = provisioner_factory or self._select_provisioner

    def _select_provisioner(self, provider: RepositoryProvider) -> PipelineProvisioner:
        return select_provisioner(provider, self._provisioner_context, self._github_host)

    async def configure(self, target_node: TargetNode | None = None) -> WizardInputs:
        inputs = WizardInputs()

        self.telemetry.mark_step("gather_inputs")
        git_context, provisioner = await self._gather_inputs(inputs, target_node)

        self.telemetry.mark_step("create_prerequisites")
        await provisioner.create_prerequisites(inputs)

        self.telemetry.mark_step("check_in")
        await self._check_in.check_in(inputs, git_context, provisioner)

        self.telemetry.mark_step("create_and_queue_pipeline")
        await provisioner.create_and_queue_pipeline(inputs)

        self.telemetry.mark_step("post_pipeline_creation")
        await provisioner.post_pipeline_creation_steps(inputs, self._target_client(inputs))

        self.telemetry.mark_step("display_created_pipeline")
        await provisioner.browse_queued_pipeline()
        return inputs

    async def _gather_inputs(
        self, inputs: WizardInputs, target_node: TargetNode | None
    ) -> tuple[GitContext, PipelineProvisioner]:
        git_context = await self._repository_context.resolve(inputs, target_node)
        repository = inputs.repository

        provisioner = self._provisioner_factory(repository.repository_provider)
        self.telemetry.record_fact(TelemetryKeys.PIPELINE_HOST, str(provisioner.pipeline_host))

        inputs.pipeline_parameters.pipeline_template = await self._template_selector.select(
            repository.local_path,
            provisioner.pipeline_host,
            inputs.target_resource.resource,
        )

        if inputs.target_resource.resource is None:
            await self._target_resource.resolve(inputs)

        if provisioner.requires_remote_project:
            await self._remote_project.resolve(inputs)

        return git_context, provisioner

    def _target_client(self, inputs: WizardInputs) -> WebAppAdminClient | None:
        if inputs.azure_session is None or inputs.target_resource.resource is None:
            return None
        return self._target_client_factory(inputs.azure_session)  # type: ignore[return-value]


async def configure_pipeline(
    orchestrator: Orchestrator, target_node: TargetNode | None = None
) -> WizardInputs:
    """
    Run the wizard once.

    Cancellation is re-raised silently and recorded as canceled; other
    errors are shown, recorded as failed and re-raised.
    """
    telemetry = orchestrator.telemetry
    async with telemetry.timed("configure_pipeline"):
        try:
            if not await orchestrator.sessions.wait_for_login():
                telemetry.record_fact(TelemetryKeys.AZURE_LOGIN_REQUIRED, True)
                raise AzureLoginRequiredError()
            inputs = await orchestrator.configure(target_node)
        except UserCancelledError as e:
            telemetry.set_result(Result.CANCELED, e)
            raise
        except Exception as e:
            orchestrator.prompts.show_error(format_error_message(e))
            telemetry.set_result(Result.FAILED, e)
            raise

        telemetry.set_result(Result.SUCCEEDED)
        return inputs
