"""Provisioner strategy protocol and shared context."""

from __future__ import annotations

import webbrowser
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Protocol, runtime_checkable

import structlog

from pipewright.core.naming import UNIQUE_RESOURCE_NAME_SUFFIX
from pipewright.repositories.local_git import get_available_file_name
from pipewright.wizard.interfaces import DeploymentTargetClient, PromptSurface, Telemetry
from pipewright.wizard.models import AzureSession, QueuedPipeline, WizardInputs

logger = structlog.get_logger()


class WebAppAdminClient(DeploymentTargetClient, Protocol):
    """Deployment target calls used after the pipeline is queued."""

    async def update_scm_type(self, resource_id: str, scm_type: str = "VSTSRM") -> None:
        ...

    async def get_metadata(self, resource_id: str) -> dict[str, Any]:
        ...

    async def update_metadata(self, resource_id: str, metadata: dict[str, Any]) -> None:
        ...

    async def publish_deployment(
        self, resource_id: str, *, message: str, details_url: str, author: str = "pipewright"
    ) -> None:
        ...


@dataclass
class ProvisionerContext:
    """Collaborators shared by every provisioner."""

    prompts: PromptSurface
    telemetry: Telemetry
    # Azure DevOps client for a session; only used by strategies that need one
    devops_client_factory: Callable[[AzureSession], Any] | None = None
    suffix: str = UNIQUE_RESOURCE_NAME_SUFFIX
    open_browser: bool = True
    github_base_url: str = "https://github.com"


@runtime_checkable
class PipelineProvisioner(Protocol):
    """One pipeline host: prerequisites, pipeline file, queueing, post steps."""

    @property
    def pipeline_host(self) -> str:
        ...

    @property
    def requires_remote_project(self) -> bool:
        ...

    async def create_prerequisites(self, inputs: WizardInputs) -> None:
        ...

    def pipeline_file_path(self, inputs: WizardInputs) -> Path:
        ...

    async def create_and_queue_pipeline(self, inputs: WizardInputs) -> QueuedPipeline:
        ...

    async def post_pipeline_creation_steps(
        self, inputs: WizardInputs, target_client: WebAppAdminClient | None
    ) -> None:
        ...

    async def browse_queued_pipeline(self) -> None:
        ...


def first_free_path(directory: Path, file_name: str) -> Path:
    """``directory/file_name``, or a numbered variant if that file exists."""
    return directory / get_available_file_name(directory, file_name)


def open_url(context: ProvisionerContext, url: str) -> None:
    context.prompts.show_info(f"Pipeline: {url}")
    if context.open_browser:
        logger.debug("opening_browser", url=url)
        webbrowser.open(url)


def repository_root(inputs: WizardInputs) -> Path:
    """Git root of the source repository.

    ``local_path`` is the workspace folder, which may sit below the root;
    ``working_directory`` is its path relative to the root.
    """
    local_path = inputs.repository.local_path
    working_directory = Path(inputs.pipeline_parameters.working_directory or ".")
    depth = len([part for part in working_directory.parts if part != "."])
    return local_path.parents[depth - 1] if depth else local_path
