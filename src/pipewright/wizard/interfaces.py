"""Contracts the wizard consumes from its collaborators."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Awaitable, Callable, Protocol, Sequence, Union

from pipewright.wizard.models import (
    AzureResource,
    AzureSession,
    Choice,
    DevOpsOrganization,
    DevOpsProject,
    DevOpsRepository,
    GitBranchDetails,
    GitRemote,
    GitRepositoryParameters,
    PipelineTemplate,
    Subscription,
    WizardInputs,
)

# A prompt may be shown while its options are still being fetched.
OptionSource = Union[Sequence[Choice], Awaitable[Sequence[Choice]]]
Validator = Callable[[str], Awaitable[str | None]]


class PromptSurface(Protocol):
    """Interactive prompts. Every dismissal raises ``UserCancelledError``."""

    async def choose_one(self, step: str, options: OptionSource, placeholder: str) -> Choice:
        ...

    async def text_input(
        self, step: str, placeholder: str, validate: Validator | None = None
    ) -> str:
        ...

    async def secret_input(
        self, step: str, placeholder: str, validate: Validator | None = None
    ) -> str:
        ...

    async def confirm(self, message: str, affirmative: str, negative: str) -> bool:
        ...

    async def browse_folder(self, label: str) -> Path | None:
        ...

    async def open_file(self, path: Path) -> None:
        ...

    def show_error(self, message: str) -> None:
        ...

    def show_info(self, message: str) -> None:
        ...


class Telemetry(Protocol):
    """Fire-and-forget observability sink."""

    def mark_step(self, name: str) -> None:
        ...

    def record_fact(self, key: str, value: Any) -> None:
        ...

    def record_failure(self, stage: str, trace_point: str, error: BaseException) -> None:
        ...


class SessionProvider(Protocol):
    async def wait_for_login(self) -> bool:
        ...

    async def current_subscriptions(self) -> list[Subscription]:
        ...

    def session_for(self, subscription_id: str) -> AzureSession:
        ...


class GitContext(Protocol):
    """Local git plumbing for one workspace path."""

    async def branch_details(self) -> GitBranchDetails:
        ...

    async def remotes(self) -> list[GitRemote]:
        ...

    async def remote_url(self, remote_name: str) -> str | None:
        ...

    async def root_directory(self) -> Path:
        ...

    async def add_file(self, content: str, file_path: Path) -> str:
        ...

    async def commit_and_push(self, file_name: str, repository: GitRepositoryParameters) -> str:
        ...


GitContextFactory = Callable[[Path], Awaitable[GitContext]]


class TemplateAnalyzer(Protocol):
    def applicable_templates(
        self,
        repository_path: Path,
        pipeline_host: str,
        target_resource: AzureResource | None = None,
    ) -> list[PipelineTemplate]:
        ...


class TemplateRenderer(Protocol):
    def render(self, template_path: Path, inputs: WizardInputs) -> str:
        ...


class DeploymentTargetClient(Protocol):
    async def get_resource(self, resource_id: str) -> AzureResource:
        ...

    async def list_web_apps(self, kind: str) -> list[AzureResource]:
        ...


DeploymentTargetClientFactory = Callable[[AzureSession], DeploymentTargetClient]


class RemoteProjectClient(Protocol):
    async def list_organizations(self) -> list[DevOpsOrganization]:
        ...

    async def list_projects(self, organization_name: str) -> list[DevOpsProject]:
        ...

    async def get_repository(
        self, organization_name: str, project_name: str, repository_name: str
    ) -> DevOpsRepository:
        ...

    async def validate_organization_name(self, name: str) -> str | None:
        ...


RemoteProjectClientFactory = Callable[[AzureSession], RemoteProjectClient]
