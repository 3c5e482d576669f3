"""
Data model for one configure-pipeline run.

``WizardInputs`` is the single mutable aggregate threaded through every
stage. Field ownership (the only stage allowed to write the field):

- ``source_repository``, ``pipeline_parameters.working_directory``:
  RepositoryContextResolver (``repository_id`` later refined by
  RemoteProjectResolver for Azure Repos sources, ``commit_id`` by
  CheckInCoordinator)
- ``target_resource``, ``azure_session``: RepositoryContextResolver when a
  target handle is supplied, otherwise TargetResourceResolver
- ``pipeline_parameters.pipeline_template``: TemplateSelector
- ``pipeline_parameters.pipeline_file_name``: CheckInCoordinator
- ``organization_name``, ``project``, ``is_new_organization``:
  RemoteProjectResolver (``project`` completed by the provisioner when the
  organization is new)
- ``github_pat``, ``service_connection_ids``, ``queued_pipeline``: the
  provisioner strategy
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


class RepositoryProvider(StrEnum):
    """Hosting system that owns a git remote."""

    AZURE_REPOS = "azure_repos"
    GITHUB = "github"


class PipelineHost(StrEnum):
    """Service that runs the generated pipeline."""

    AZURE_PIPELINES = "azure-pipelines"
    GITHUB_ACTIONS = "github-actions"


class TargetResourceType(StrEnum):
    """Deployment target family a template supports."""

    NONE = "none"
    WEB_APP = "webapp"


class WebAppKind(StrEnum):
    """App Service ``kind`` values understood by the templates."""

    WINDOWS_APP = "app"
    LINUX_APP = "app,linux"
    LINUX_CONTAINER_APP = "app,linux,container"
    FUNCTION_APP = "functionapp"
    LINUX_FUNCTION_APP = "functionapp,linux"


class SourceOption(StrEnum):
    """How the workspace folder was found."""

    CURRENT_WORKSPACE = "current_workspace"
    BROWSE_LOCAL_MACHINE = "browse_local_machine"


@dataclass(frozen=True)
class Choice:
    """One option of a single-choice prompt."""

    label: str
    data: Any = None
    description: str | None = None


@dataclass(frozen=True)
class WorkspaceFolder:
    """An open folder the user may configure."""

    name: str
    path: Path


@dataclass(frozen=True)
class TargetNode:
    """A deployment target picked before the wizard started."""

    resource_id: str


@dataclass
class GitBranchDetails:
    branch: str
    remote_name: str | None = None


@dataclass(frozen=True)
class GitRemote:
    name: str


@dataclass
class GitRepositoryParameters:
    """Source repository facts.

    Immutable once constructed, except ``commit_id`` which may go from empty
    to non-empty exactly once. Use ``dataclasses.replace`` to derive a
    refined copy.
    """

    repository_provider: RepositoryProvider
    repository_id: str
    repository_name: str
    remote_name: str
    remote_url: str
    branch: str
    local_path: Path
    commit_id: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "_sealed", True)

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_sealed", False):
            if name != "commit_id":
                raise AttributeError(f"GitRepositoryParameters.{name} is read-only")
            if self.commit_id:
                raise AttributeError("commit_id has already been set for this run")
            if not value:
                raise ValueError("commit_id cannot be set to an empty value")
        object.__setattr__(self, name, value)


@dataclass(frozen=True)
class PipelineTemplate:
    """A candidate pipeline definition and the targets it supports."""

    label: str
    path: Path
    pipeline_host: str
    language: str = "generic"
    target_type: TargetResourceType = TargetResourceType.WEB_APP
    target_kind: WebAppKind | None = None


@dataclass
class PipelineParameters:
    pipeline_template: PipelineTemplate | None = None
    pipeline_file_name: str = ""
    working_directory: str = ""


class Subscription(BaseModel):
    """An Azure subscription visible to the signed-in user."""

    subscription_id: str = Field(..., alias="subscriptionId")
    display_name: str = Field("", alias="displayName")
    tenant_id: str | None = Field(None, alias="tenantId")

    model_config = {"populate_by_name": True}


class AzureResource(BaseModel):
    """Generic ARM resource as returned by the resource APIs."""

    id: str
    name: str
    type: str
    kind: str | None = None
    location: str | None = None
    properties: dict[str, Any] = Field(default_factory=dict)

    model_config = {"extra": "allow"}

    @property
    def default_host_name(self) -> str | None:
        return self.properties.get("defaultHostName")


@dataclass
class AzureSession:
    """Credentials scoped to one subscription. Opaque to the wizard core."""

    credentials: str
    tenant_id: str | None
    user_id: str
    subscription_id: str | None = None
    portal_url: str = "https://portal.azure.com"


@dataclass
class TargetResource:
    subscription_id: str = ""
    resource: AzureResource | None = None


@dataclass
class DevOpsProject:
    id: str
    name: str


@dataclass
class DevOpsOrganization:
    account_id: str
    account_name: str


@dataclass
class DevOpsRepository:
    id: str
    name: str
    project: DevOpsProject


@dataclass
class QueuedPipeline:
    """A pipeline run started by the provisioner."""

    url: str
    id: str | None = None
    definition_id: str | None = None


@dataclass
class WizardInputs:
    """Everything the wizard learns during one run."""

    source_repository: GitRepositoryParameters | None = None
    target_resource: TargetResource = field(default_factory=TargetResource)
    pipeline_parameters: PipelineParameters = field(default_factory=PipelineParameters)
    project: DevOpsProject | None = None
    organization_name: str = ""
    is_new_organization: bool = False
    azure_session: AzureSession | None = None
    github_pat: str | None = None
    service_connection_ids: dict[str, str] = field(default_factory=dict)
    queued_pipeline: QueuedPipeline | None = None

    @property
    def repository(self) -> GitRepositoryParameters:
        """``source_repository``, asserting it has been resolved."""
        if self.source_repository is None:
            raise RuntimeError("source repository has not been resolved yet")
        return self.source_repository

    @property
    def template(self) -> PipelineTemplate:
        """Selected pipeline template, asserting it has been chosen."""
        template = self.pipeline_parameters.pipeline_template
        if template is None:
            raise RuntimeError("pipeline template has not been selected yet")
        return template
