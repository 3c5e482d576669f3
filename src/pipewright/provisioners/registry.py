from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List

from pipewright.core.errors import ConfigurationError
from pipewright.provisioners.base import PipelineProvisioner, ProvisionerContext
from pipewright.wizard.models import PipelineHost, RepositoryProvider

ProvisionerFactory = Callable[[ProvisionerContext], PipelineProvisioner]


@dataclass(frozen=True)
class ProvisionerSpec:
    """Metadata describing a registered pipeline host."""

    name: str
    factory: ProvisionerFactory
    requires_remote_project: bool = False
    description: str | None = None


class ProvisionerRegistry:
    """In-memory registry of pipeline hosts."""

    def __init__(self) -> None:
        self._provisioners: Dict[str, ProvisionerSpec] = {}

    def register(
        self,
        name: str,
        factory: ProvisionerFactory,
        *,
        requires_remote_project: bool = False,
        description: str | None = None,
    ) -> None:
        if not name:
            raise ValueError("Pipeline host name is required")
        self._provisioners[name] = ProvisionerSpec(
            name=name,
            factory=factory,
            requires_remote_project=requires_remote_project,
            description=description,
        )

    def get(self, name: str) -> ProvisionerSpec | None:
        return self._provisioners.get(name)

    def create(self, name: str, context: ProvisionerContext) -> PipelineProvisioner:
        spec = self._provisioners.get(name)
        if spec is None:
            raise KeyError(f"Pipeline host '{name}' is not registered")
        return spec.factory(context)

    def list(self) -> List[ProvisionerSpec]:
        return list(self._provisioners.values())


provisioner_registry = ProvisionerRegistry()


def register_provisioner(
    name: str,
    factory: ProvisionerFactory,
    *,
    requires_remote_project: bool = False,
    description: str | None = None,
) -> None:
    provisioner_registry.register(
        name, factory, requires_remote_project=requires_remote_project, description=description
    )


def create_provisioner(name: str, context: ProvisionerContext) -> PipelineProvisioner:
    return provisioner_registry.create(name, context)


def list_provisioners() -> List[ProvisionerSpec]:
    return provisioner_registry.list()


def select_pipeline_host(
    provider: RepositoryProvider, github_host: str = PipelineHost.GITHUB_ACTIONS
) -> str:
    """Pipeline host for a repository provider.

    Azure Repos always builds on Azure Pipelines; GitHub repositories use the
    configured host.
    """
    if provider == RepositoryProvider.AZURE_REPOS:
        return PipelineHost.AZURE_PIPELINES
    if provisioner_registry.get(github_host) is None:
        raise ConfigurationError(
            f"Unknown pipeline host '{github_host}' for GitHub repositories.",
            details={"known_hosts": [spec.name for spec in list_provisioners()]},
        )
    return github_host


def select_provisioner(
    provider: RepositoryProvider,
    context: ProvisionerContext,
    github_host: str = PipelineHost.GITHUB_ACTIONS,
) -> PipelineProvisioner:
    return create_provisioner(select_pipeline_host(provider, github_host), context)
