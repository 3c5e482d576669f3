"""Pipeline provisioners, one per pipeline host."""

from pipewright.provisioners.azure_pipelines import AzurePipelinesProvisioner
from pipewright.provisioners.base import PipelineProvisioner, ProvisionerContext, WebAppAdminClient
from pipewright.provisioners.github_actions import GitHubActionsProvisioner
from pipewright.provisioners.registry import (
    ProvisionerRegistry,
    ProvisionerSpec,
    create_provisioner,
    list_provisioners,
    provisioner_registry,
    register_provisioner,
    select_pipeline_host,
    select_provisioner,
)
from pipewright.wizard.models import PipelineHost

register_provisioner(
    PipelineHost.AZURE_PIPELINES,
    AzurePipelinesProvisioner,
    requires_remote_project=AzurePipelinesProvisioner.requires_remote_project,
    description="Azure Pipelines in an Azure DevOps project",
)
register_provisioner(
    PipelineHost.GITHUB_ACTIONS,
    GitHubActionsProvisioner,
    requires_remote_project=GitHubActionsProvisioner.requires_remote_project,
    description="GitHub Actions workflow in the repository",
)

__all__ = [
    "AzurePipelinesProvisioner",
    "GitHubActionsProvisioner",
    "PipelineProvisioner",
    "ProvisionerContext",
    "ProvisionerRegistry",
    "ProvisionerSpec",
    "WebAppAdminClient",
    "create_provisioner",
    "list_provisioners",
    "provisioner_registry",
    "register_provisioner",
    "select_pipeline_host",
    "select_provisioner",
]
