"""The configure-pipeline wizard: data model, stages and orchestrator."""

from pipewright.wizard.models import (
    GitRepositoryParameters,
    PipelineHost,
    PipelineTemplate,
    RepositoryProvider,
    TargetNode,
    TargetResourceType,
    WizardInputs,
    WorkspaceFolder,
)

__all__ = [
    "GitRepositoryParameters",
    "PipelineHost",
    "PipelineTemplate",
    "RepositoryProvider",
    "TargetNode",
    "TargetResourceType",
    "WizardInputs",
    "WorkspaceFolder",
]
