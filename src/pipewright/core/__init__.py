"""Core modules for pipewright - errors and naming."""

from pipewright.core.errors import (
    AzureLoginRequiredError,
    ConfigurationError,
    ExitCode,
    InvalidTargetResourceError,
    NoApplicableTemplateError,
    NoRemoteConfiguredError,
    NotAGitRepositoryError,
    NotConfiguredError,
    NoWorkspaceSelectedError,
    PipewrightError,
    ProviderError,
    PushRejectedError,
    RemoteCallError,
    RemoteNotConfiguredError,
    UnrecognizedRepositoryHostError,
    UserCancelledError,
    ValidationError,
    format_error_message,
    main_with_error_handling,
)
from pipewright.core.naming import (
    UNIQUE_RESOURCE_NAME_SUFFIX,
    generate_devops_organization_name,
    generate_devops_project_name,
)

__all__ = [
    # Errors
    "ExitCode",
    "PipewrightError",
    "UserCancelledError",
    "ConfigurationError",
    "NotConfiguredError",
    "NoWorkspaceSelectedError",
    "NoRemoteConfiguredError",
    "NotAGitRepositoryError",
    "RemoteNotConfiguredError",
    "UnrecognizedRepositoryHostError",
    "AzureLoginRequiredError",
    "NoApplicableTemplateError",
    "ProviderError",
    "RemoteCallError",
    "PushRejectedError",
    "ValidationError",
    "InvalidTargetResourceError",
    "main_with_error_handling",
    "format_error_message",
    # Naming
    "UNIQUE_RESOURCE_NAME_SUFFIX",
    "generate_devops_organization_name",
    "generate_devops_project_name",
]
