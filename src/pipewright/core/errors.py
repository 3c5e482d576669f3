"""
Errors raised by the wizard and the exit codes the CLI maps them to.

A stage either returns normally or raises a ``PipewrightError``. The
subclass decides the process exit code:

====  =====================================================
0     pipeline configured
10    local setup problem (folder, remote, host, sign-in)
11    Azure, Azure DevOps or git push failed
12    bad input such as a non App Service ``--resource-id``
127   anything else
130   the user backed out
====  =====================================================
"""

from __future__ import annotations

import functools
import sys
import traceback
from enum import IntEnum
from typing import Any, Callable, TypeVar

import structlog

logger = structlog.get_logger()


class ExitCode(IntEnum):
    SUCCESS = 0
    CONFIG_ERROR = 10
    PROVIDER_ERROR = 11
    VALIDATION_ERROR = 12
    UNKNOWN_ERROR = 127
    CANCELLED = 130


class PipewrightError(Exception):
    """Root of every error the wizard reports to the user.

    ``details`` carries structured context (paths, URLs, step names) that is
    logged alongside the message and appended to it for display.
    """

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class UserCancelledError(PipewrightError):
    """A prompt was dismissed or the generated pipeline was discarded."""

    exit_code = ExitCode.CANCELLED

    def __init__(self, message: str = "Operation cancelled.", details: dict[str, Any] | None = None):
        super().__init__(message, details)


class ConfigurationError(PipewrightError):
    exit_code = ExitCode.CONFIG_ERROR


class NotConfiguredError(ConfigurationError):
    """The local environment is missing something the wizard needs."""


class NoWorkspaceSelectedError(NotConfiguredError):
    def __init__(self, message: str = "Please select a workspace folder to configure a pipeline."):
        super().__init__(message)


class NotAGitRepositoryError(NotConfiguredError):
    def __init__(self, path: str):
        super().__init__(
            "The selected folder is not inside a git repository.", details={"path": path}
        )


class NoRemoteConfiguredError(NotConfiguredError):
    def __init__(
        self,
        message: str = (
            "The current branch doesn't have a tracking branch and the repository has no remotes. "
            "Add a remote and push the branch before configuring a pipeline."
        ),
    ):
        super().__init__(message)


class RemoteNotConfiguredError(NotConfiguredError):
    def __init__(self, message: str = "The selected remote has no URL configured."):
        super().__init__(message)


class UnrecognizedRepositoryHostError(NotConfiguredError):
    def __init__(self, remote_url: str):
        super().__init__(
            "Unable to identify the repository host. Only Azure Repos and GitHub remotes are supported.",
            details={"remote_url": remote_url},
        )


class AzureLoginRequiredError(NotConfiguredError):
    def __init__(
        self,
        message: str = "Please sign in to Azure: set PIPEWRIGHT_AZURE_ACCESS_TOKEN and try again.",
    ):
        super().__init__(message)


class NoApplicableTemplateError(ConfigurationError):
    """No pipeline template applies to the repository."""

    def __init__(self, repository_path: str):
        super().__init__(
            "No pipeline template matches this repository.",
            details={"path": repository_path},
        )


class ProviderError(PipewrightError):
    """Azure, Azure DevOps or the git remote could not complete a call."""

    exit_code = ExitCode.PROVIDER_ERROR


# Any collaborator call failure.
RemoteCallError = ProviderError


class PushRejectedError(ProviderError):
    """git push was rejected by the remote (usually: branch behind its upstream)."""


class ValidationError(PipewrightError):
    """Input that names something the wizard cannot work with."""

    exit_code = ExitCode.VALIDATION_ERROR


class InvalidTargetResourceError(ValidationError):
    """The supplied deployment target is not a supported resource type."""


F = TypeVar("F", bound=Callable[..., int])


def exit_code_for(error: BaseException) -> ExitCode:
    if isinstance(error, KeyboardInterrupt):
        return ExitCode.CANCELLED
    if isinstance(error, PipewrightError):
        return error.exit_code
    return ExitCode.UNKNOWN_ERROR


def _report(error: BaseException, code: ExitCode) -> None:
    if code == ExitCode.CANCELLED:
        logger.info("command_cancelled", reason=type(error).__name__)
    elif isinstance(error, PipewrightError):
        logger.error(
            "command_failed",
            error_type=type(error).__name__,
            message=error.message,
            exit_code=int(code),
            **error.details,
        )
    else:
        logger.error("command_crashed", error_type=type(error).__name__, message=str(error), exit_code=int(code))


def main_with_error_handling(*, show_traceback: bool = False, log_errors: bool = True) -> Callable[[F], F]:
    """Turn a command function into one that always returns an exit code.

    Cancellation (a dismissed prompt or Ctrl-C) is logged at info level and
    exits with 130. Wizard errors exit with their own code, anything else
    with 127.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            try:
                return func(*args, **kwargs)
            except (Exception, KeyboardInterrupt) as error:
                code = exit_code_for(error)
                if log_errors:
                    _report(error, code)
                if show_traceback and code != ExitCode.CANCELLED:
                    traceback.print_exc(file=sys.stderr)
                return code

        return wrapper  # type: ignore[return-value]

    return decorator


def format_error_message(error: BaseException) -> str:
    """Message shown to the user, with any details in parentheses."""
    if not isinstance(error, PipewrightError):
        return str(error)
    if not error.details:
        return error.message
    context = ", ".join(f"{key}={value}" for key, value in error.details.items())
    return f"{error.message} ({context})"
