"""
Run telemetry for the configure wizard.

Everything is emitted as structlog events; nothing here affects control flow.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from enum import StrEnum
from typing import Any, AsyncIterator

import structlog

from pipewright.core.errors import format_error_message


class Result(StrEnum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"


class TelemetryKeys:
    """Fact names recorded during a run."""

    AZURE_LOGIN_REQUIRED = "azure_login_required"
    SOURCE_REPO_LOCATION = "source_repo_location"
    MULTIPLE_WORKSPACE_FOLDERS = "multiple_workspace_folders"
    REPO_PROVIDER = "repo_provider"
    PIPELINE_HOST = "pipeline_host"
    CHOSEN_TEMPLATE = "chosen_template"
    TEMPLATE_LIST_COUNT = "template_list_count"
    NEW_ORGANIZATION = "new_organization"
    ORGANIZATION_LIST_COUNT = "organization_list_count"
    PROJECT_LIST_COUNT = "project_list_count"
    WEB_APP_LIST_COUNT = "web_app_list_count"
    PIPELINE_DISCARDED = "pipeline_discarded"
    COMMIT_ATTEMPTS = "commit_attempts"
    UPDATED_WEB_APP_METADATA = "updated_web_app_metadata"


class TracePoints:
    """Failure locations reported with ``record_failure``."""

    EXTRACT_TARGET_FROM_NODE_FAILED = "extract_target_from_node_failed"
    GET_SOURCE_REPOSITORY_DETAILS_FAILED = "get_source_repository_details_failed"
    GET_AZURE_DEVOPS_DETAILS_FAILED = "get_azure_devops_details_failed"
    ADDING_CONTENT_TO_PIPELINE_FILE_FAILED = "adding_content_to_pipeline_file_failed"
    CHECK_IN_PIPELINE_FAILURE = "check_in_pipeline_failure"
    PIPELINE_FILE_CHECK_IN_FAILED = "pipeline_file_check_in_failed"
    CREATE_NEW_ORGANIZATION_AND_PROJECT_FAILURE = "create_new_organization_and_project_failure"
    SERVICE_CONNECTION_FAILURE = "service_connection_failure"
    CREATE_AND_QUEUE_PIPELINE_FAILED = "create_and_queue_pipeline_failed"
    POST_DEPLOYMENT_ACTION_FAILED = "post_deployment_action_failed"


class WizardTelemetry:
    """structlog-backed observability sink for one wizard run."""

    def __init__(self, logger: Any | None = None) -> None:
        self._logger = logger or structlog.get_logger()
        self.current_step = ""
        self.facts: dict[str, Any] = {}
        self.failures: list[dict[str, str]] = []
        self.result: Result | None = None

    def mark_step(self, name: str) -> None:
        self.current_step = name
        self._logger.debug("wizard_step", step=name)

    def record_fact(self, key: str, value: Any) -> None:
        self.facts[key] = value

    def record_failure(self, stage: str, trace_point: str, error: BaseException) -> None:
        failure = {
            "layer": stage,
            "trace_point": trace_point,
            "step": self.current_step,
            "error_type": type(error).__name__,
            "error": format_error_message(error),
        }
        self.failures.append(failure)
        self._logger.warning("wizard_stage_failed", **failure)

    def set_result(self, result: Result, error: BaseException | None = None) -> None:
        self.result = result
        if error is not None and result is Result.FAILED:
            self._logger.error(
                "wizard_failed",
                step=self.current_step,
                error_type=type(error).__name__,
                error=format_error_message(error),
            )

    @asynccontextmanager
    async def timed(self, command: str) -> AsyncIterator[None]:
        """Emit one summary event with the run's duration and facts."""
        started = time.monotonic()
        try:
            yield
        finally:
            self._logger.info(
                "command_completed",
                command=command,
                result=str(self.result or Result.SUCCEEDED),
                last_step=self.current_step,
                duration_seconds=round(time.monotonic() - started, 3),
                **self.facts,
            )
