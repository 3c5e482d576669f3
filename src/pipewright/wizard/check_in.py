"""Write the pipeline file into the repository, then commit and push it."""

from __future__ import annotations

import asyncio

import structlog

from pipewright.core.errors import UserCancelledError
from pipewright.provisioners.base import PipelineProvisioner
from pipewright.telemetry import TelemetryKeys, TracePoints
from pipewright.wizard.interfaces import GitContext, PromptSurface, Telemetry, TemplateRenderer
from pipewright.wizard.models import WizardInputs

logger = structlog.get_logger()

LAYER = "check_in"

COMMIT_AND_PUSH = "Commit & push"
DISCARD_PIPELINE = "Discard pipeline"


class CheckInCoordinator:
    """
    Renders the template and drives the commit/push loop.

    Only commit/push is retried, and only when the user confirms again.
    ``source_repository.commit_id`` is set once the push succeeds.
    """

    def __init__(
        self, *, prompts: PromptSurface, telemetry: Telemetry, renderer: TemplateRenderer
    ) -> None:
        self._prompts = prompts
        self._telemetry = telemetry
        self._renderer = renderer

    async def check_in(
        self, inputs: WizardInputs, git_context: GitContext, provisioner: PipelineProvisioner
    ) -> None:
        file_name = await self._write_pipeline_file(inputs, git_context, provisioner)

        try:
            await self._commit_loop(inputs, git_context, file_name)
        except UserCancelledError:
            raise
        except Exception as e:
            self._telemetry.record_failure(LAYER, TracePoints.PIPELINE_FILE_CHECK_IN_FAILED, e)
            raise

    async def _write_pipeline_file(
        self, inputs: WizardInputs, git_context: GitContext, provisioner: PipelineProvisioner
    ) -> str:
        try:
            destination = provisioner.pipeline_file_path(inputs)
            content = await asyncio.to_thread(self._renderer.render, inputs.template.path, inputs)
            file_name = await git_context.add_file(content, destination)
            inputs.pipeline_parameters.pipeline_file_name = file_name

            root = await git_context.root_directory()
            await self._prompts.open_file(root / file_name)
        except Exception as e:
            self._telemetry.record_failure(LAYER, TracePoints.ADDING_CONTENT_TO_PIPELINE_FILE_FAILED, e)
            raise
        return file_name

    async def _commit_loop(self, inputs: WizardInputs, git_context: GitContext, file_name: str) -> None:
        attempts = 0
        while not inputs.repository.commit_id:
            repository = inputs.repository
            confirmed = await self._prompts.confirm(
                f"Review {file_name}, then choose '{COMMIT_AND_PUSH}' to commit it and push "
                f"{repository.branch} to {repository.remote_name}.",
                COMMIT_AND_PUSH,
                DISCARD_PIPELINE,
            )
            if not confirmed:
                self._telemetry.record_fact(TelemetryKeys.PIPELINE_DISCARDED, True)
                raise UserCancelledError("Pipeline discarded.")

            attempts += 1
            self._telemetry.record_fact(TelemetryKeys.COMMIT_ATTEMPTS, attempts)
            try:
                commit_id = await git_context.commit_and_push(file_name, repository)
            except Exception as e:
                self._telemetry.record_failure(LAYER, TracePoints.CHECK_IN_PIPELINE_FAILURE, e)
                self._prompts.show_error(f"Commit and push failed: {e}. Fix the problem and try again.")
                continue

            repository.commit_id = commit_id
            logger.info("pipeline_file_checked_in", file=file_name, commit_id=commit_id, attempts=attempts)
