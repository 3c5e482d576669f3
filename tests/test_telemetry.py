"""Tests for wizard run telemetry."""

from unittest.mock import MagicMock

import pytest

from pipewright.core.errors import PushRejectedError
from pipewright.telemetry import Result, TelemetryKeys, TracePoints, WizardTelemetry


def test_record_failure_includes_current_step():
    logger = MagicMock()
    telemetry = WizardTelemetry(logger)
    telemetry.mark_step("check_in")

    telemetry.record_failure("check_in", TracePoints.CHECK_IN_PIPELINE_FAILURE, PushRejectedError("rejected"))

    assert telemetry.failures == [
        {
            "layer": "check_in",
            "trace_point": TracePoints.CHECK_IN_PIPELINE_FAILURE,
            "step": "check_in",
            "error_type": "PushRejectedError",
            "error": "rejected",
        }
    ]
    logger.warning.assert_called_once()
    assert logger.warning.call_args.args == ("wizard_stage_failed",)


def test_set_result_logs_only_failures():
    logger = MagicMock()
    telemetry = WizardTelemetry(logger)

    telemetry.set_result(Result.CANCELED, RuntimeError("dismissed"))
    logger.error.assert_not_called()

    telemetry.set_result(Result.FAILED, RuntimeError("boom"))
    logger.error.assert_called_once()
    assert telemetry.result is Result.FAILED


@pytest.mark.asyncio
async def test_timed_emits_summary_with_facts():
    logger = MagicMock()
    telemetry = WizardTelemetry(logger)
    telemetry.record_fact(TelemetryKeys.REPO_PROVIDER, "github")

    async with telemetry.timed("configure_pipeline"):
        telemetry.mark_step("gather_inputs")
        telemetry.set_result(Result.SUCCEEDED)

    logger.info.assert_called_once()
    kwargs = logger.info.call_args.kwargs
    assert kwargs["command"] == "configure_pipeline"
    assert kwargs["result"] == "succeeded"
    assert kwargs["last_step"] == "gather_inputs"
    assert kwargs[TelemetryKeys.REPO_PROVIDER] == "github"
    assert kwargs["duration_seconds"] >= 0


@pytest.mark.asyncio
async def test_timed_emits_summary_when_body_raises():
    logger = MagicMock()
    telemetry = WizardTelemetry(logger)

    with pytest.raises(RuntimeError):
        async with telemetry.timed("configure_pipeline"):
            telemetry.set_result(Result.FAILED)
            raise RuntimeError("boom")

    assert logger.info.call_args.kwargs["result"] == "failed"
