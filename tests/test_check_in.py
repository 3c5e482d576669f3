"""Tests for writing and committing the pipeline file."""

from pathlib import Path

import jinja2
import pytest
from fakes import FakeGitContext, FakePrompts, github_repository, web_app

from pipewright.core.errors import UserCancelledError
from pipewright.provisioners import GitHubActionsProvisioner, ProvisionerContext
from pipewright.telemetry import TelemetryKeys, TracePoints
from pipewright.templates.renderer import JinjaTemplateRenderer
from pipewright.wizard.check_in import CheckInCoordinator
from pipewright.wizard.models import PipelineHost, PipelineTemplate, WizardInputs


def _inputs(repo_dir: Path, template_source: str) -> WizardInputs:
    template_path = repo_dir.parent / "workflow.yml.j2"
    template_path.write_text(template_source)

    inputs = WizardInputs()
    inputs.source_repository = github_repository(repo_dir)
    inputs.pipeline_parameters.working_directory = "."
    inputs.target_resource.subscription_id = "sub-1"
    inputs.target_resource.resource = web_app()
    inputs.pipeline_parameters.pipeline_template = PipelineTemplate(
        label="Node.js to Windows Web App",
        path=template_path,
        pipeline_host=PipelineHost.GITHUB_ACTIONS,
        language="node",
    )
    return inputs


def _coordinator(prompts, telemetry):
    return CheckInCoordinator(prompts=prompts, telemetry=telemetry, renderer=JinjaTemplateRenderer())


def _provisioner(prompts, telemetry):
    return GitHubActionsProvisioner(ProvisionerContext(prompts=prompts, telemetry=telemetry, open_browser=False))


@pytest.mark.asyncio
async def test_check_in_writes_and_pushes(telemetry, repo_dir):
    prompts = FakePrompts(confirms=[True])
    git_context = FakeGitContext(repo_dir)
    inputs = _inputs(repo_dir, "name: deploy {{ web_app_name }} from {{ branch }}\n")

    await _coordinator(prompts, telemetry).check_in(inputs, git_context, _provisioner(prompts, telemetry))

    file_name = ".github/workflows/shop-web.yml"
    assert inputs.pipeline_parameters.pipeline_file_name == file_name
    assert (repo_dir / file_name).read_text() == "name: deploy shop-web from main\n"
    assert prompts.opened == [repo_dir / file_name]
    assert "Commit & push" in prompts.confirm_messages[0]
    assert git_context.pushed[0][0] == file_name
    assert inputs.source_repository.commit_id == "3f2a9c1d4e5b6a7f8091a2b3c4d5e6f708192a3b"
    assert telemetry.facts[TelemetryKeys.COMMIT_ATTEMPTS] == 1


@pytest.mark.asyncio
async def test_existing_workflow_file_is_not_overwritten(telemetry, repo_dir):
    workflows = repo_dir / ".github" / "workflows"
    workflows.mkdir(parents=True)
    (workflows / "shop-web.yml").write_text("keep: me\n")
    prompts = FakePrompts()
    inputs = _inputs(repo_dir, "name: ci\n")

    await _coordinator(prompts, telemetry).check_in(inputs, FakeGitContext(repo_dir), _provisioner(prompts, telemetry))

    assert inputs.pipeline_parameters.pipeline_file_name == ".github/workflows/shop-web-1.yml"
    assert (workflows / "shop-web.yml").read_text() == "keep: me\n"


@pytest.mark.asyncio
async def test_rejected_push_asks_again(telemetry, repo_dir):
    prompts = FakePrompts(confirms=[True, True])
    git_context = FakeGitContext(repo_dir, push_failures=1)
    inputs = _inputs(repo_dir, "name: ci\n")

    await _coordinator(prompts, telemetry).check_in(inputs, git_context, _provisioner(prompts, telemetry))

    assert len(prompts.confirm_messages) == 2
    assert prompts.errors[0].startswith("Commit and push failed")
    assert telemetry.failures[0]["trace_point"] == TracePoints.CHECK_IN_PIPELINE_FAILURE
    assert telemetry.facts[TelemetryKeys.COMMIT_ATTEMPTS] == 2
    assert len(git_context.pushed) == 1
    assert inputs.source_repository.commit_id


@pytest.mark.asyncio
async def test_discard_after_failed_push(telemetry, repo_dir):
    prompts = FakePrompts(confirms=[True, False])
    inputs = _inputs(repo_dir, "name: ci\n")

    with pytest.raises(UserCancelledError):
        await _coordinator(prompts, telemetry).check_in(
            inputs, FakeGitContext(repo_dir, push_failures=1), _provisioner(prompts, telemetry)
        )

    assert telemetry.facts[TelemetryKeys.PIPELINE_DISCARDED] is True
    assert inputs.source_repository.commit_id == ""
    # the file stays in the working tree
    assert (repo_dir / ".github/workflows/shop-web.yml").exists()


@pytest.mark.asyncio
async def test_render_failure_is_recorded(telemetry, repo_dir):
    prompts = FakePrompts()
    git_context = FakeGitContext(repo_dir)
    inputs = _inputs(repo_dir, "name: {{ unknown_name }}\n")

    with pytest.raises(jinja2.UndefinedError):
        await _coordinator(prompts, telemetry).check_in(inputs, git_context, _provisioner(prompts, telemetry))

    assert telemetry.failures[-1]["trace_point"] == TracePoints.ADDING_CONTENT_TO_PIPELINE_FILE_FAILED
    assert git_context.added == {}
    assert prompts.confirm_messages == []
