"""End-to-end wizard runs over in-memory collaborators."""

import pytest
from fakes import (
    AZURE_REPOS_URL,
    WEB_APP_ID,
    FakeAppService,
    FakeDevOps,
    FakeGitContext,
    FakePrompts,
    FakeSessions,
)

from pipewright.core.errors import (
    AzureLoginRequiredError,
    ProviderError,
    UnrecognizedRepositoryHostError,
    UserCancelledError,
)
from pipewright.telemetry import Result, TelemetryKeys, TracePoints
from pipewright.templates.analyzer import RepositoryAnalyzer
from pipewright.templates.catalog import TemplateCatalog
from pipewright.templates.renderer import JinjaTemplateRenderer
from pipewright.wizard.models import PipelineHost, RepositoryProvider, TargetNode, WorkspaceFolder
from pipewright.wizard.orchestrator import Orchestrator, configure_pipeline

COMMIT = "3f2a9c1d4e5b6a7f8091a2b3c4d5e6f708192a3b"


def _orchestrator(
    repo_dir,
    *,
    prompts=None,
    telemetry=None,
    sessions=None,
    git_context=None,
    app_service=None,
    devops=None,
    github_host=PipelineHost.GITHUB_ACTIONS,
):
    git_context = git_context or FakeGitContext(repo_dir)

    async def open_git(path):
        return git_context

    app_service = app_service or FakeAppService()
    devops = devops or FakeDevOps()
    return Orchestrator(
        prompts=prompts or FakePrompts(),
        telemetry=telemetry,
        sessions=sessions or FakeSessions(),
        git_context_factory=open_git,
        analyzer=RepositoryAnalyzer(TemplateCatalog.load()),
        renderer=JinjaTemplateRenderer(),
        target_client_factory=lambda session: app_service,
        remote_project_client_factory=lambda session: devops,
        workspace_folders=[WorkspaceFolder("shop", repo_dir)],
        github_host=github_host,
        open_browser=False,
    )


class TestConfigure:
    @pytest.mark.asyncio
    async def test_github_repository_to_github_actions(self, telemetry, repo_dir):
        prompts = FakePrompts()
        app_service = FakeAppService()
        devops = FakeDevOps()
        git_context = FakeGitContext(repo_dir)
        orchestrator = _orchestrator(
            repo_dir,
            prompts=prompts,
            telemetry=telemetry,
            git_context=git_context,
            app_service=app_service,
            devops=devops,
        )

        inputs = await orchestrator.configure()

        assert prompts.asked == ["select_pipeline_template", "select_subscription", "select_web_app"]
        assert inputs.template.label == "Node.js to Windows Web App"
        assert inputs.target_resource.resource.name == "shop-web"
        assert inputs.pipeline_parameters.pipeline_file_name == ".github/workflows/shop-web.yml"
        assert "shop-web" in (repo_dir / ".github/workflows/shop-web.yml").read_text()
        assert inputs.source_repository.commit_id == COMMIT
        assert inputs.queued_pipeline.url == "https://github.com/contoso/shop/actions"
        assert ("update_scm_type", "GitHubAction") in app_service.calls
        assert prompts.infos[-1] == "Pipeline: https://github.com/contoso/shop/actions"
        # GitHub Actions never touches Azure DevOps
        assert devops.calls == []
        assert telemetry.facts[TelemetryKeys.PIPELINE_HOST] == "github-actions"
        assert telemetry.current_step == "display_created_pipeline"

    @pytest.mark.asyncio
    async def test_azure_repos_from_target_node(self, telemetry, repo_dir):
        prompts = FakePrompts()
        app_service = FakeAppService()
        devops = FakeDevOps()
        orchestrator = _orchestrator(
            repo_dir,
            prompts=prompts,
            telemetry=telemetry,
            git_context=FakeGitContext(repo_dir, remote_url=AZURE_REPOS_URL),
            app_service=app_service,
            devops=devops,
        )

        inputs = await orchestrator.configure(TargetNode(WEB_APP_ID))

        # target and project are known; only the template is asked for
        assert prompts.asked == ["select_pipeline_template"]
        assert inputs.source_repository.repository_provider == RepositoryProvider.AZURE_REPOS
        assert inputs.source_repository.repository_id == "repo-guid"
        assert inputs.organization_name == "contoso"
        assert inputs.project.name == "Shop"
        assert inputs.service_connection_ids == {"azure": "azure-endpoint-id"}
        assert inputs.github_pat is None

        content = (repo_dir / "azure-pipelines.yml").read_text()
        assert "azureSubscription: 'azure-endpoint-id'" in content
        assert inputs.queued_pipeline.id == "42"
        assert inputs.queued_pipeline.url == "https://dev.azure.com/contoso/proj-1/_build/results?buildId=42"
        assert ("queue_build", (7, "refs/heads/main", COMMIT)) in devops.calls
        assert set(app_service.names()) >= {
            "get_resource",
            "update_scm_type",
            "get_metadata",
            "update_metadata",
            "publish_deployment",
        }
        assert telemetry.facts[TelemetryKeys.UPDATED_WEB_APP_METADATA] is True

    @pytest.mark.asyncio
    async def test_github_repository_to_new_azure_devops_organization(self, telemetry, repo_dir):
        prompts = FakePrompts(
            choices={"select_pipeline_template": "Starter pipeline"},
            text={"github_pat": ["ghp_secret"]},
        )
        app_service = FakeAppService()
        devops = FakeDevOps(organizations=[])
        orchestrator = _orchestrator(
            repo_dir,
            prompts=prompts,
            telemetry=telemetry,
            app_service=app_service,
            devops=devops,
            github_host=PipelineHost.AZURE_PIPELINES,
        )

        inputs = await orchestrator.configure()

        # a starter pipeline has no deployment target
        assert prompts.asked == ["select_pipeline_template", "select_subscription", "github_pat"]
        assert inputs.target_resource.subscription_id == "sub-1"
        assert inputs.target_resource.resource is None

        assert inputs.is_new_organization is True
        assert inputs.organization_name == "jane-contoso-shop"
        assert inputs.project.id == "new-proj-id"
        assert inputs.project.name == "AzurePipelines-shop"
        assert "Creating Azure DevOps organization jane-contoso-shop" in prompts.infos
        assert devops.names()[:2] == ["list_organizations", "create_organization"]
        assert "create_azure_rm_service_connection" not in devops.names()
        assert inputs.service_connection_ids == {"github": "github-endpoint-id"}
        assert inputs.github_pat == "ghp_secret"

        assert inputs.pipeline_parameters.pipeline_file_name == "azure-pipelines.yml"
        definition = next(args for name, args in devops.calls if name == "create_build_definition")
        assert definition["repository"]["type"] == "GitHub"
        assert definition["repository"]["properties"]["connectedServiceId"] == "github-endpoint-id"
        assert inputs.queued_pipeline.url.endswith("new-proj-id/_build/results?buildId=42")
        # post steps are skipped without a web app
        assert app_service.calls == []

    @pytest.mark.asyncio
    async def test_failure_after_check_in_keeps_earlier_work(self, telemetry, repo_dir):
        git_context = FakeGitContext(repo_dir, remote_url=AZURE_REPOS_URL)
        devops = FakeDevOps(fail={"create_build_definition"})
        orchestrator = _orchestrator(
            repo_dir, telemetry=telemetry, git_context=git_context, devops=devops
        )

        with pytest.raises(ProviderError):
            await orchestrator.configure(TargetNode(WEB_APP_ID))

        assert telemetry.current_step == "create_and_queue_pipeline"
        assert "create_azure_rm_service_connection" in devops.names()
        assert len(git_context.pushed) == 1
        assert telemetry.failures[-1]["trace_point"] == TracePoints.CREATE_AND_QUEUE_PIPELINE_FAILED


class TestConfigurePipeline:
    @pytest.mark.asyncio
    async def test_success_sets_result(self, telemetry, repo_dir):
        orchestrator = _orchestrator(repo_dir, telemetry=telemetry)

        inputs = await configure_pipeline(orchestrator)

        assert inputs.queued_pipeline is not None
        assert telemetry.result is Result.SUCCEEDED

    @pytest.mark.asyncio
    async def test_requires_azure_login(self, telemetry, repo_dir):
        prompts = FakePrompts()
        orchestrator = _orchestrator(
            repo_dir, prompts=prompts, telemetry=telemetry, sessions=FakeSessions(logged_in=False)
        )

        with pytest.raises(AzureLoginRequiredError):
            await configure_pipeline(orchestrator)

        assert telemetry.facts[TelemetryKeys.AZURE_LOGIN_REQUIRED] is True
        assert telemetry.result is Result.FAILED
        assert prompts.asked == []
        assert prompts.errors[0].startswith("Please sign in to Azure")

    @pytest.mark.asyncio
    async def test_cancel_is_quiet(self, telemetry, repo_dir):
        prompts = FakePrompts(cancel={"select_pipeline_template"})
        orchestrator = _orchestrator(repo_dir, prompts=prompts, telemetry=telemetry)

        with pytest.raises(UserCancelledError):
            await configure_pipeline(orchestrator)

        assert telemetry.result is Result.CANCELED
        assert prompts.errors == []
        assert telemetry.failures == []

    @pytest.mark.asyncio
    async def test_unrecognized_remote_is_shown(self, telemetry, repo_dir):
        prompts = FakePrompts()
        git_context = FakeGitContext(repo_dir, remote_url="https://gitlab.com/contoso/shop.git")
        orchestrator = _orchestrator(repo_dir, prompts=prompts, telemetry=telemetry, git_context=git_context)

        with pytest.raises(UnrecognizedRepositoryHostError):
            await configure_pipeline(orchestrator)

        assert telemetry.result is Result.FAILED
        assert telemetry.failures[-1]["trace_point"] == TracePoints.GET_SOURCE_REPOSITORY_DETAILS_FAILED
        assert prompts.errors[0].startswith("Unable to identify the repository host")
