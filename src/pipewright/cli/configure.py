"""
Configure a CI/CD pipeline for a local git repository.

Commands:
    pipewright configure                          # browse for a folder
    pipewright configure ./app                    # configure one folder
    pipewright configure ./api ./web              # pick one of several folders
    pipewright configure . --resource-id /subscriptions/.../sites/my-app
"""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from typing import Sequence

from pipewright.cli import ux
from pipewright.cli.prompts import QuestionaryPromptSurface
from pipewright.clients.azure import AppServiceClient
from pipewright.clients.azure_devops import AzureDevOpsClient
from pipewright.config.loader import WizardConfig, load_config
from pipewright.config.settings import Settings, get_settings
from pipewright.core.errors import main_with_error_handling
from pipewright.repositories.local_git import LocalGitRepository
from pipewright.session import AzureSessionProvider
from pipewright.telemetry import WizardTelemetry
from pipewright.templates.analyzer import RepositoryAnalyzer
from pipewright.templates.catalog import TemplateCatalog
from pipewright.templates.renderer import JinjaTemplateRenderer
from pipewright.wizard.models import AzureSession, PipelineHost, TargetNode, WizardInputs, WorkspaceFolder
from pipewright.wizard.orchestrator import Orchestrator, configure_pipeline


def workspace_folders(folders: Sequence[str]) -> list[WorkspaceFolder]:
    resolved = [Path(folder).expanduser().resolve() for folder in folders]
    return [WorkspaceFolder(name=path.name or str(path), path=path) for path in resolved]


def build_orchestrator(
    settings: Settings,
    config: WizardConfig,
    folders: Sequence[str],
    *,
    prompts: QuestionaryPromptSurface | None = None,
    telemetry: WizardTelemetry | None = None,
) -> Orchestrator:
    """Wire the wizard to the real Azure, Azure DevOps and git collaborators."""
    http_options = {
        "timeout": settings.http_timeout,
        "max_retries": settings.http_max_retries,
        "backoff_factor": settings.http_retry_backoff_factor,
    }
    # One client per credential so the organization list is fetched once per run
    devops_clients: dict[str, AzureDevOpsClient] = {}

    def devops_client(session: AzureSession) -> AzureDevOpsClient:
        if session.credentials not in devops_clients:
            devops_clients[session.credentials] = AzureDevOpsClient(
                session.credentials,
                base_url=settings.devops_base_url,
                vssps_base_url=settings.vssps_base_url,
                aex_base_url=settings.aex_base_url,
                **http_options,
            )
        return devops_clients[session.credentials]

    def app_service_client(session: AzureSession) -> AppServiceClient:
        return AppServiceClient(session, base_url=settings.arm_base_url, **http_options)

    async def git_context(path: Path) -> LocalGitRepository:
        return await LocalGitRepository.open(path, commit_message=settings.commit_message)

    return Orchestrator(
        prompts=prompts or QuestionaryPromptSurface(),
        telemetry=telemetry or WizardTelemetry(),
        sessions=AzureSessionProvider(settings, subscription_filter=config.subscriptions),
        git_context_factory=git_context,
        analyzer=RepositoryAnalyzer(TemplateCatalog.load(settings.templates_extra_dir)),
        renderer=JinjaTemplateRenderer(),
        target_client_factory=app_service_client,
        remote_project_client_factory=devops_client,
        workspace_folders=workspace_folders(folders),
        github_host=settings.github_pipeline_host,
        open_browser=settings.open_browser,
        github_base_url=settings.github_base_url,
    )


def _print_result(inputs: WizardInputs) -> None:
    repository = inputs.repository
    resource = inputs.target_resource.resource
    ux.success("Pipeline configured")
    ux.print_summary(
        "Pipeline",
        {
            "Repository": repository.repository_name,
            "Branch": repository.branch,
            "Pipeline file": inputs.pipeline_parameters.pipeline_file_name,
            "Template": inputs.template.label,
            "Commit": repository.commit_id[:12],
            "Organization": inputs.organization_name or None,
            "Project": inputs.project.name if inputs.project else None,
            "Deploys to": resource.name if resource else None,
            "Run": inputs.queued_pipeline.url if inputs.queued_pipeline else None,
        },
    )


@main_with_error_handling()
def configure_command(
    folders: Sequence[str] = (),
    *,
    resource_id: str | None = None,
    config_path: str | None = None,
    github_host: str | None = None,
    no_browser: bool = False,
) -> int:
    """
    Run the configure wizard.

    Returns:
        Exit code (0 for success)
    """
    config = load_config(config_path)
    settings = config.apply_to(get_settings())
    updates: dict[str, object] = {}
    if github_host:
        updates["github_pipeline_host"] = github_host
    if no_browser:
        updates["open_browser"] = False
    if updates:
        settings = settings.model_copy(update=updates)

    ux.header("Configure CI/CD pipeline", subtitle="Ctrl-C to cancel")

    orchestrator = build_orchestrator(settings, config, folders)
    target_node = TargetNode(resource_id=resource_id) if resource_id else None
    inputs = asyncio.run(configure_pipeline(orchestrator, target_node))

    _print_result(inputs)
    return 0


def register_configure_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register configure subcommand parser."""
    parser = subparsers.add_parser(
        "configure",
        help="Set up a CI/CD pipeline for a local git repository",
    )
    parser.add_argument(
        "folders",
        nargs="*",
        metavar="FOLDER",
        help="Workspace folder(s); with several you pick one, with none you browse",
    )
    parser.add_argument(
        "--resource-id",
        help="Azure resource id of the App Service to deploy to (skips target selection)",
    )
    parser.add_argument("--config", dest="config_path", help="Path to config file")
    parser.add_argument(
        "--github-host",
        choices=[str(host) for host in PipelineHost],
        help="Pipeline host for GitHub repositories (default: github-actions)",
    )
    parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Do not open the pipeline in a browser",
    )


def handle_configure_command(args: argparse.Namespace) -> int:
    """Handle configure command from CLI args."""
    return configure_command(
        args.folders,
        resource_id=getattr(args, "resource_id", None),
        config_path=getattr(args, "config_path", None),
        github_host=getattr(args, "github_host", None),
        no_browser=getattr(args, "no_browser", False),
    )
