"""CLI command for listing pipeline templates."""

from __future__ import annotations

import argparse
from pathlib import Path

from pipewright.cli.ux import console, error, header, info, print_table
from pipewright.config.loader import load_config
from pipewright.config.settings import get_settings
from pipewright.templates.analyzer import RepositoryAnalyzer, detect_languages
from pipewright.templates.catalog import TemplateCatalog
from pipewright.wizard.models import PipelineHost, PipelineTemplate


def _rows(templates: list[PipelineTemplate]) -> list[list[str]]:
    return [
        [
            t.label,
            t.language,
            str(t.target_type),
            str(t.target_kind) if t.target_kind else "-",
        ]
        for t in templates
    ]


def list_templates_command(
    pipeline_host: str | None = None,
    path: str | None = None,
    config_path: str | None = None,
) -> int:
    """List the pipeline templates, optionally only those matching a folder.

    Returns:
        Exit code (0 for success)
    """
    settings = load_config(config_path).apply_to(get_settings())
    try:
        catalog = TemplateCatalog.load(settings.templates_extra_dir)
    except (OSError, ValueError) as e:
        error(f"Error loading templates: {e}")
        return 1

    hosts = [pipeline_host] if pipeline_host else catalog.hosts()
    folder = Path(path).expanduser().resolve() if path else None
    analyzer = RepositoryAnalyzer(catalog)

    header("Pipeline Templates", subtitle=str(folder) if folder else None)
    if folder is not None:
        info(f"Detected languages: {', '.join(sorted(detect_languages(folder)))}")

    shown = 0
    for host in hosts:
        templates = (
            analyzer.applicable_templates(folder, host) if folder is not None else catalog.for_host(host)
        )
        if not templates:
            continue
        shown += len(templates)
        console.print()
        print_table(host, ["Template", "Language", "Target", "Kind"], _rows(templates))

    if not shown:
        info("No templates available")
    return 0


def register_templates_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register templates subcommand parser."""
    parser = subparsers.add_parser("templates", help="List available pipeline templates")
    parser.add_argument(
        "--host",
        dest="pipeline_host",
        choices=[str(host) for host in PipelineHost],
        help="Only list templates for this pipeline host",
    )
    parser.add_argument("--path", help="Only list templates that apply to this folder")
    parser.add_argument("--config", dest="config_path", help="Path to config file")


def handle_templates_command(args: argparse.Namespace) -> int:
    """Handle templates command from CLI args."""
    return list_templates_command(
        pipeline_host=getattr(args, "pipeline_host", None),
        path=getattr(args, "path", None),
        config_path=getattr(args, "config_path", None),
    )
