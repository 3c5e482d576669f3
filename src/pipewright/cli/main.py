"""Command-line entry point."""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

from pipewright import __version__
from pipewright.cli.configure import handle_configure_command, register_configure_parser
from pipewright.cli.templates import handle_templates_command, register_templates_parser
from pipewright.logging import bind_context, configure_logging, level_for


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pipewright",
        description="Configure a CI/CD pipeline that deploys a local repository to Azure App Service",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr")
    parser.add_argument("--debug", action="store_true", help="Log debug detail to stderr")
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON")
    subparsers = parser.add_subparsers(dest="command")

    register_configure_parser(subparsers)
    register_templates_parser(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(level_for(verbose=args.verbose, debug=args.debug), json=args.json_logs)

    if args.command == "configure":
        bind_context(command="configure")
        sys.exit(handle_configure_command(args))

    if args.command == "templates":
        bind_context(command="templates")
        sys.exit(handle_templates_command(args))

    parser.print_help()
    sys.exit(1)


if __name__ == "__main__":
    main()
