"""
CLI commands for pipewright.
"""

from pipewright.cli.configure import configure_command
from pipewright.cli.templates import list_templates_command

__all__ = [
    "configure_command",
    "list_templates_command",
]
