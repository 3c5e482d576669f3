"""
structlog setup for the pipewright CLI.

Log records go to stderr so they never interleave with prompts on stdout.
"""

import logging
import sys
from typing import Any

import structlog

# Chatty at INFO; only their warnings are interesting
NOISY_LOGGERS = ("httpx", "httpcore", "git")


def level_for(*, verbose: bool = False, debug: bool = False) -> int:
    """Map the CLI verbosity flags to a logging level."""
    if debug:
        return logging.DEBUG
    if verbose:
        return logging.INFO
    return logging.WARNING


def configure_logging(level: int | str = logging.WARNING, *, json: bool = False) -> None:
    """Configure the structlog/standard logging bridge."""

    renderer: Any = (
        structlog.processors.JSONRenderer()
        if json
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    numeric_level = logging.getLevelName(level) if isinstance(level, str) else level
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(int(numeric_level), logging.WARNING))


def bind_context(**kwargs: Any) -> structlog.stdlib.BoundLogger:
    """Attach fields to every event logged for the rest of this run.

    Returns a logger already bound to the same fields.
    """
    structlog.contextvars.bind_contextvars(**kwargs)
    return structlog.get_logger().bind(**kwargs)
