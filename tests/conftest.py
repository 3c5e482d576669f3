"""Root test configuration and shared fixtures."""

import logging

import pytest
import structlog
from fakes import FakeAppService, FakeDevOps, FakeSessions

from pipewright.telemetry import WizardTelemetry


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


@pytest.fixture
def telemetry():
    return WizardTelemetry()


@pytest.fixture
def sessions():
    return FakeSessions()


@pytest.fixture
def app_service():
    return FakeAppService()


@pytest.fixture
def devops():
    return FakeDevOps()


@pytest.fixture
def repo_dir(tmp_path):
    """A workspace folder that looks like a Node.js project."""
    root = tmp_path / "shop"
    root.mkdir()
    (root / "package.json").write_text('{"name": "shop"}\n')
    return root
