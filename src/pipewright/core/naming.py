"""Deterministic and process-unique names for generated remote resources."""

from __future__ import annotations

import re
import uuid

# Generated once per process; disambiguates names across repeated runs in one session.
UNIQUE_RESOURCE_NAME_SUFFIX: str = uuid.uuid4().hex[:5]

ORGANIZATION_NAME_MAX_LENGTH = 50
PROJECT_NAME_MAX_LENGTH = 64
DEFAULT_PROJECT_NAME = "AzurePipelines"

_NON_ORG_CHARS = re.compile(r"[^a-zA-Z0-9-]")


def user_name_local_part(user_id: str) -> str:
    """Return the part of an e-mail style user id before ``@``."""
    return user_id.split("@", 1)[0]


def generate_devops_organization_name(user_name: str, repository_name: str) -> str:
    """Derive an organization name from a user name and repository name.

    Pure function: the same inputs always produce the same name.
    """
    repository_suffix = repository_name.replace("/", "-").strip()
    name = f"{user_name}-{repository_suffix}".strip()
    name = _NON_ORG_CHARS.sub("", name).lstrip("-")
    return name[:ORGANIZATION_NAME_MAX_LENGTH].rstrip("-")


def generate_devops_project_name(repository_name: str | None = None) -> str:
    """Derive a project name for a new organization from the repository name."""
    if not repository_name:
        return DEFAULT_PROJECT_NAME

    suffix = repository_name.split("/")[-1].strip()
    # project names cannot end with '.' or '_'
    suffix = suffix.rstrip("._")
    return f"{DEFAULT_PROJECT_NAME}-{suffix}"[:PROJECT_NAME_MAX_LENGTH]


def service_connection_name(repository_name: str, suffix: str) -> str:
    """Name for a service connection created on behalf of a repository."""
    return f"{repository_name.replace('/', '-')}-{suffix}"
