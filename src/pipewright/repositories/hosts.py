"""
Repository host detection from git remote URLs.

Supported shapes:

Azure Repos
    https://dev.azure.com/{org}/{project}/_git/{repo}
    https://{user}@dev.azure.com/{org}/{project}/_git/{repo}
    https://{org}.visualstudio.com/[DefaultCollection/]{project}/_git/{repo}
    git@ssh.dev.azure.com:v3/{org}/{project}/{repo}
    {org}@vs-ssh.visualstudio.com:v3/{org}/{project}/{repo}

GitHub
    https://github.com/{owner}/{repo}[.git]
    git@github.com:{owner}/{repo}[.git]
    ssh://git@github.com/{owner}/{repo}[.git]
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import unquote

from pipewright.core.errors import RemoteNotConfiguredError, UnrecognizedRepositoryHostError
from pipewright.wizard.models import RepositoryProvider

_SEGMENT = r"[^/\s]+"

AZURE_REPOS_PATTERNS = [
    re.compile(
        rf"^https?://(?:[^@/]+@)?dev\.azure\.com/(?P<org>{_SEGMENT})/(?P<project>{_SEGMENT})"
        rf"/_git/(?P<repo>{_SEGMENT}?)/?$",
        re.IGNORECASE,
    ),
    re.compile(
        rf"^https?://(?:[^@/]+@)?(?P<org>[^./@]+)\.visualstudio\.com/(?:DefaultCollection/)?"
        rf"(?P<project>{_SEGMENT})/_git/(?P<repo>{_SEGMENT}?)/?$",
        re.IGNORECASE,
    ),
    re.compile(
        rf"^(?:ssh://)?[^@\s]+@ssh\.dev\.azure\.com[:/]v3/(?P<org>{_SEGMENT})/(?P<project>{_SEGMENT})"
        rf"/(?P<repo>{_SEGMENT}?)/?$",
        re.IGNORECASE,
    ),
    re.compile(
        rf"^(?:ssh://)?[^@\s]+@vs-ssh\.visualstudio\.com[:/]v3/(?P<org>{_SEGMENT})"
        rf"/(?P<project>{_SEGMENT})/(?P<repo>{_SEGMENT}?)/?$",
        re.IGNORECASE,
    ),
]

GITHUB_PATTERNS = [
    re.compile(
        rf"^https?://(?:[^@/]+@)?(?:www\.)?github\.com/(?P<owner>{_SEGMENT})/(?P<repo>{_SEGMENT}?)"
        r"(?:\.git)?/?$",
        re.IGNORECASE,
    ),
    re.compile(
        rf"^git@github\.com:(?P<owner>{_SEGMENT})/(?P<repo>{_SEGMENT}?)(?:\.git)?/?$",
        re.IGNORECASE,
    ),
    re.compile(
        rf"^ssh://git@github\.com(?::\d+)?/(?P<owner>{_SEGMENT})/(?P<repo>{_SEGMENT}?)(?:\.git)?/?$",
        re.IGNORECASE,
    ),
]


@dataclass(frozen=True)
class AzureReposUrlDetails:
    organization_name: str
    project_name: str
    repository_name: str


def _match(patterns: list[re.Pattern[str]], url: str) -> re.Match[str] | None:
    url = url.strip()
    for pattern in patterns:
        match = pattern.match(url)
        if match:
            return match
    return None


def is_azure_repos_url(url: str) -> bool:
    return _match(AZURE_REPOS_PATTERNS, url) is not None


def parse_azure_repos_url(url: str) -> AzureReposUrlDetails:
    """Split an Azure Repos remote URL into organization, project and repository."""
    match = _match(AZURE_REPOS_PATTERNS, url)
    if match is None:
        raise UnrecognizedRepositoryHostError(url)
    return AzureReposUrlDetails(
        organization_name=unquote(match.group("org")),
        project_name=unquote(match.group("project")),
        repository_name=unquote(match.group("repo")),
    )


def is_github_url(url: str) -> bool:
    return _match(GITHUB_PATTERNS, url) is not None


def github_repository_id(url: str) -> str:
    """Return ``owner/repo`` for a GitHub remote URL."""
    match = _match(GITHUB_PATTERNS, url)
    if match is None:
        raise UnrecognizedRepositoryHostError(url)
    return f"{match.group('owner')}/{match.group('repo')}"


def classify_remote_url(url: str | None) -> RepositoryProvider:
    """
    Classify a remote URL by host.

    Azure Repos is checked before GitHub.

    Raises:
        RemoteNotConfiguredError: URL is empty or missing
        UnrecognizedRepositoryHostError: URL matches no supported host
    """
    if not url or not url.strip():
        raise RemoteNotConfiguredError()
    if is_azure_repos_url(url):
        return RepositoryProvider.AZURE_REPOS
    if is_github_url(url):
        return RepositoryProvider.GITHUB
    raise UnrecognizedRepositoryHostError(url)
