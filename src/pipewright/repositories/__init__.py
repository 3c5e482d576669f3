"""Repository hosts and local git access."""

from pipewright.repositories.hosts import (
    AzureReposUrlDetails,
    classify_remote_url,
    github_repository_id,
    is_azure_repos_url,
    is_github_url,
    parse_azure_repos_url,
)
from pipewright.repositories.local_git import (
    LocalGitRepository,
    get_available_file_name,
)

__all__ = [
    "AzureReposUrlDetails",
    "classify_remote_url",
    "github_repository_id",
    "is_azure_repos_url",
    "is_github_url",
    "parse_azure_repos_url",
    "LocalGitRepository",
    "get_available_file_name",
]
