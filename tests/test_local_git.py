"""Tests for GitPython-backed local repository access."""

from pathlib import Path

import git
import pytest
from fakes import github_repository

from pipewright.core.errors import NotAGitRepositoryError, NotConfiguredError, PushRejectedError
from pipewright.repositories.local_git import LocalGitRepository, get_available_file_name


@pytest.fixture
def remote_repo(tmp_path):
    return git.Repo.init(tmp_path / "remote.git", bare=True, initial_branch="main")


@pytest.fixture
def work_repo(tmp_path, remote_repo):
    repo = git.Repo.init(tmp_path / "work", initial_branch="main")
    with repo.config_writer() as config:
        config.set_value("user", "name", "Test User")
        config.set_value("user", "email", "test@example.com")
    readme = Path(repo.working_tree_dir) / "README.md"
    readme.write_text("# shop\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")
    origin = repo.create_remote("origin", remote_repo.git_dir)
    origin.push(refspec="main:main")
    repo.git.branch("--set-upstream-to=origin/main", "main")
    return repo


def test_get_available_file_name(tmp_path):
    assert get_available_file_name(tmp_path, "azure-pipelines.yml") == "azure-pipelines.yml"

    (tmp_path / "azure-pipelines.yml").write_text("")
    assert get_available_file_name(tmp_path, "azure-pipelines.yml") == "azure-pipelines-1.yml"

    (tmp_path / "azure-pipelines-1.yml").write_text("")
    assert get_available_file_name(tmp_path, "azure-pipelines.yml") == "azure-pipelines-2.yml"


@pytest.mark.asyncio
async def test_open_outside_repository(tmp_path):
    with pytest.raises(NotAGitRepositoryError):
        await LocalGitRepository.open(tmp_path / "missing")


@pytest.mark.asyncio
async def test_open_from_subfolder(work_repo):
    sub = Path(work_repo.working_tree_dir) / "src" / "web"
    sub.mkdir(parents=True)

    local = await LocalGitRepository.open(sub)

    assert await local.root_directory() == Path(work_repo.working_tree_dir).resolve()


@pytest.mark.asyncio
async def test_branch_details_with_tracking_branch(work_repo):
    local = await LocalGitRepository.open(Path(work_repo.working_tree_dir))

    details = await local.branch_details()

    assert details.branch == "main"
    assert details.remote_name == "origin"


@pytest.mark.asyncio
async def test_branch_details_without_tracking_branch(work_repo):
    work_repo.git.checkout("-b", "feature")
    local = await LocalGitRepository.open(Path(work_repo.working_tree_dir))

    details = await local.branch_details()

    assert details.branch == "feature"
    assert details.remote_name is None


@pytest.mark.asyncio
async def test_branch_details_detached_head(work_repo):
    work_repo.git.checkout(work_repo.head.commit.hexsha)
    local = await LocalGitRepository.open(Path(work_repo.working_tree_dir))

    with pytest.raises(NotConfiguredError):
        await local.branch_details()


@pytest.mark.asyncio
async def test_remotes_and_urls(work_repo, remote_repo):
    local = await LocalGitRepository.open(Path(work_repo.working_tree_dir))

    assert [r.name for r in await local.remotes()] == ["origin"]
    assert await local.remote_url("origin") == remote_repo.git_dir
    assert await local.remote_url("upstream") is None


@pytest.mark.asyncio
async def test_add_commit_and_push(work_repo, remote_repo):
    root = Path(work_repo.working_tree_dir).resolve()
    local = await LocalGitRepository.open(root, commit_message="Add pipeline")

    file_name = await local.add_file("trigger:\n- main\n", root / ".github" / "workflows" / "shop.yml")
    assert file_name == ".github/workflows/shop.yml"
    assert (root / file_name).read_text() == "trigger:\n- main\n"

    repository = github_repository(root)
    commit_id = await local.commit_and_push(file_name, repository)

    assert remote_repo.commit("main").hexsha == commit_id
    assert remote_repo.commit("main").message.strip() == "Add pipeline"


@pytest.mark.asyncio
async def test_push_rejected_when_behind(tmp_path, work_repo, remote_repo):
    # Another clone moves the remote branch ahead
    other = git.Repo.clone_from(remote_repo.git_dir, tmp_path / "other")
    with other.config_writer() as config:
        config.set_value("user", "name", "Other User")
        config.set_value("user", "email", "other@example.com")
    (Path(other.working_tree_dir) / "CHANGELOG.md").write_text("0.1\n")
    other.index.add(["CHANGELOG.md"])
    other.index.commit("Changelog")
    other.remote("origin").push(refspec="main:main")

    root = Path(work_repo.working_tree_dir).resolve()
    local = await LocalGitRepository.open(root)
    file_name = await local.add_file("steps: []\n", root / "azure-pipelines.yml")

    with pytest.raises(PushRejectedError):
        await local.commit_and_push(file_name, github_repository(root))

    # A retry after the failure reuses the local commit instead of making another
    head_before = work_repo.head.commit.hexsha
    with pytest.raises(PushRejectedError):
        await local.commit_and_push(file_name, github_repository(root))
    assert work_repo.head.commit.hexsha == head_before
