"""Local git plumbing backed by GitPython."""

from __future__ import annotations

import asyncio
from pathlib import Path

import git
import structlog

from pipewright.core.errors import NotAGitRepositoryError, NotConfiguredError, PushRejectedError
from pipewright.wizard.models import GitBranchDetails, GitRemote, GitRepositoryParameters

logger = structlog.get_logger()

DEFAULT_COMMIT_MESSAGE = "Set up CI/CD pipeline"

_PUSH_FAILURE_FLAGS = (
    git.PushInfo.ERROR | git.PushInfo.REJECTED | git.PushInfo.REMOTE_REJECTED | git.PushInfo.REMOTE_FAILURE
)


def get_available_file_name(directory: Path, file_name: str) -> str:
    """Return ``file_name`` or the first ``<stem>-<n><suffix>`` not present in ``directory``."""
    candidate = directory / file_name
    if not candidate.exists():
        return file_name

    stem, suffix = candidate.stem, candidate.suffix
    counter = 1
    while (directory / f"{stem}-{counter}{suffix}").exists():
        counter += 1
    return f"{stem}-{counter}{suffix}"


class LocalGitRepository:
    """Git operations for the repository containing a workspace folder."""

    def __init__(self, repo: git.Repo, *, commit_message: str = DEFAULT_COMMIT_MESSAGE) -> None:
        self._repo = repo
        self._commit_message = commit_message

    @classmethod
    async def open(
        cls, workspace_path: Path, *, commit_message: str = DEFAULT_COMMIT_MESSAGE
    ) -> LocalGitRepository:
        try:
            repo = await asyncio.to_thread(git.Repo, workspace_path, search_parent_directories=True)
        except (git.InvalidGitRepositoryError, git.NoSuchPathError) as exc:
            raise NotAGitRepositoryError(str(workspace_path)) from exc
        return cls(repo, commit_message=commit_message)

    async def branch_details(self) -> GitBranchDetails:
        def _details() -> GitBranchDetails:
            try:
                branch = self._repo.active_branch
            except TypeError as exc:
                raise NotConfiguredError(
                    "HEAD is detached. Check out a branch before configuring a pipeline."
                ) from exc
            tracking = branch.tracking_branch()
            return GitBranchDetails(
                branch=branch.name,
                remote_name=tracking.remote_name if tracking is not None else None,
            )

        return await asyncio.to_thread(_details)

    async def remotes(self) -> list[GitRemote]:
        return [GitRemote(name=remote.name) for remote in self._repo.remotes]

    async def remote_url(self, remote_name: str) -> str | None:
        def _url() -> str | None:
            try:
                return next(iter(self._repo.remote(remote_name).urls), None)
            except (ValueError, git.GitCommandError):
                return None

        return await asyncio.to_thread(_url)

    async def root_directory(self) -> Path:
        return Path(self._repo.working_tree_dir or self._repo.git_dir).resolve()

    async def add_file(self, content: str, file_path: Path) -> str:
        """Write ``content`` to ``file_path`` and stage it.

        Returns the path relative to the repository root, POSIX style.
        """
        root = await self.root_directory()
        target = file_path if file_path.is_absolute() else root / file_path

        def _write() -> str:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
            relative = target.resolve().relative_to(root).as_posix()
            self._repo.index.add([relative])
            return relative

        relative_path = await asyncio.to_thread(_write)
        logger.debug("pipeline_file_written", path=relative_path)
        return relative_path

    async def commit_and_push(self, file_name: str, repository: GitRepositoryParameters) -> str:
        """Commit ``file_name`` and push the branch; returns the commit id.

        Raises:
            PushRejectedError: the remote refused the push
        """

        def _commit_and_push() -> str:
            self._repo.index.add([file_name])
            if not self._repo.head.is_valid() or self._repo.index.diff("HEAD"):
                commit_id = self._repo.index.commit(self._commit_message).hexsha
            else:
                # an earlier attempt committed but failed to push
                commit_id = self._repo.head.commit.hexsha

            refspec = f"{repository.branch}:{repository.branch}"
            try:
                results = self._repo.remote(repository.remote_name).push(refspec=refspec)
            except git.GitCommandError as exc:
                raise PushRejectedError(
                    f"git push to {repository.remote_name}/{repository.branch} failed",
                    details={"stderr": (exc.stderr or "").strip()},
                ) from exc

            for info in results:
                if info.flags & _PUSH_FAILURE_FLAGS:
                    raise PushRejectedError(
                        f"git push to {repository.remote_name}/{repository.branch} was rejected: "
                        f"{info.summary.strip()}"
                    )
            return commit_id

        commit_id = await asyncio.to_thread(_commit_and_push)
        logger.info("pipeline_file_pushed", commit_id=commit_id, branch=repository.branch)
        return commit_id
