"""Engine facade combining fetchers, aggregation, and graph layout."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from .aggregate import aggregate
from .branches import BranchFetcher
from .errors import ErrorCode, GitCommandError, GitStateError
from .graph import build_graph, graph_width
from .history import HistoryFetcher
from .models import (
    Branch,
    BranchesResponse,
    CommitsRequest,
    CommitsResponse,
    FileAtHeadRequest,
    FileAtHeadResponse,
    GraphResponse,
    RepoResponse,
    RepositoryRequest,
    SnapshotResponse,
    StatusRequest,
    StatusResponse,
)
from .runner import CommandRunner
from .status import StatusFetcher

logger = logging.getLogger(__name__)


class GitStateEngine:
    """Main service exposing read-only git state operations."""

    def __init__(self, runner: CommandRunner | None = None) -> None:
        """Create an engine whose fetchers share one command runner."""
        self.runner = runner or CommandRunner()
        self.history = HistoryFetcher(self.runner)
        self.branches = BranchFetcher(self.runner)
        self.status = StatusFetcher(self.runner)

    def is_repo(self, request: RepositoryRequest) -> RepoResponse:
        directory = self._normalize_directory(request.directory)
        is_repo = self.history.is_repo(directory)
        return RepoResponse(
            status="success",
            message=(
                f"{directory} is inside a git working tree"
                if is_repo
                else f"{directory} is not a git repository"
            ),
            directory=directory,
            is_repo=is_repo,
        )

    def get_commits(self, request: CommitsRequest) -> CommitsResponse:
        directory = self._normalize_directory(request.directory)
        commits = self.history.get_commits(directory, request.max_count)
        return CommitsResponse(
            status="success",
            message=f"Loaded {len(commits)} commits",
            count=len(commits),
            commits=commits,
        )

    def get_branches(self, request: RepositoryRequest) -> BranchesResponse:
        directory = self._normalize_directory(request.directory)
        branches = self.branches.get_branches(directory)
        return BranchesResponse(
            status="success",
            message=f"Loaded {len(branches)} branches",
            count=len(branches),
            current_branch=self._current_branch_name(branches),
            branches=branches,
        )

    def get_status(self, request: StatusRequest) -> StatusResponse:
        """Return per-file status, rolled up to directories unless disabled."""
        directory = self._normalize_directory(request.directory)
        entries = self.status.get_status(directory)
        if request.aggregate:
            entries = aggregate(entries, directory)
        return StatusResponse(
            status="success",
            message=f"Loaded status for {len(entries)} paths",
            aggregated=request.aggregate,
            count=len(entries),
            entries=entries,
        )

    def get_graph(self, request: CommitsRequest) -> GraphResponse:
        directory = self._normalize_directory(request.directory)
        rows = build_graph(self.history.get_commits(directory, request.max_count))
        return GraphResponse(
            status="success",
            message=f"Built graph for {len(rows)} commits",
            count=len(rows),
            width=graph_width(rows),
            rows=rows,
        )

    def get_file_at_head(self, request: FileAtHeadRequest) -> FileAtHeadResponse:
        """Return a file's committed content at HEAD.

        A missing file, an empty repository or any other command failure is
        reported as `found=False`; only paths outside the directory are errors.
        """
        directory = self._normalize_directory(request.directory)
        relative_path = self._relative_to_directory(directory, request.path)
        try:
            content = self.runner.run(directory, ["show", f"HEAD:{relative_path}"])
        except GitCommandError as exc:
            logger.debug("No HEAD content for %s in %s: %s", relative_path, directory, exc)
            return FileAtHeadResponse(
                status="success",
                message=f"{relative_path} is not present at HEAD",
                path=relative_path,
                found=False,
            )
        return FileAtHeadResponse(
            status="success",
            message=f"Loaded {relative_path} at HEAD",
            path=relative_path,
            found=True,
            content=content,
        )

    def get_snapshot(self, request: CommitsRequest) -> SnapshotResponse:
        """Load commits, branches and graph together; nothing is fetched outside a repository."""
        directory = self._normalize_directory(request.directory)
        if not self.history.is_repo(directory):
            return SnapshotResponse(
                status="success",
                message=f"{directory} is not a git repository",
                is_repo=False,
            )

        commits = self.history.get_commits(directory, request.max_count)
        branches = self.branches.get_branches(directory)
        rows = build_graph(commits)
        return SnapshotResponse(
            status="success",
            message=f"Loaded {len(commits)} commits and {len(branches)} branches",
            is_repo=True,
            current_branch=self._current_branch_name(branches),
            commits=commits,
            branches=branches,
            rows=rows,
            width=graph_width(rows),
        )

    def _normalize_directory(self, directory: str) -> str:
        return str(Path(directory).expanduser().resolve(strict=False))

    def _relative_to_directory(self, directory: str, path: str) -> str:
        candidate = Path(path).expanduser()
        if not candidate.is_absolute():
            candidate = Path(directory) / candidate
        relative = os.path.relpath(os.path.normpath(str(candidate)), directory)
        if relative == ".." or relative.startswith(f"..{os.sep}"):
            raise GitStateError(
                ErrorCode.PATH_OUTSIDE_REPOSITORY,
                f"{path} is outside {directory}",
                "Provide a path inside the repository directory.",
                {"directory": directory, "path": path},
            )
        return Path(relative).as_posix()

    def _current_branch_name(self, branches: list[Branch]) -> str:
        return next((branch.name for branch in branches if branch.is_current), "")
