from __future__ import annotations

import shutil
import subprocess
from collections.abc import Sequence
from pathlib import Path

import pytest

from gitstate_mcp.errors import ErrorCode, GitCommandError


class FakeRunner:
    """Command runner double returning canned output per git subcommand."""

    def __init__(self, outputs: dict[str, str] | None = None, fail: bool = False) -> None:
        self.outputs = outputs or {}
        self.fail = fail
        self.calls: list[tuple[str, list[str]]] = []

    def run(self, cwd: str | Path, args: Sequence[str]) -> str:
        self.calls.append((str(cwd), list(args)))
        if self.fail or args[0] not in self.outputs:
            raise GitCommandError(ErrorCode.COMMAND_FAILED, f"git {args[0]} failed")
        return self.outputs[args[0]]


@pytest.fixture()
def fake_runner() -> FakeRunner:
    return FakeRunner()


def _git(repo: Path, *args: str) -> str:
    completed = subprocess.run(
        [
            "git",
            "-c",
            "user.name=Test Author",
            "-c",
            "user.email=author@example.com",
            "-c",
            "commit.gpgsign=false",
            *args,
        ],
        cwd=repo,
        capture_output=True,
        text=True,
        check=True,
    )
    return completed.stdout.strip()


@pytest.fixture()
def git_repo(tmp_path: Path) -> Path:
    """Repository with a root commit on main and a merged feature branch."""
    if shutil.which("git") is None:
        pytest.skip("git executable not available")

    repo = (tmp_path / "repo").resolve()
    repo.mkdir()
    _git(repo, "init", "-q")
    _git(repo, "symbolic-ref", "HEAD", "refs/heads/main")

    (repo / "README.md").write_text("hello\n", encoding="utf-8")
    _git(repo, "add", "README.md")
    _git(repo, "commit", "-q", "-m", "Initial commit")

    _git(repo, "checkout", "-q", "-b", "feature")
    (repo / "src").mkdir()
    (repo / "src" / "app.py").write_text("print('feature')\n", encoding="utf-8")
    _git(repo, "add", "src/app.py")
    _git(repo, "commit", "-q", "-m", "Add app")

    _git(repo, "checkout", "-q", "main")
    (repo / "NOTES.md").write_text("notes\n", encoding="utf-8")
    _git(repo, "add", "NOTES.md")
    _git(repo, "commit", "-q", "-m", "Add notes")
    _git(repo, "merge", "-q", "--no-ff", "-m", "Merge feature", "feature")
    return repo


@pytest.fixture()
def run_git():
    """Call git with a fixed identity inside a test repository."""
    return _git
