"""Subprocess wrapper for invoking the git command-line tool."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from pathlib import Path

from .constants import GIT_EXECUTABLE, GIT_TIMEOUT_SECONDS
from .errors import ErrorCode, GitCommandError

logger = logging.getLogger(__name__)


class CommandRunner:
    """Run git with an explicit argument vector and a bounded timeout."""

    def __init__(
        self,
        executable: str = GIT_EXECUTABLE,
        timeout_seconds: float = GIT_TIMEOUT_SECONDS,
    ) -> None:
        self.executable = executable
        self.timeout_seconds = timeout_seconds

    def run(self, cwd: str | Path, args: Sequence[str]) -> str:
        """Return right-trimmed stdout, or raise `GitCommandError`.

        Never goes through a shell, and never returns partial output: a
        non-zero exit, a timeout, or a spawn failure all raise.
        """
        argv = [self.executable, *args]
        logger.debug("Running %s in %s", argv, cwd)
        try:
            completed = subprocess.run(
                argv,
                cwd=str(cwd),
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout_seconds,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            logger.debug("git %s timed out after %ss", args[:1], self.timeout_seconds)
            raise GitCommandError(
                ErrorCode.COMMAND_TIMEOUT,
                f"git command timed out after {self.timeout_seconds:g}s",
                "Retry the request; large repositories may need a narrower query.",
                {"args": list(args), "cwd": str(cwd)},
            ) from exc
        except OSError as exc:
            logger.debug("Unable to spawn git in %s: %s", cwd, exc)
            raise GitCommandError(
                ErrorCode.COMMAND_FAILED,
                f"Unable to run git: {exc}",
                "Ensure git is installed and the directory exists.",
                {"args": list(args), "cwd": str(cwd)},
            ) from exc

        if completed.returncode != 0:
            stderr = (completed.stderr or "").strip()
            logger.debug("git %s exited with %s: %s", args[:1], completed.returncode, stderr)
            raise GitCommandError(
                ErrorCode.COMMAND_FAILED,
                stderr or f"git exited with status {completed.returncode}",
                "Check that the directory is inside a git working tree.",
                {"args": list(args), "cwd": str(cwd), "returncode": completed.returncode},
            )

        return (completed.stdout or "").rstrip()
