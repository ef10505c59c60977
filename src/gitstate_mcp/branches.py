"""Local branch listing."""

from __future__ import annotations

import logging
from pathlib import Path

from .errors import GitCommandError
from .models import Branch
from .runner import CommandRunner

logger = logging.getLogger(__name__)

CURRENT_BRANCH_MARKER = "* "


def parse_branch_output(raw: str) -> list[Branch]:
    branches: list[Branch] = []
    for line in raw.split("\n"):
        if not line.strip():
            continue
        if line.startswith(CURRENT_BRANCH_MARKER):
            branches.append(Branch(name=line[len(CURRENT_BRANCH_MARKER):].strip(), is_current=True))
        else:
            branches.append(Branch(name=line.strip(), is_current=False))
    return branches


class BranchFetcher:
    """List local branches and flag the checked-out one."""

    def __init__(self, runner: CommandRunner | None = None) -> None:
        self.runner = runner or CommandRunner()

    def get_branches(self, cwd: str | Path) -> list[Branch]:
        try:
            raw = self.runner.run(cwd, ["branch", "--no-color"])
        except GitCommandError as exc:
            logger.debug("Branch listing unavailable for %s: %s", cwd, exc)
            return []
        if not raw:
            return []
        return parse_branch_output(raw)
