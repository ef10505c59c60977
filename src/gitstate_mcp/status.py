"""Working-tree status retrieval and porcelain parsing."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from .constants import RENAME_ARROW
from .errors import GitCommandError
from .models import FileStatus
from .runner import CommandRunner

logger = logging.getLogger(__name__)

PATH_OFFSET = 3


def classify_status(x: str, y: str) -> FileStatus:
    """Map porcelain XY codes to a single status.

    Rules are checked in order and the first match wins, so `AA` and `DD`
    resolve to conflicts before the added/deleted rules see them.
    """
    if x == "?" and y == "?":
        return FileStatus.UNTRACKED
    if x == "U" or y == "U" or (x == "D" and y == "D") or (x == "A" and y == "A"):
        return FileStatus.CONFLICT
    if x == "D" or y == "D":
        return FileStatus.DELETED
    if x == "R" or y == "R":
        return FileStatus.RENAMED
    if x == "A":
        return FileStatus.ADDED
    return FileStatus.MODIFIED


# Escapes git applies when C-quoting a path, beyond three-digit octal bytes.
_C_ESCAPES = {"a": 7, "b": 8, "t": 9, "n": 10, "v": 11, "f": 12, "r": 13, '"': 34, "\\": 92}


def unquote_path(path: str) -> str:
    """Undo git's C-style quoting of a porcelain path.

    git wraps paths holding spaces, quotes, control characters or non-ASCII
    bytes in double quotes and escapes them; unquoted paths pass through.
    """
    if len(path) < 2 or not (path.startswith('"') and path.endswith('"')):
        return path
    body = path[1:-1]
    buffer = bytearray()
    index = 0
    while index < len(body):
        char = body[index]
        if char != "\\" or index + 1 == len(body):
            buffer += char.encode("utf-8")
            index += 1
            continue
        octal = body[index + 1 : index + 4]
        escaped = body[index + 1]
        if len(octal) == 3 and all(digit in "01234567" for digit in octal):
            buffer.append(int(octal, 8) & 0xFF)
            index += 4
        elif escaped in _C_ESCAPES:
            buffer.append(_C_ESCAPES[escaped])
            index += 2
        else:
            buffer += ("\\" + escaped).encode("utf-8")
            index += 2
    return buffer.decode("utf-8", errors="replace")


def parse_porcelain_line(line: str) -> tuple[str, FileStatus] | None:
    """Return `(relative_path, status)` or None for lines too short to carry a path."""
    if len(line) <= PATH_OFFSET:
        return None
    relative_path = unquote_path(line[PATH_OFFSET:].split(RENAME_ARROW)[-1])
    if not relative_path:
        return None
    return relative_path, classify_status(line[0], line[1])


def parse_porcelain_output(raw: str, cwd: str | Path) -> dict[str, FileStatus]:
    statuses: dict[str, FileStatus] = {}
    for line in raw.split("\n"):
        parsed = parse_porcelain_line(line)
        if parsed is None:
            continue
        relative_path, status = parsed
        statuses[os.path.normpath(os.path.join(str(cwd), relative_path))] = status
    return statuses


class StatusFetcher:
    """Per-file working-tree status keyed by path joined onto `cwd`."""

    def __init__(self, runner: CommandRunner | None = None) -> None:
        self.runner = runner or CommandRunner()

    def get_status(self, cwd: str | Path) -> dict[str, FileStatus]:
        try:
            raw = self.runner.run(cwd, ["status", "--porcelain"])
        except GitCommandError as exc:
            logger.debug("Working-tree status unavailable for %s: %s", cwd, exc)
            return {}
        if not raw:
            return {}
        return parse_porcelain_output(raw, cwd)
