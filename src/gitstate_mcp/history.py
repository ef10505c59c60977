"""Commit history retrieval and log parsing."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any

from .constants import (
    DEFAULT_MAX_COUNT,
    LOG_FIELD_SEPARATOR,
    LOG_FORMAT,
    LOG_FORMAT_FIELDS,
    MAX_MAX_COUNT,
    MIN_MAX_COUNT,
    REF_SEPARATOR,
)
from .errors import GitCommandError
from .models import Commit
from .runner import CommandRunner

logger = logging.getLogger(__name__)


def clamp_max_count(value: Any) -> int:
    """Floor and clamp a requested commit count into the supported range.

    Values that cannot be read as a number fall back to the default rather
    than being rejected.
    """
    if isinstance(value, int):
        return max(MIN_MAX_COUNT, min(value, MAX_MAX_COUNT))
    try:
        number = float(value)
    except OverflowError:
        # Exact numbers too large for a float (e.g. Fraction) still clamp by sign.
        return MIN_MAX_COUNT if str(value).strip().startswith("-") else MAX_MAX_COUNT
    except (TypeError, ValueError):
        return DEFAULT_MAX_COUNT
    if math.isnan(number):
        return DEFAULT_MAX_COUNT
    if math.isinf(number):
        return MAX_MAX_COUNT if number > 0 else MIN_MAX_COUNT
    return max(MIN_MAX_COUNT, min(math.floor(number), MAX_MAX_COUNT))


def parse_log_line(line: str) -> Commit:
    fields = line.split(LOG_FIELD_SEPARATOR)
    # Short records are padded so every field has an empty-string default.
    fields += [""] * (len(LOG_FORMAT_FIELDS) - len(fields))
    commit_hash, short_hash, subject, author, relative_date, refs_raw, parents_raw = fields[
        : len(LOG_FORMAT_FIELDS)
    ]
    return Commit(
        hash=commit_hash,
        short_hash=short_hash,
        subject=subject,
        author=author,
        relative_date=relative_date,
        refs=[ref for ref in refs_raw.split(REF_SEPARATOR) if ref],
        parents=[parent for parent in parents_raw.split(" ") if parent],
    )


def parse_log_output(raw: str) -> list[Commit]:
    """Parse sentinel-delimited `git log` output into commits."""
    return [parse_log_line(line) for line in raw.split("\n") if line.strip()]


class HistoryFetcher:
    """Repository detection and commit listing."""

    def __init__(self, runner: CommandRunner | None = None) -> None:
        self.runner = runner or CommandRunner()

    def is_repo(self, cwd: str | Path) -> bool:
        try:
            self.runner.run(cwd, ["rev-parse", "--is-inside-work-tree"])
        except GitCommandError:
            return False
        return True

    def get_commits(self, cwd: str | Path, max_count: Any = DEFAULT_MAX_COUNT) -> list[Commit]:
        """Return up to `max_count` commits across all refs, newest first.

        Any command failure is reported as an empty history.
        """
        safe_max = clamp_max_count(max_count)
        try:
            raw = self.runner.run(
                cwd,
                ["log", "--all", f"--format={LOG_FORMAT}", f"--max-count={safe_max}"],
            )
        except GitCommandError as exc:
            logger.debug("Commit history unavailable for %s: %s", cwd, exc)
            return []
        if not raw:
            return []
        return parse_log_output(raw)
