"""Roll per-file statuses up to their ancestor directories."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from .models import FileStatus


def aggregate(
    per_file_status: Mapping[str, FileStatus],
    repo_root: str | Path,
) -> dict[str, FileStatus]:
    """Return file statuses plus the most severe status of every directory below `repo_root`.

    The root itself is not decorated. Paths outside `repo_root` keep their
    own entry and contribute nothing to any directory.
    """
    root = Path(os.path.normpath(str(repo_root)))
    result: dict[str, FileStatus] = dict(per_file_status)

    for file_path, status in per_file_status.items():
        parent = Path(os.path.normpath(file_path)).parent
        while parent != root and root in parent.parents:
            key = str(parent)
            existing = result.get(key)
            result[key] = status if existing is None else FileStatus.worst(existing, status)
            parent = parent.parent

    return result
