"""Pydantic models for git state values and tool inputs and outputs."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import DEFAULT_MAX_COUNT


class FileStatus(str, Enum):
    """Working-tree status of a path, declared in ascending severity."""

    UNTRACKED = "untracked"
    ADDED = "added"
    RENAMED = "renamed"
    MODIFIED = "modified"
    DELETED = "deleted"
    CONFLICT = "conflict"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    @classmethod
    def worst(cls, existing: FileStatus, incoming: FileStatus) -> FileStatus:
        """Return the more severe status; ties keep `existing`."""
        if incoming.severity > existing.severity:
            return incoming
        return existing


_SEVERITY = {status: index for index, status in enumerate(FileStatus)}


class ValueModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class Commit(ValueModel):
    hash: str
    short_hash: str = ""
    subject: str = ""
    author: str = ""
    relative_date: str = ""
    refs: list[str] = Field(default_factory=list)
    parents: list[str] = Field(default_factory=list)

    @property
    def is_root(self) -> bool:
        return not self.parents

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1


class Branch(ValueModel):
    name: str
    is_current: bool = False


class GraphLine(ValueModel):
    from_lane: int = Field(..., ge=0)
    from_row: int = Field(..., ge=0)
    to_lane: int = Field(..., ge=0)
    to_row: int = Field(..., ge=1)
    color_index: int = Field(..., ge=0)
    color: str


class GraphRow(ValueModel):
    commit: Commit
    lane: int = Field(..., ge=0)
    color_index: int = Field(..., ge=0)
    color: str
    lines: list[GraphLine] = Field(default_factory=list)


class RepositoryRequest(BaseModel):
    directory: str = Field(..., description="Path inside the repository working tree")

    @field_validator("directory")
    @classmethod
    def _directory_not_blank(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("directory must not be blank")
        return stripped


class CommitsRequest(RepositoryRequest):
    # Clamped by the history fetcher, never rejected.
    max_count: Any = DEFAULT_MAX_COUNT


class StatusRequest(RepositoryRequest):
    aggregate: bool = True


class FileAtHeadRequest(RepositoryRequest):
    path: str = Field(..., min_length=1)


class BaseToolResponse(BaseModel):
    status: Literal["success", "error"]
    message: str = ""
    error_code: str = ""
    suggestion: str = ""
    details: dict[str, Any] = Field(default_factory=dict)


class RepoResponse(BaseToolResponse):
    directory: str = ""
    is_repo: bool = False


class CommitsResponse(BaseToolResponse):
    count: int = 0
    commits: list[Commit] = Field(default_factory=list)


class BranchesResponse(BaseToolResponse):
    count: int = 0
    current_branch: str = ""
    branches: list[Branch] = Field(default_factory=list)


class StatusResponse(BaseToolResponse):
    aggregated: bool = False
    count: int = 0
    entries: dict[str, FileStatus] = Field(default_factory=dict)


class GraphResponse(BaseToolResponse):
    count: int = 0
    width: int = 1
    rows: list[GraphRow] = Field(default_factory=list)


class FileAtHeadResponse(BaseToolResponse):
    path: str = ""
    found: bool = False
    content: str = ""


class SnapshotResponse(BaseToolResponse):
    is_repo: bool = False
    current_branch: str = ""
    commits: list[Commit] = Field(default_factory=list)
    branches: list[Branch] = Field(default_factory=list)
    rows: list[GraphRow] = Field(default_factory=list)
    width: int = 1
