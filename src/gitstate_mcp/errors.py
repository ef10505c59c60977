"""Domain-specific error types for git state operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Supported error codes exposed by gitstate tools."""

    NOT_A_REPOSITORY = "NOT_A_REPOSITORY"
    COMMAND_FAILED = "COMMAND_FAILED"
    COMMAND_TIMEOUT = "COMMAND_TIMEOUT"
    PATH_OUTSIDE_REPOSITORY = "PATH_OUTSIDE_REPOSITORY"
    INVALID_INPUT = "INVALID_INPUT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass
class GitStateError(Exception):
    """Structured exception carrying a stable error contract."""

    code: ErrorCode
    message: str
    suggestion: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message

    def to_payload(self) -> dict[str, Any]:
        return {
            "status": "error",
            "error_code": self.code.value,
            "message": self.message,
            "suggestion": self.suggestion or "",
            "details": self.details,
        }


@dataclass
class GitCommandError(GitStateError):
    """Raised by the command runner when a git invocation does not succeed."""
