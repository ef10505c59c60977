"""MCP server entrypoint and tool definitions for gitstate."""

from __future__ import annotations

import argparse
import json
import logging
import time
import uuid
from typing import Annotated, Any, Callable

from mcp.server.fastmcp import FastMCP
from pydantic import Field, ValidationError

from .engine import GitStateEngine
from .errors import ErrorCode, GitStateError
from .models import (
    CommitsRequest,
    FileAtHeadRequest,
    RepositoryRequest,
    StatusRequest,
)
from .runtime import (
    LOG_LEVELS,
    configure_logging,
    get_runtime_defaults,
    validate_log_level,
    validate_max_commits,
    validate_streamable_http_binding,
)

logger = logging.getLogger(__name__)


def _build_fastmcp() -> FastMCP:
    """Instantiate FastMCP, dropping optional kwargs older SDK versions reject."""
    kwargs: dict[str, Any] = {
        "name": "gitstate",
        "instructions": (
            "Read-only git repository state. Use git_is_repo, git_commits, git_branches, "
            "git_status, git_graph, git_file_at_head and git_snapshot to inspect history, "
            "branches, working-tree status and a lane-assigned commit graph."
        ),
        "json_response": True,
    }

    while True:
        try:
            return FastMCP(**kwargs)
        except TypeError as exc:
            message = str(exc).lower()
            if "unexpected keyword argument" not in message or "json_response" not in kwargs:
                raise
            kwargs.pop("json_response")
            logger.debug("FastMCP constructor does not support 'json_response'; using fallback.")


mcp = _build_fastmcp()

engine = GitStateEngine()
default_max_commits: int | None = None

READ_ONLY_TOOL_ANNOTATIONS = {
    "readOnlyHint": True,
    "idempotentHint": True,
    "destructiveHint": False,
    "openWorldHint": False,
}


def _register_tool(annotations: dict[str, bool]):
    """Register tool with annotations, falling back when the SDK lacks support."""

    def decorator(func):
        try:
            return mcp.tool(annotations=annotations)(func)
        except TypeError:
            logger.debug("FastMCP tool annotations not supported in this SDK version; using fallback.")
            return mcp.tool()(func)

    return decorator


def _error_payload_from_exception(exc: Exception) -> dict[str, Any]:
    """Convert internal exceptions into stable MCP error payloads."""
    if isinstance(exc, GitStateError):
        return exc.to_payload()
    if isinstance(exc, ValidationError):
        return {
            "status": "error",
            "error_code": ErrorCode.INVALID_INPUT.value,
            "message": "Input validation failed",
            "suggestion": "Check field constraints and request schema.",
            "details": {"errors": exc.errors(include_context=False, include_input=False)},
        }
    logger.exception("Unhandled server exception", exc_info=exc)
    return {
        "status": "error",
        "error_code": ErrorCode.INTERNAL_ERROR.value,
        "message": str(exc),
        "suggestion": "Check server logs and retry the operation.",
        "details": {},
    }


def _build_correlation_id() -> str:
    """Generate short operation correlation IDs for diagnostics."""
    return uuid.uuid4().hex[:12]


def _log_tool_phase(
    *,
    correlation_id: str,
    tool_name: str,
    phase: str,
    status: str,
    elapsed_seconds: float,
    details: dict[str, Any] | None = None,
) -> None:
    """Emit structured phase-level diagnostics for tool execution."""
    payload: dict[str, Any] = {
        "event_type": "tool_phase",
        "correlation_id": correlation_id,
        "tool_name": tool_name,
        "phase": phase,
        "status": status,
        "elapsed_ms": round(elapsed_seconds * 1000, 3),
    }
    if details:
        payload["details"] = details
    logger.info("tool_phase %s", json.dumps(payload, ensure_ascii=True, sort_keys=True))


def _run_tool(tool_name: str, operation: Callable[[], dict[str, Any]]) -> dict[str, Any]:
    """Execute a tool operation, tagging the response with a correlation id."""
    start = time.perf_counter()
    correlation_id = _build_correlation_id()
    try:
        response_payload = dict(operation())
    except Exception as exc:  # noqa: BLE001
        error_payload = _error_payload_from_exception(exc)
        error_payload["correlation_id"] = correlation_id
        _log_tool_phase(
            correlation_id=correlation_id,
            tool_name=tool_name,
            phase="total",
            status="error",
            elapsed_seconds=time.perf_counter() - start,
            details={
                "exception": exc.__class__.__name__,
                "error_code": error_payload.get("error_code"),
            },
        )
        return error_payload

    response_payload["correlation_id"] = correlation_id
    _log_tool_phase(
        correlation_id=correlation_id,
        tool_name=tool_name,
        phase="total",
        status="ok",
        elapsed_seconds=time.perf_counter() - start,
    )
    return response_payload


def _commits_request(directory: str, max_count: float | None) -> CommitsRequest:
    if max_count is None:
        if default_max_commits is None:
            return CommitsRequest(directory=directory)
        return CommitsRequest(directory=directory, max_count=default_max_commits)
    return CommitsRequest(directory=directory, max_count=max_count)


@_register_tool(READ_ONLY_TOOL_ANNOTATIONS)
def git_is_repo(
    directory: Annotated[str, Field(description="Path to check")],
) -> dict[str, Any]:
    """Report whether a directory is inside a git working tree."""

    def _operation() -> dict[str, Any]:
        return engine.is_repo(RepositoryRequest(directory=directory)).model_dump(mode="json")

    return _run_tool("git_is_repo", operation=_operation)


@_register_tool(READ_ONLY_TOOL_ANNOTATIONS)
def git_commits(
    directory: Annotated[str, Field(description="Path inside the repository")],
    max_count: Annotated[
        float | None,
        Field(description="Maximum commits to return; floored and clamped to 1..1000"),
    ] = None,
) -> dict[str, Any]:
    """List commits across all refs, newest first."""

    def _operation() -> dict[str, Any]:
        return engine.get_commits(_commits_request(directory, max_count)).model_dump(mode="json")

    return _run_tool("git_commits", operation=_operation)


@_register_tool(READ_ONLY_TOOL_ANNOTATIONS)
def git_branches(
    directory: Annotated[str, Field(description="Path inside the repository")],
) -> dict[str, Any]:
    """List local branches and the current one."""

    def _operation() -> dict[str, Any]:
        return engine.get_branches(RepositoryRequest(directory=directory)).model_dump(mode="json")

    return _run_tool("git_branches", operation=_operation)


@_register_tool(READ_ONLY_TOOL_ANNOTATIONS)
def git_status(
    directory: Annotated[str, Field(description="Repository root directory")],
    aggregate: Annotated[
        bool,
        Field(description="Roll file statuses up to their parent directories"),
    ] = True,
) -> dict[str, Any]:
    """Working-tree status keyed by absolute path."""

    def _operation() -> dict[str, Any]:
        request = StatusRequest(directory=directory, aggregate=aggregate)
        return engine.get_status(request).model_dump(mode="json")

    return _run_tool("git_status", operation=_operation)


@_register_tool(READ_ONLY_TOOL_ANNOTATIONS)
def git_graph(
    directory: Annotated[str, Field(description="Path inside the repository")],
    max_count: Annotated[
        float | None,
        Field(description="Maximum commits to lay out; floored and clamped to 1..1000"),
    ] = None,
) -> dict[str, Any]:
    """Lane-assigned commit graph rows with connector segments."""

    def _operation() -> dict[str, Any]:
        return engine.get_graph(_commits_request(directory, max_count)).model_dump(mode="json")

    return _run_tool("git_graph", operation=_operation)


@_register_tool(READ_ONLY_TOOL_ANNOTATIONS)
def git_file_at_head(
    directory: Annotated[str, Field(description="Repository root directory")],
    path: Annotated[str, Field(description="File path, absolute or relative to directory")],
) -> dict[str, Any]:
    """Content of a file as committed at HEAD."""

    def _operation() -> dict[str, Any]:
        request = FileAtHeadRequest(directory=directory, path=path)
        return engine.get_file_at_head(request).model_dump(mode="json")

    return _run_tool("git_file_at_head", operation=_operation)


@_register_tool(READ_ONLY_TOOL_ANNOTATIONS)
def git_snapshot(
    directory: Annotated[str, Field(description="Path inside the repository")],
    max_count: Annotated[
        float | None,
        Field(description="Maximum commits to load; floored and clamped to 1..1000"),
    ] = None,
) -> dict[str, Any]:
    """Repository check, commits, branches and graph in one call."""

    def _operation() -> dict[str, Any]:
        return engine.get_snapshot(_commits_request(directory, max_count)).model_dump(mode="json")

    return _run_tool("git_snapshot", operation=_operation)


def main() -> None:
    """Run gitstate MCP server in stdio or streamable HTTP mode."""
    parser = argparse.ArgumentParser(description="gitstate MCP server")
    try:
        defaults = get_runtime_defaults()
    except ValueError as exc:
        parser.error(str(exc))
    parser.add_argument(
        "--transport",
        choices=["stdio", "streamable-http"],
        default=defaults.transport,
        help="Server transport mode (default: stdio).",
    )
    parser.add_argument("--host", default=defaults.host, help="Host for streamable HTTP transport.")
    parser.add_argument(
        "--port",
        type=int,
        default=defaults.port,
        help="Port for streamable HTTP transport.",
    )
    parser.add_argument(
        "--allow-public-http",
        action=argparse.BooleanOptionalAction,
        default=defaults.allow_public_http,
        help="Allow non-loopback streamable-http host binding.",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=defaults.log_level,
        help="Logging level for stderr diagnostics.",
    )
    parser.add_argument(
        "--max-commits",
        type=int,
        default=defaults.max_commits,
        help="Default commit count when a tool call omits max_count.",
    )
    parser.add_argument(
        "--check-config",
        action="store_true",
        help="Validate runtime settings and exit without starting server transport.",
    )
    parser.add_argument(
        "--print-effective-config",
        action="store_true",
        help="Print effective runtime configuration and exit.",
    )
    args = parser.parse_args()

    try:
        validate_streamable_http_binding(
            transport=args.transport,
            host=args.host,
            allow_public_http=args.allow_public_http,
        )
        validate_log_level(args.log_level)
        if not (1 <= int(args.port) <= 65535):
            raise ValueError("--port must be between 1 and 65535.")
        validate_max_commits(int(args.max_commits))
    except ValueError as exc:
        parser.error(str(exc))

    configure_logging(args.log_level)

    global default_max_commits
    default_max_commits = int(args.max_commits)

    if args.print_effective_config:
        print(
            json.dumps(
                {
                    "transport": args.transport,
                    "host": args.host,
                    "port": int(args.port),
                    "allow_public_http": bool(args.allow_public_http),
                    "log_level": args.log_level,
                    "max_commits": default_max_commits,
                },
                indent=2,
                sort_keys=True,
            )
        )

    if args.check_config or args.print_effective_config:
        if not args.print_effective_config:
            print("Configuration is valid.")
        return

    if args.transport == "stdio":
        mcp.run()
        return

    mcp.settings.host = args.host
    mcp.settings.port = int(args.port)
    mcp.run(transport="streamable-http")


if __name__ == "__main__":
    main()
