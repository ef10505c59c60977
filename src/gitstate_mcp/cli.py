"""Command line interface for gitstate with parity to MCP tools."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

import yaml
from pydantic import ValidationError

from .constants import DEFAULT_MAX_COUNT
from .engine import GitStateEngine
from .errors import ErrorCode, GitStateError
from .models import (
    CommitsRequest,
    FileAtHeadRequest,
    RepositoryRequest,
    StatusRequest,
)

engine = GitStateEngine()


def _render_graph_prefix(row: dict[str, Any], width: int) -> str:
    """Draw one text column per lane: `*` for the commit, `|` for lanes passing through."""
    cells = [" "] * width
    for line in row.get("lines", []):
        if line["from_lane"] == line["to_lane"]:
            cells[line["from_lane"]] = "|"
        elif line["to_lane"] > line["from_lane"]:
            cells[line["to_lane"]] = "\\"
        else:
            cells[line["to_lane"]] = "/"
    cells[row["lane"]] = "*"
    return " ".join(cells)


def _print_commit_rows(payload: dict[str, Any]) -> None:
    width = int(payload.get("width", 1))
    for row in payload.get("rows", []):
        commit = row["commit"]
        refs = f" ({', '.join(commit['refs'])})" if commit.get("refs") else ""
        print(
            f"{_render_graph_prefix(row, width)}  {commit.get('short_hash', '')}"
            f"{refs} {commit.get('subject', '')} - {commit.get('author', '')}, "
            f"{commit.get('relative_date', '')}"
        )


def _print_payload(payload: dict[str, Any], output_format: str) -> None:
    if output_format == "json":
        print(json.dumps(payload, indent=2))
        return
    if output_format == "yaml":
        print(yaml.safe_dump(payload, sort_keys=False, allow_unicode=True), end="")
        return

    status = payload.get("status", "unknown").upper()
    message = payload.get("message", "")
    print(f"[{status}] {message}")

    if payload.get("status") == "error":
        error_code = payload.get("error_code", "")
        suggestion = payload.get("suggestion", "")
        if error_code:
            print(f"error_code: {error_code}")
        if suggestion:
            print(f"suggestion: {suggestion}")
        return

    for key in ("is_repo", "current_branch", "count", "width", "path"):
        if key in payload and payload[key] not in ("", None):
            print(f"{key}: {payload[key]}")

    if "commits" in payload and "rows" not in payload:
        for commit in payload["commits"]:
            print(f"{commit.get('short_hash', '')} {commit.get('subject', '')}")

    if "branches" in payload:
        for branch in payload["branches"]:
            marker = "*" if branch.get("is_current") else " "
            print(f"{marker} {branch.get('name')}")

    if "entries" in payload:
        for path, file_status in sorted(payload["entries"].items()):
            print(f"{file_status:<10} {path}")

    if "rows" in payload:
        _print_commit_rows(payload)

    if payload.get("found"):
        print(payload.get("content", ""))


def _error_payload(exc: Exception) -> dict[str, Any]:
    if isinstance(exc, GitStateError):
        return exc.to_payload()
    if isinstance(exc, ValidationError):
        errors: Any
        try:
            errors = exc.errors(include_context=False, include_input=False)
        except TypeError:
            errors = exc.errors()
        return {
            "status": "error",
            "error_code": ErrorCode.INVALID_INPUT.value,
            "message": "Input validation failed",
            "suggestion": "Check command arguments and constraints.",
            "details": {"errors": errors},
        }
    return {
        "status": "error",
        "error_code": ErrorCode.INTERNAL_ERROR.value,
        "message": str(exc),
        "suggestion": "Retry with --json for diagnostics and inspect logs.",
        "details": {},
    }


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-d", "--directory", default=".", help="Repository working directory")
    parser.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    parser.add_argument(
        "--format",
        choices=["text", "json", "yaml"],
        default="text",
        help="Output format (--json is shorthand for --format json)",
    )


def _add_max_count_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-n",
        "--max-count",
        type=float,
        default=DEFAULT_MAX_COUNT,
        help="Maximum commits to load (clamped to 1..1000)",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gitstate-cli", description="Git state and history CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    is_repo = subparsers.add_parser("is-repo", help="Check whether a directory is a git work tree")
    _add_common_arguments(is_repo)

    log = subparsers.add_parser("log", help="List commits across all refs")
    _add_common_arguments(log)
    _add_max_count_argument(log)
    log.add_argument("--graph", action="store_true", help="Draw lane columns next to commits")

    branches = subparsers.add_parser("branches", help="List local branches")
    _add_common_arguments(branches)

    status = subparsers.add_parser("status", help="Show working-tree status")
    _add_common_arguments(status)
    status.add_argument(
        "--no-aggregate",
        action="store_true",
        help="Only report files, without rolling statuses up to directories",
    )

    graph = subparsers.add_parser("graph", help="Build the lane-assigned commit graph")
    _add_common_arguments(graph)
    _add_max_count_argument(graph)

    show = subparsers.add_parser("show", help="Print a file's content at HEAD")
    show.add_argument("path", help="File path, absolute or relative to --directory")
    _add_common_arguments(show)

    snapshot = subparsers.add_parser("snapshot", help="Load commits, branches and graph at once")
    _add_common_arguments(snapshot)
    _add_max_count_argument(snapshot)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    output_format = "json" if getattr(args, "json", False) else args.format

    try:
        if args.command == "is-repo":
            response = engine.is_repo(
                RepositoryRequest(directory=args.directory)
            ).model_dump(mode="json")
        elif args.command == "log":
            request = CommitsRequest(directory=args.directory, max_count=args.max_count)
            if args.graph:
                response = engine.get_graph(request).model_dump(mode="json")
            else:
                response = engine.get_commits(request).model_dump(mode="json")
        elif args.command == "branches":
            response = engine.get_branches(
                RepositoryRequest(directory=args.directory)
            ).model_dump(mode="json")
        elif args.command == "status":
            response = engine.get_status(
                StatusRequest(directory=args.directory, aggregate=not args.no_aggregate)
            ).model_dump(mode="json")
        elif args.command == "graph":
            response = engine.get_graph(
                CommitsRequest(directory=args.directory, max_count=args.max_count)
            ).model_dump(mode="json")
        elif args.command == "show":
            response = engine.get_file_at_head(
                FileAtHeadRequest(directory=args.directory, path=args.path)
            ).model_dump(mode="json")
        else:
            response = engine.get_snapshot(
                CommitsRequest(directory=args.directory, max_count=args.max_count)
            ).model_dump(mode="json")

        _print_payload(response, output_format=output_format)
        return 0
    except Exception as exc:  # noqa: BLE001
        payload = _error_payload(exc)
        _print_payload(payload, output_format=output_format)
        return 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
