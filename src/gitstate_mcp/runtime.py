"""Runtime configuration helpers for the MCP server entrypoint."""

from __future__ import annotations

import ipaddress
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

from .constants import DEFAULT_MAX_COUNT, MAX_MAX_COUNT, MIN_MAX_COUNT

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}
TRANSPORTS = {"stdio", "streamable-http"}
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class RuntimeDefaults:
    """Server settings sourced from environment variables or CLI."""

    transport: str
    host: str
    port: int
    allow_public_http: bool
    log_level: str
    max_commits: int


def get_runtime_defaults(env: Mapping[str, str] | None = None) -> RuntimeDefaults:
    """Validate and return runtime defaults from environment variables."""
    source = os.environ if env is None else env

    transport = source.get("GITSTATE_MCP_TRANSPORT", "stdio").strip()
    if transport not in TRANSPORTS:
        raise ValueError("GITSTATE_MCP_TRANSPORT must be 'stdio' or 'streamable-http'.")

    host = source.get("GITSTATE_MCP_HOST", "127.0.0.1").strip()
    port = _parse_int_env(source=source, key="GITSTATE_MCP_PORT", default=8000, min_value=1)
    if port > 65535:
        raise ValueError("GITSTATE_MCP_PORT must be between 1 and 65535.")

    allow_public_http = _parse_bool_env(
        source=source,
        key="GITSTATE_MCP_ALLOW_PUBLIC_HTTP",
        default=False,
    )
    validate_streamable_http_binding(
        transport=transport,
        host=host,
        allow_public_http=allow_public_http,
    )

    log_level = source.get("GITSTATE_MCP_LOG_LEVEL", "WARNING").strip().upper()
    validate_log_level(log_level)

    max_commits = _parse_int_env(
        source=source,
        key="GITSTATE_MCP_MAX_COMMITS",
        default=DEFAULT_MAX_COUNT,
    )
    validate_max_commits(max_commits, name="GITSTATE_MCP_MAX_COMMITS")

    return RuntimeDefaults(
        transport=transport,
        host=host,
        port=port,
        allow_public_http=allow_public_http,
        log_level=log_level,
        max_commits=max_commits,
    )


def validate_streamable_http_binding(transport: str, host: str, allow_public_http: bool) -> None:
    """Validate host exposure policy for streamable HTTP transport."""
    if transport != "streamable-http":
        return
    if not host.strip():
        raise ValueError("Host must not be empty when using streamable-http transport.")
    if not is_loopback_host(host) and not allow_public_http:
        raise ValueError(
            "Refusing non-loopback streamable-http binding without explicit opt-in. "
            "Set --allow-public-http or GITSTATE_MCP_ALLOW_PUBLIC_HTTP=true."
        )


def validate_max_commits(max_commits: int, name: str = "--max-commits") -> None:
    if not (MIN_MAX_COUNT <= max_commits <= MAX_MAX_COUNT):
        raise ValueError(f"{name} must be between {MIN_MAX_COUNT} and {MAX_MAX_COUNT}.")


def validate_log_level(log_level: str) -> None:
    if log_level not in LOG_LEVELS:
        raise ValueError(f"Log level must be one of: {', '.join(LOG_LEVELS)}.")


def configure_logging(log_level: str) -> None:
    """Send log records to stderr; stdout carries the stdio transport."""
    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def is_loopback_host(host: str) -> bool:
    """Return whether a host value maps to a loopback interface."""
    normalized = host.strip().lower().strip("[]")
    if normalized in {"localhost", "127.0.0.1", "::1"}:
        return True
    try:
        return ipaddress.ip_address(normalized).is_loopback
    except ValueError:
        return False


def _parse_bool_env(source: Mapping[str, str], key: str, default: bool) -> bool:
    raw = source.get(key)
    if raw is None or not str(raw).strip():
        return default
    normalized = str(raw).strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    raise ValueError(f"{key} must be a boolean value (true/false).")


def _parse_int_env(
    source: Mapping[str, str],
    key: str,
    default: int,
    min_value: int | None = None,
) -> int:
    raw = source.get(key)
    if raw is None or not str(raw).strip():
        return default
    try:
        parsed = int(str(raw).strip())
    except ValueError as exc:
        raise ValueError(f"{key} must be an integer.") from exc
    if min_value is not None and parsed < min_value:
        raise ValueError(f"{key} must be >= {min_value}.")
    return parsed
