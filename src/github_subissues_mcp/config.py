"""Configuration loading for github-subissues-mcp.

Configuration is supplied by the host environment (e.g., MCP client config), not by the agent.
The access token is a secret and must never be emitted to agents, logs, or audit reasons.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlsplit

from .errors import SafeError

DEFAULT_API_BASE_URL = "https://api.github.com"

_REPO_ENTRY_RE = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")


@dataclass(frozen=True, slots=True)
class PolicyConfig:
    """Policy guardrails configuration."""

    allowed_repos: frozenset[str]
    read_only: bool


@dataclass(frozen=True, slots=True)
class LimitsConfig:
    """Network timeouts for a single upstream call."""

    total_timeout_s: float = 30.0
    connect_timeout_s: float = 5.0
    read_timeout_s: float = 20.0


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Server configuration."""

    token: str
    api_base_url: str

    policy: PolicyConfig
    audit_log_path: Path | None
    audit_max_bytes: int
    audit_max_backups: int
    limits: LimitsConfig

    def __repr__(self) -> str:
        # Keep the token out of tracebacks and debug output.
        return (
            f"AppConfig(api_base_url={self.api_base_url!r}, policy={self.policy!r}, "
            f"audit_log_path={self.audit_log_path!r}, limits={self.limits!r})"
        )


def _parse_bool(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_allowed_repos(value: str | None) -> frozenset[str]:
    if not value:
        return frozenset()
    repos = [p.strip() for p in value.split(",") if p.strip()]
    for entry in repos:
        if not _REPO_ENTRY_RE.match(entry):
            raise SafeError(
                code="Config",
                message="GITHUB_SUBISSUES_MCP_ALLOWED_REPOS entries must look like owner/repo",
            )
    return frozenset(r.lower() for r in repos)


def _parse_api_base_url(value: str | None) -> str:
    if not value:
        return DEFAULT_API_BASE_URL
    parts = urlsplit(value.strip())
    if parts.scheme != "https" or not parts.netloc:
        raise SafeError(code="Config", message="GITHUB_API_URL must be an absolute https URL")
    return value.strip().rstrip("/")


def _parse_timeout(value: str | None, default: float) -> float:
    if not value:
        return default
    try:
        timeout = float(value)
    except ValueError as exc:
        raise SafeError(code="Config", message="GITHUB_SUBISSUES_MCP_TIMEOUT_S must be a number") from exc
    if timeout <= 0:
        raise SafeError(code="Config", message="GITHUB_SUBISSUES_MCP_TIMEOUT_S must be positive")
    return timeout


def load_config_from_env() -> AppConfig:
    """Load and validate configuration from environment variables.

    Raises:
        SafeError: If configuration is missing/invalid.
    """
    token = os.getenv("GITHUB_PERSONAL_ACCESS_TOKEN", "").strip()
    if not token:
        raise SafeError(
            code="Config",
            message="Missing required configuration (GITHUB_PERSONAL_ACCESS_TOKEN)",
        )

    api_base_url = _parse_api_base_url(os.getenv("GITHUB_API_URL"))
    allowed_repos = _parse_allowed_repos(os.getenv("GITHUB_SUBISSUES_MCP_ALLOWED_REPOS"))
    read_only = _parse_bool(os.getenv("GITHUB_SUBISSUES_MCP_READ_ONLY"))

    audit_path_raw = os.getenv("GITHUB_SUBISSUES_MCP_AUDIT_LOG_PATH")
    audit_path: Path | None = None
    if audit_path_raw:
        p = Path(audit_path_raw)
        if not p.is_absolute():
            raise SafeError(
                code="Config",
                message="GITHUB_SUBISSUES_MCP_AUDIT_LOG_PATH must be an absolute path when set",
            )
        audit_path = p

    defaults = LimitsConfig()
    limits = LimitsConfig(
        total_timeout_s=_parse_timeout(os.getenv("GITHUB_SUBISSUES_MCP_TIMEOUT_S"), defaults.total_timeout_s),
    )

    return AppConfig(
        token=token,
        api_base_url=api_base_url,
        policy=PolicyConfig(allowed_repos=allowed_repos, read_only=read_only),
        audit_log_path=audit_path,
        audit_max_bytes=5 * 1024 * 1024,
        audit_max_backups=2,
        limits=limits,
    )
