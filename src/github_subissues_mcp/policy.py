"""Policy evaluation.

This module enforces:
- repository allowlist
- read-only mode (mutating tools are neither listed nor executed)
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PolicyDecision:
    """Policy decision result."""

    allowed: bool
    reason: str | None = None


class Policy:
    """Policy engine."""

    def __init__(self, *, allowed_repos: frozenset[str], read_only: bool) -> None:
        """Create a policy evaluator.

        Repository names are compared case-insensitively, as GitHub does.
        """
        self._allowed_repos = frozenset(r.lower() for r in allowed_repos)
        self._read_only = read_only

    @property
    def read_only(self) -> bool:
        """Return whether only read-only tools may run."""
        return self._read_only

    def check_tool_allowed(self, tool_name: str, *, tool_read_only: bool) -> PolicyDecision:
        """Return whether the tool may run under the current mode."""
        if self._read_only and not tool_read_only:
            return PolicyDecision(False, f"tool {tool_name} is not available in read-only mode")
        return PolicyDecision(True)

    def check_repo_allowed(self, target_repo: str) -> PolicyDecision:
        """Return whether the target repo is allowed by the configured allowlist."""
        if not self._allowed_repos:
            return PolicyDecision(True)
        if target_repo.lower() in self._allowed_repos:
            return PolicyDecision(True)
        return PolicyDecision(False, f"repository {target_repo} is not in the allowlist")
