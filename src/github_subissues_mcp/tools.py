"""Tool registry and dispatch layer.

This module:
- exposes the sub-issue tools (public contract surface)
- builds a per-server runtime from host-provided config
- creates a correlation_id per operation attempt
- performs secret/policy checks before executing any tool handler
- writes exactly one audit event per call
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from .audit import AuditLogger, build_event, new_correlation_id
from .config import AppConfig, load_config_from_env
from .errors import (ParameterError, SafeError, ToolResult, ToolResultKind,
                     call_failure_result, tool_error_result)
from .github_client import GitHubClient
from .policy import Policy
from .safety import validate_no_secrets
from .subissues import SUB_ISSUE_TOOLS, GetClientFn, SubIssueTool

TOOLS: dict[str, SubIssueTool] = {tool.name: tool for tool in SUB_ISSUE_TOOLS}

TOOL_METADATA: dict[str, dict[str, Any]] = {
    tool.name: {
        "description": tool.description,
        "inputSchema": tool.input_schema,
        "annotations": {"title": tool.title, "readOnlyHint": tool.read_only},
    }
    for tool in SUB_ISSUE_TOOLS
}

_MAX_AUDIT_REASON_CHARS = 200


@dataclass(frozen=True, slots=True)
class Runtime:
    """Per-server runtime dependencies shared across tool calls."""

    config: AppConfig
    audit: AuditLogger
    policy: Policy
    get_client: GetClientFn


_RUNTIME: Runtime | None = None


def make_client_factory(config: AppConfig) -> GetClientFn:
    """Return a client factory bound to the configured token and API URL.

    The factory holds no mutable state, so concurrent calls are safe.
    """

    async def token_provider() -> str:
        return config.token

    async def get_client() -> GitHubClient:
        return GitHubClient(
            token_provider=token_provider,
            limits=config.limits,
            api_base_url=config.api_base_url,
        )

    return get_client


def initialize_runtime_from_env(*, force_read_only: bool = False) -> Runtime:
    """Initialize and cache runtime from environment.

    Called at server startup (fail-fast), and can also be used lazily. Only the first
    call builds the runtime, so ``force_read_only`` must be passed at startup.
    """
    global _RUNTIME  # pylint: disable=global-statement
    if _RUNTIME is not None:
        return _RUNTIME

    config = load_config_from_env()
    if force_read_only and not config.policy.read_only:
        config = replace(config, policy=replace(config.policy, read_only=True))
    audit = AuditLogger(
        sink_path=config.audit_log_path,
        max_bytes=config.audit_max_bytes,
        max_backups=config.audit_max_backups,
    )
    policy = Policy(
        allowed_repos=config.policy.allowed_repos,
        read_only=config.policy.read_only,
    )

    _RUNTIME = Runtime(config=config, audit=audit, policy=policy, get_client=make_client_factory(config))
    return _RUNTIME


def available_tools(policy: Policy) -> list[SubIssueTool]:
    """Tools that may be listed and called under the given policy."""
    return [tool for tool in SUB_ISSUE_TOOLS if tool.read_only or not policy.read_only]


def _target_repo_from_args(arguments: dict[str, Any]) -> str | None:
    owner = arguments.get("owner")
    repo = arguments.get("repo")
    if isinstance(owner, str) and isinstance(repo, str) and owner and repo:
        return f"{owner}/{repo}"
    return None


async def _run_tool(runtime: Runtime, name: str, arguments: dict[str, Any]) -> tuple[ToolResult, str]:
    """Run checks and the handler; return the result and its audit outcome."""
    tool = TOOLS.get(name)
    if tool is None:
        available = ", ".join(sorted(TOOLS))
        return tool_error_result(f"unknown tool: {name} (available tools: {available})"), "denied"

    try:
        validate_no_secrets(arguments)
    except ParameterError as err:
        return tool_error_result(str(err)), "denied"

    decision = runtime.policy.check_tool_allowed(name, tool_read_only=tool.read_only)
    if not decision.allowed:
        return tool_error_result(decision.reason or "tool is not allowed"), "denied"

    # Without owner/repo the handler reports the missing parameter itself.
    target_repo = _target_repo_from_args(arguments)
    if target_repo is not None:
        decision = runtime.policy.check_repo_allowed(target_repo)
        if not decision.allowed:
            return tool_error_result(decision.reason or "repository is not allowed"), "denied"

    result = await tool.handler(runtime.get_client, arguments)
    return result, "succeeded" if result.kind is ToolResultKind.TEXT else "failed"


async def dispatch_tool(name: str, arguments: dict[str, Any]) -> ToolResult:
    """Dispatch a tool call.

    Always returns a tagged result carrying the correlation_id. Hard failures are
    returned as ``CALL_FAILURE`` rather than raised.
    """
    correlation_id = new_correlation_id()
    target_repo = _target_repo_from_args(arguments) or "<unknown>"

    runtime: Runtime | None = None
    start: float | None = None

    try:
        runtime = initialize_runtime_from_env()
        start = runtime.audit.measure_start()
        result, outcome = await _run_tool(runtime, name, arguments)
    except SafeError as err:
        result, outcome = call_failure_result(err), "failed"

    reason = None if outcome == "succeeded" else result.text[:_MAX_AUDIT_REASON_CHARS]
    event = build_event(
        correlation_id=correlation_id,
        operation=name,
        target_repo=target_repo,
        outcome=outcome,
        reason=reason,
        duration_ms=runtime.audit.measure_duration_ms(start) if runtime is not None and start is not None else None,
    )
    if runtime is not None:
        runtime.audit.write_event(event)
    else:
        # Runtime could not be initialized (e.g., Config failures); still audit to stderr.
        AuditLogger(sink_path=None).write_event(event)

    return result.with_correlation_id(correlation_id)
