"""Sub-issue tools.

Each tool follows the same shape: extract parameters, build the REST request, make a
single call through an injected client factory, and adapt the response into a
``ToolResult``. Upstream issue objects are passed through untouched.
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

from .errors import ParameterError, SafeError, ToolResult, text_result, tool_error_result
from .github_client import GitHubClient
from .params import optional_int, required_int, required_str

GetClientFn = Callable[[], Awaitable[GitHubClient]]
ToolHandler = Callable[[GetClientFn, dict[str, Any]], Awaitable[ToolResult]]

_OWNER_PROP = {"type": "string", "description": "The account owner of the repository"}
_REPO_PROP = {"type": "string", "description": "The name of the repository"}


@dataclass(frozen=True, slots=True)
class IssueTarget:
    """The parent issue a sub-issue call is addressed to."""

    owner: str
    repo: str
    issue_number: int

    def sub_issues_path(self, suffix: str = "") -> str:
        owner = quote(self.owner, safe="")
        repo = quote(self.repo, safe="")
        return f"/repos/{owner}/{repo}/issues/{self.issue_number}/sub_issues{suffix}"


@dataclass(frozen=True, slots=True)
class SubIssueTool:
    """Static tool descriptor: metadata plus the handler that implements it."""

    name: str
    title: str
    description: str
    read_only: bool
    properties: dict[str, dict[str, Any]]
    required: tuple[str, ...]
    handler: ToolHandler = field(repr=False)

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {k: dict(v) for k, v in self.properties.items()},
            "required": list(self.required),
        }


def _parse_target(arguments: dict[str, Any]) -> IssueTarget:
    owner = required_str(arguments, "owner")
    repo = required_str(arguments, "repo")
    issue_number = required_int(arguments, "issue_number")
    return IssueTarget(owner=owner, repo=repo, issue_number=issue_number)


async def _call_sub_issues_endpoint(
    get_client: GetClientFn,
    *,
    method: str,
    path: str,
    body: dict[str, Any] | None,
    action: str,
    expect_list: bool,
    upstream_failure_is_tool_error: bool,
) -> ToolResult:
    """Invoke one sub-issue endpoint and adapt the response.

    ``action`` is the human wording used in messages, e.g. "add sub-issue".
    Upstream non-success statuses become tool errors when
    ``upstream_failure_is_tool_error`` is set, and hard failures otherwise.
    """
    try:
        client = await get_client()
    except SafeError as exc:
        raise SafeError(code=exc.code, message=f"failed to get GitHub client: {exc.message}") from exc

    try:
        resp = await client.request(method=method, path=path, json_body=body)
    except SafeError as exc:
        raise SafeError(code=exc.code, message=f"failed to {action}: {exc.message}", status_code=exc.status_code) from exc

    if not resp.ok:
        message = f"failed to {action}: {resp.error_detail()}"
        if upstream_failure_is_tool_error:
            return tool_error_result(message)
        raise SafeError(code="GitHub", message=message, status_code=resp.status_code)

    try:
        data = resp.json()
    except SafeError as exc:
        raise SafeError(code="GitHub", message=f"failed to decode {action} response") from exc

    expected_type = list if expect_list else dict
    if not isinstance(data, expected_type):
        raise SafeError(code="GitHub", message=f"unexpected {action} response")

    return text_result(json.dumps(data))


async def list_sub_issues(get_client: GetClientFn, arguments: dict[str, Any]) -> ToolResult:
    """List sub-issues of an issue, in the order GitHub returns them."""
    try:
        target = _parse_target(arguments)
    except ParameterError as err:
        return tool_error_result(str(err))

    return await _call_sub_issues_endpoint(
        get_client,
        method="GET",
        path=target.sub_issues_path(),
        body=None,
        action="list sub-issues",
        expect_list=True,
        upstream_failure_is_tool_error=False,
    )


async def add_sub_issue(get_client: GetClientFn, arguments: dict[str, Any]) -> ToolResult:
    """Attach an existing issue as a sub-issue of the parent issue."""
    try:
        target = _parse_target(arguments)
        sub_issue_id = required_int(arguments, "sub_issue_id")
    except ParameterError as err:
        return tool_error_result(str(err))

    return await _call_sub_issues_endpoint(
        get_client,
        method="PUT",
        path=target.sub_issues_path(),
        body={"sub_issue_id": sub_issue_id},
        action="add sub-issue",
        expect_list=False,
        upstream_failure_is_tool_error=True,
    )


async def remove_sub_issue(get_client: GetClientFn, arguments: dict[str, Any]) -> ToolResult:
    """Detach a sub-issue from the parent issue."""
    try:
        target = _parse_target(arguments)
        sub_issue_id = required_int(arguments, "sub_issue_id")
    except ParameterError as err:
        return tool_error_result(str(err))

    return await _call_sub_issues_endpoint(
        get_client,
        method="DELETE",
        path=target.sub_issues_path(),
        body={"sub_issue_id": sub_issue_id},
        action="remove sub-issue",
        expect_list=False,
        upstream_failure_is_tool_error=True,
    )


async def reprioritize_sub_issue(get_client: GetClientFn, arguments: dict[str, Any]) -> ToolResult:
    """Move a sub-issue after another one, or to the top when ``after_id`` is absent."""
    try:
        target = _parse_target(arguments)
        sub_issue_id = required_int(arguments, "sub_issue_id")
        after_id = optional_int(arguments, "after_id")
    except ParameterError as err:
        return tool_error_result(str(err))

    body: dict[str, Any] = {"sub_issue_id": sub_issue_id}
    # 0 is the "no anchor" sentinel; omitting after_id moves the sub-issue to the top.
    if after_id:
        body["after_id"] = after_id

    return await _call_sub_issues_endpoint(
        get_client,
        method="PATCH",
        path=target.sub_issues_path("/priority"),
        body=body,
        action="reprioritize sub-issue",
        expect_list=False,
        upstream_failure_is_tool_error=True,
    )


LIST_SUB_ISSUES = SubIssueTool(
    name="list_sub_issues",
    title="List sub-issues",
    description="List sub-issues for a specific issue in a GitHub repository.",
    read_only=True,
    properties={
        "owner": _OWNER_PROP,
        "repo": _REPO_PROP,
        "issue_number": {"type": "number", "description": "The number that identifies the issue"},
    },
    required=("owner", "repo", "issue_number"),
    handler=list_sub_issues,
)

ADD_SUB_ISSUE = SubIssueTool(
    name="add_sub_issue",
    title="Add sub-issue",
    description="Add a sub-issue to a specific issue in a GitHub repository.",
    read_only=False,
    properties={
        "owner": _OWNER_PROP,
        "repo": _REPO_PROP,
        "issue_number": {"type": "number", "description": "The number that identifies the parent issue"},
        "sub_issue_id": {"type": "number", "description": "The ID of the issue to add as a sub-issue"},
    },
    required=("owner", "repo", "issue_number", "sub_issue_id"),
    handler=add_sub_issue,
)

REMOVE_SUB_ISSUE = SubIssueTool(
    name="remove_sub_issue",
    title="Remove sub-issue",
    description="Remove a sub-issue from a specific issue in a GitHub repository.",
    read_only=False,
    properties={
        "owner": _OWNER_PROP,
        "repo": _REPO_PROP,
        "issue_number": {"type": "number", "description": "The number that identifies the parent issue"},
        "sub_issue_id": {"type": "number", "description": "The ID of the sub-issue to remove"},
    },
    required=("owner", "repo", "issue_number", "sub_issue_id"),
    handler=remove_sub_issue,
)

REPRIORITIZE_SUB_ISSUE = SubIssueTool(
    name="reprioritize_sub_issue",
    title="Reprioritize sub-issue",
    description="Reprioritize a sub-issue within a specific issue in a GitHub repository.",
    read_only=False,
    properties={
        "owner": _OWNER_PROP,
        "repo": _REPO_PROP,
        "issue_number": {"type": "number", "description": "The number that identifies the parent issue"},
        "sub_issue_id": {"type": "number", "description": "The ID of the sub-issue to reprioritize"},
        "after_id": {
            "type": "number",
            "description": (
                "The ID of the sub-issue to place this sub-issue after. "
                "If not provided, the sub-issue will be moved to the top."
            ),
        },
    },
    required=("owner", "repo", "issue_number", "sub_issue_id"),
    handler=reprioritize_sub_issue,
)

SUB_ISSUE_TOOLS: tuple[SubIssueTool, ...] = (
    LIST_SUB_ISSUES,
    ADD_SUB_ISSUE,
    REMOVE_SUB_ISSUE,
    REPRIORITIZE_SUB_ISSUE,
)
