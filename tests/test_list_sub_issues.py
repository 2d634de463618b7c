"""list_sub_issues tool tests.

Upstream GitHub is faked with httpx.MockTransport; no real network calls are made.
"""

from __future__ import annotations

import json

import httpx
import pytest
from github_subissues_mcp.config import LimitsConfig
from github_subissues_mcp.errors import SafeError, ToolResultKind
from github_subissues_mcp.github_client import GitHubClient
from github_subissues_mcp.subissues import LIST_SUB_ISSUES, list_sub_issues

MOCK_SUB_ISSUES = [
    {
        "id": 9001,
        "number": 101,
        "title": "Sub-issue 1",
        "body": "First sub-issue",
        "state": "open",
        "html_url": "https://github.com/owner/repo/issues/101",
    },
    {
        "id": 9002,
        "number": 102,
        "title": "Sub-issue 2",
        "body": "Second sub-issue",
        "state": "closed",
        "html_url": "https://github.com/owner/repo/issues/102",
    },
]


def _factory(handler, seen: list[httpx.Request] | None = None):
    def recording_handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return handler(request)

    transport = httpx.MockTransport(recording_handler)

    async def token_provider() -> str:
        return "tok"

    async def get_client() -> GitHubClient:
        return GitHubClient(token_provider=token_provider, limits=LimitsConfig(), transport=transport)

    return get_client


def test_list_sub_issues_definition() -> None:
    assert LIST_SUB_ISSUES.name == "list_sub_issues"
    assert LIST_SUB_ISSUES.description
    assert LIST_SUB_ISSUES.read_only is True
    schema = LIST_SUB_ISSUES.input_schema
    assert set(schema["properties"]) == {"owner", "repo", "issue_number"}
    assert sorted(schema["required"]) == ["issue_number", "owner", "repo"]


@pytest.mark.asyncio
async def test_list_sub_issues_returns_upstream_order() -> None:
    seen: list[httpx.Request] = []
    get_client = _factory(lambda _r: httpx.Response(200, json=MOCK_SUB_ISSUES), seen)

    result = await list_sub_issues(get_client, {"owner": "owner", "repo": "repo", "issue_number": 42.0})

    assert result.kind is ToolResultKind.TEXT
    returned = json.loads(result.text)
    assert len(returned) == 2
    for expected, actual in zip(MOCK_SUB_ISSUES, returned):
        assert actual["id"] == expected["id"]
        assert actual["number"] == expected["number"]
        assert actual["title"] == expected["title"]

    assert len(seen) == 1
    assert seen[0].method == "GET"
    assert seen[0].url.path == "/repos/owner/repo/issues/42/sub_issues"
    assert seen[0].content == b""


@pytest.mark.asyncio
async def test_list_sub_issues_does_not_dedupe_or_resort() -> None:
    payload = [MOCK_SUB_ISSUES[1], MOCK_SUB_ISSUES[0], MOCK_SUB_ISSUES[1]]
    get_client = _factory(lambda _r: httpx.Response(200, json=payload))

    result = await list_sub_issues(get_client, {"owner": "owner", "repo": "repo", "issue_number": 42})

    assert [i["number"] for i in json.loads(result.text)] == [102, 101, 102]


@pytest.mark.asyncio
async def test_list_sub_issues_not_found_is_call_failure() -> None:
    get_client = _factory(lambda _r: httpx.Response(404, json={"message": "Issue not found"}))

    with pytest.raises(SafeError) as exc:
        _ = await list_sub_issues(get_client, {"owner": "owner", "repo": "repo", "issue_number": 999})

    assert "failed to list sub-issues" in exc.value.message
    assert "Issue not found" in exc.value.message
    assert exc.value.status_code == 404


@pytest.mark.asyncio
async def test_list_sub_issues_missing_issue_number_makes_no_call() -> None:
    seen: list[httpx.Request] = []
    get_client = _factory(lambda _r: httpx.Response(200, json=MOCK_SUB_ISSUES), seen)

    result = await list_sub_issues(get_client, {"owner": "owner", "repo": "repo"})

    assert result.kind is ToolResultKind.TOOL_ERROR
    assert "missing required parameter: issue_number" in result.text
    assert seen == []


@pytest.mark.asyncio
async def test_list_sub_issues_validates_owner_first() -> None:
    called = {"n": 0}

    async def get_client() -> GitHubClient:  # pragma: no cover
        called["n"] += 1
        raise AssertionError("client should not be created")

    result = await list_sub_issues(get_client, {})

    assert result.text == "missing required parameter: owner"
    assert called["n"] == 0


@pytest.mark.asyncio
async def test_list_sub_issues_rejects_wrong_owner_type() -> None:
    result = await list_sub_issues(_factory(lambda _r: httpx.Response(200, json=[])), {"owner": 5, "repo": "repo", "issue_number": 1})

    assert result.kind is ToolResultKind.TOOL_ERROR
    assert result.text == "parameter owner is not of type string"


@pytest.mark.asyncio
async def test_list_sub_issues_client_factory_failure_is_hard_error() -> None:
    async def get_client() -> GitHubClient:
        raise SafeError(code="Config", message="no token")

    with pytest.raises(SafeError) as exc:
        _ = await list_sub_issues(get_client, {"owner": "owner", "repo": "repo", "issue_number": 42})

    assert exc.value.message == "failed to get GitHub client: no token"


@pytest.mark.asyncio
async def test_list_sub_issues_transport_failure_is_hard_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(SafeError) as exc:
        _ = await list_sub_issues(_factory(handler), {"owner": "owner", "repo": "repo", "issue_number": 42})

    assert exc.value.code == "Network"
    assert exc.value.message.startswith("failed to list sub-issues:")


@pytest.mark.asyncio
async def test_list_sub_issues_rejects_non_array_payload() -> None:
    get_client = _factory(lambda _r: httpx.Response(200, json={"not": "a list"}))

    with pytest.raises(SafeError) as exc:
        _ = await list_sub_issues(get_client, {"owner": "owner", "repo": "repo", "issue_number": 42})

    assert exc.value.message == "unexpected list sub-issues response"


@pytest.mark.asyncio
async def test_list_sub_issues_invalid_json_is_hard_error() -> None:
    get_client = _factory(lambda _r: httpx.Response(200, content=b"not-json"))

    with pytest.raises(SafeError) as exc:
        _ = await list_sub_issues(get_client, {"owner": "owner", "repo": "repo", "issue_number": 42})

    assert exc.value.message == "failed to decode list sub-issues response"


