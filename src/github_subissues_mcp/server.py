"""MCP server wiring for github-subissues-mcp.

The server lists the sub-issue tools, routes calls through ``dispatch_tool``, and
renders tagged results: text and tool errors become ``CallToolResult`` content (the
latter with ``isError``), while call failures become JSON-RPC errors.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any

try:
    from mcp.server import Server
    from mcp.shared.exceptions import McpError
    from mcp.types import (INTERNAL_ERROR, CallToolRequest, CallToolResult,
                           ErrorData, Resource, ServerResult, TextContent, Tool,
                           ToolAnnotations)
except ImportError as exc:  # pragma: no cover
    raise ImportError("MCP library not installed. Install with: pip install mcp") from exc

from . import __version__
from .errors import SafeError, ToolResultKind
from .policy import Policy
from .safety import redact_text
from .tools import TOOL_METADATA, TOOLS, available_tools, dispatch_tool, initialize_runtime_from_env

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)
logger = logging.getLogger(__name__)

SERVER_NAME = "github-subissues-mcp"
CAPABILITIES_URI = "github-subissues-mcp://capabilities"
SERVER_STATUS_URI = "github-subissues-mcp://server-status"

server = Server(SERVER_NAME)


def _current_policy() -> Policy | None:
    try:
        return initialize_runtime_from_env().policy
    except SafeError:
        return None


def _build_tools(policy: Policy | None) -> list[Tool]:
    tools = available_tools(policy) if policy is not None else list(TOOLS.values())
    return [
        Tool(
            name=tool.name,
            description=tool.description,
            inputSchema=tool.input_schema,
            annotations=ToolAnnotations(title=tool.title, readOnlyHint=tool.read_only),
        )
        for tool in tools
    ]


def _resources() -> list[Resource]:
    return [
        Resource(
            uri=SERVER_STATUS_URI,
            name="Server Status",
            description="Non-secret server configuration and limits",
        ),
        Resource(
            uri=CAPABILITIES_URI,
            name="Capabilities",
            description="Available sub-issue operations and their access modes",
        ),
    ]


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List the tools available under the configured policy."""
    tools = _build_tools(_current_policy())
    logger.info("Listed %s tools", len(tools))
    return tools


async def call_tool(name: str, arguments: dict[str, Any] | None) -> CallToolResult:
    """Execute a tool and render its tagged result.

    Tool errors are returned as ``isError`` results the caller can inspect. Call
    failures raise ``McpError`` and reach the client as a JSON-RPC error response.
    """
    if not isinstance(arguments, dict):
        arguments = {}

    logger.info("Tool called: %s", name)

    result = await dispatch_tool(name, arguments)
    if result.kind is ToolResultKind.CALL_FAILURE:
        logger.error("Tool %s failed [%s]: %s", name, result.correlation_id, redact_text(result.text))
        raise McpError(ErrorData(code=INTERNAL_ERROR, message=result.text))
    if result.kind is ToolResultKind.TOOL_ERROR:
        logger.info("Tool %s returned an error [%s]", name, result.correlation_id)

    return CallToolResult(content=[TextContent(type="text", text=result.text)], isError=result.is_error)


async def _handle_call_tool_request(req: CallToolRequest) -> ServerResult:
    return ServerResult(await call_tool(req.params.name, req.params.arguments))


# Registered directly; the SDK's call_tool decorator folds every exception, McpError
# included, into an isError result.
server.request_handlers[CallToolRequest] = _handle_call_tool_request


@server.list_resources()
async def list_resources() -> list[Resource]:
    """List available resources."""
    return _resources()


@server.read_resource()
async def read_resource(uri: Any) -> str:
    """Read resource content."""
    uri_s = uri if isinstance(uri, str) else str(uri)

    if uri_s == CAPABILITIES_URI:
        caps = {
            "server": SERVER_NAME,
            "version": __version__,
            "operations": {
                name: ("read" if meta["annotations"]["readOnlyHint"] else "write")
                for name, meta in sorted(TOOL_METADATA.items())
            },
            "retries": False,
        }
        return json.dumps(caps, indent=2)

    if uri_s == SERVER_STATUS_URI:
        status: dict[str, Any] = {
            "server": SERVER_NAME,
            "version": __version__,
            "tools_available": len(TOOL_METADATA),
            "tool_names": sorted(TOOL_METADATA.keys()),
            "configured": False,
        }
        try:
            runtime = initialize_runtime_from_env()
            status["configured"] = True
            status["api_base_url"] = runtime.config.api_base_url
            status["limits"] = {
                "total_timeout_s": runtime.config.limits.total_timeout_s,
                "connect_timeout_s": runtime.config.limits.connect_timeout_s,
                "read_timeout_s": runtime.config.limits.read_timeout_s,
            }
            status["policy"] = {
                "repo_allowlist_enabled": bool(runtime.config.policy.allowed_repos),
                "repo_allowlist_count": len(runtime.config.policy.allowed_repos),
                "read_only": runtime.config.policy.read_only,
            }
            status["audit"] = {"file_sink_enabled": runtime.config.audit_log_path is not None}
        except SafeError:
            status["configured"] = False

        return json.dumps(status, indent=2)

    return json.dumps({"error": "unknown resource"}, indent=2)


async def run_server(read_only: bool = False) -> None:
    """Run the server over stdio, optionally forcing read-only mode."""
    # Fail fast on invalid/missing host configuration.
    try:
        _ = initialize_runtime_from_env(force_read_only=read_only)
    except SafeError as exc:
        logger.error("Startup configuration error: %s", exc.message)
        raise

    from mcp.server.stdio import stdio_server

    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


async def test_server() -> None:
    """Lightweight self-test to ensure tool/resource listing works."""
    tools = _build_tools(None)
    if len(tools) != len(TOOL_METADATA):
        raise RuntimeError("Tool listing is incomplete")
    _ = _resources()
    logger.info("Self-test passed: %s tools, %s resources", len(tools), len(_resources()))
