"""Error types and tagged tool results.

Two failure tiers exist:
- recoverable tool errors (bad parameters, policy denials, upstream non-success on a
  mutation) are returned to the caller as a ``TOOL_ERROR`` result;
- hard failures (no client, transport failure, undecodable upstream payload) raise
  ``SafeError`` and surface as ``CALL_FAILURE``.

Messages returned to agents must never include secrets (tokens, Authorization headers).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SafeError(Exception):
    """A hard failure whose message is safe to expose to agents."""

    code: str
    message: str
    hint: str | None = None
    status_code: int | None = None

    def __str__(self) -> str:
        return self.message


class ParameterError(ValueError):
    """A missing or malformed tool parameter."""


class ToolResultKind(enum.Enum):
    """Tag for the outcome of a single tool call."""

    TEXT = "text"
    TOOL_ERROR = "tool_error"
    CALL_FAILURE = "call_failure"


@dataclass(frozen=True, slots=True)
class ToolResult:
    """Text-or-error result of a tool call."""

    kind: ToolResultKind
    text: str
    correlation_id: str | None = None

    @property
    def is_error(self) -> bool:
        return self.kind is not ToolResultKind.TEXT

    def with_correlation_id(self, correlation_id: str) -> ToolResult:
        return ToolResult(kind=self.kind, text=self.text, correlation_id=correlation_id)


def text_result(text: str) -> ToolResult:
    """Successful tool output."""
    return ToolResult(kind=ToolResultKind.TEXT, text=text)


def tool_error_result(message: str) -> ToolResult:
    """Recoverable, caller-visible tool error."""
    return ToolResult(kind=ToolResultKind.TOOL_ERROR, text=message)


def call_failure_result(err: SafeError) -> ToolResult:
    """Convert a hard failure into its tagged result."""
    return ToolResult(kind=ToolResultKind.CALL_FAILURE, text=err.message)
