"""Structured audit logging.

Exactly one event is written per tool call. Events never contain secret material
(tokens, Authorization headers) or raw argument values.
"""

from __future__ import annotations

import json
import logging
import sys
import time
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path

logger = logging.getLogger(__name__)


def new_correlation_id() -> str:
    """Generate a random correlation id for traceability."""
    return uuid.uuid4().hex


def _now_rfc3339() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True, slots=True)
class AuditEvent:
    """A single audit event."""

    timestamp: str
    correlation_id: str
    operation: str
    target_repo: str
    outcome: str
    reason: str | None
    duration_ms: int | None

    def to_json(self) -> str:
        payload = {k: v for k, v in asdict(self).items() if v is not None}
        return json.dumps(payload, sort_keys=True, separators=(",", ":"))


class AuditLogger:
    """Writes audit events as JSONL to stderr and optionally to a rotating file."""

    def __init__(
        self,
        *,
        sink_path: Path | None,
        max_bytes: int = 5 * 1024 * 1024,
        max_backups: int = 2,
    ) -> None:
        """Create an audit logger.

        Failures opening or writing the file sink are logged and otherwise ignored.
        """
        self._file_handler: RotatingFileHandler | None = None
        if sink_path is not None:
            try:
                sink_path.parent.mkdir(parents=True, exist_ok=True)
                self._file_handler = RotatingFileHandler(
                    sink_path,
                    maxBytes=max_bytes,
                    backupCount=max_backups,
                    encoding="utf-8",
                    delay=True,
                )
                self._file_handler.setFormatter(logging.Formatter("%(message)s"))
            except OSError as exc:
                logger.warning("Audit file sink disabled: %s", exc.strerror)

    def write_event(self, event: AuditEvent) -> None:
        """Write an audit event to stderr and, when configured, to the file sink."""
        line = event.to_json()
        print(line, file=sys.stderr)
        if self._file_handler is not None:
            record = logging.LogRecord(
                name="github_subissues_mcp.audit",
                level=logging.INFO,
                pathname=__file__,
                lineno=0,
                msg=line,
                args=None,
                exc_info=None,
            )
            # RotatingFileHandler reports I/O errors through handleError, never raises.
            self._file_handler.handle(record)

    def close(self) -> None:
        if self._file_handler is not None:
            self._file_handler.close()

    def measure_start(self) -> float:
        """Return a monotonic start timestamp for duration measurement."""
        return time.monotonic()

    def measure_duration_ms(self, start: float) -> int:
        """Convert a monotonic start timestamp into elapsed milliseconds."""
        return int((time.monotonic() - start) * 1000)


def build_event(
    *,
    correlation_id: str,
    operation: str,
    target_repo: str,
    outcome: str,
    reason: str | None = None,
    duration_ms: int | None = None,
) -> AuditEvent:
    """Construct an audit event."""
    return AuditEvent(
        timestamp=_now_rfc3339(),
        correlation_id=correlation_id,
        operation=operation,
        target_repo=target_repo,
        outcome=outcome,
        reason=reason,
        duration_ms=duration_ms,
    )
