"""Safety helpers.

If an agent-provided argument looks like a credential, the call is rejected and the
suspected secret is never echoed back, logged, or audited.
"""

from __future__ import annotations

import re
from typing import Any

from .errors import ParameterError

_CRED_FIELD_NAMES = frozenset(
    {
        "token",
        "access_token",
        "authorization",
        "password",
        "private_key",
    }
)

_TOKEN_PREFIXES = ("ghp_", "gho_", "ghu_", "ghs_", "ghr_", "github_pat_")

_JWT_LIKE_RE = re.compile(r"^[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+$")


def looks_like_secret_value(value: str) -> bool:
    """Return True if the value looks like a credential."""
    if not isinstance(value, str):
        return False
    trimmed = value.lstrip()
    lowered = trimmed.lower()
    if lowered.startswith("bearer ") or lowered.startswith(_TOKEN_PREFIXES):
        return True
    return len(trimmed) >= 40 and _JWT_LIKE_RE.match(trimmed) is not None


def validate_no_secrets(arguments: dict[str, Any]) -> None:
    """Reject tool arguments that carry credential-like field names or values.

    Raises:
        ParameterError: Without echoing the offending value.
    """
    for key, value in arguments.items():
        if str(key).strip().lower() in _CRED_FIELD_NAMES:
            raise ParameterError("credential-like parameters are not allowed")
        if isinstance(value, str) and looks_like_secret_value(value):
            raise ParameterError(f"parameter {key} looks like a credential and was rejected")


def redact_text(text: str) -> str:
    """Return a representation safe for logs."""
    if not isinstance(text, str):
        return "<non-string>"
    if looks_like_secret_value(text):
        return "<redacted>"
    return text
