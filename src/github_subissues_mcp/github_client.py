"""GitHub REST client wrapper.

Provides:
- https-only API base URL and no-redirect behavior
- finite timeouts
- a single attempt per call (no retries)
- raw responses for every HTTP status, so callers decide how to adapt failures
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import httpx

from .config import DEFAULT_API_BASE_URL, LimitsConfig
from .errors import SafeError

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[str]]


@dataclass(frozen=True, slots=True)
class GitHubResponse:
    """Status and undecoded body of an upstream response."""

    status_code: int
    content: bytes

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Decode the body as JSON."""
        try:
            return json.loads(self.content)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise SafeError(code="GitHub", message="GitHub returned invalid JSON", status_code=self.status_code) from exc

    def error_detail(self) -> str:
        """Upstream diagnostic text: the ``message`` field when present, else the raw body."""
        try:
            payload = json.loads(self.content)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return self.text
        if isinstance(payload, dict) and isinstance(payload.get("message"), str):
            return payload["message"]
        return self.text


class GitHubClient:
    """Minimal GitHub REST client."""

    def __init__(
        self,
        *,
        token_provider: TokenProvider,
        limits: LimitsConfig,
        api_base_url: str = DEFAULT_API_BASE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Create a GitHub REST client.

        Args:
            token_provider: Async callable that returns the access token.
            limits: Timeouts.
            api_base_url: Must be an https URL.
            transport: Optional httpx transport for tests.
        """
        self._token_provider = token_provider
        self._limits = limits
        self._api_base_url = api_base_url.rstrip("/")
        self._transport = transport

        if not self._api_base_url.startswith("https://"):
            raise SafeError(code="Config", message="GitHub API base URL must use https")

    @property
    def api_base_url(self) -> str:
        return self._api_base_url

    def _headers(self, token: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    async def request(
        self,
        *,
        method: str,
        path: str,
        json_body: dict[str, Any] | None = None,
    ) -> GitHubResponse:
        """Make one request and return the response, whatever its status.

        Raises:
            SafeError: On transport failures and timeouts.
        """
        url = f"{self._api_base_url}/{path.lstrip('/')}"
        token = await self._token_provider()

        timeout = httpx.Timeout(
            timeout=self._limits.total_timeout_s,
            connect=self._limits.connect_timeout_s,
            read=self._limits.read_timeout_s,
        )

        async with httpx.AsyncClient(
            follow_redirects=False,
            timeout=timeout,
            transport=self._transport,
        ) as client:
            try:
                resp = await client.request(
                    method,
                    url,
                    headers=self._headers(token),
                    json=json_body,
                )
            except httpx.TimeoutException as exc:
                raise SafeError(code="Network", message="GitHub request timed out") from exc
            except httpx.HTTPError as exc:
                raise SafeError(code="Network", message="Network request failed") from exc

        logger.debug("GitHub %s %s -> %s", method, path, resp.status_code)
        return GitHubResponse(status_code=resp.status_code, content=resp.content)
