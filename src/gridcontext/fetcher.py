"""HTTP JSON fetcher.

All network I/O goes through a single Fetcher instance. The Fetcher receives
an httpx.AsyncClient via constructor injection; whoever builds the client
(see ``runtime.open_content_api``) owns its lifecycle.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from gridcontext import __version__
from gridcontext.config import HttpSettings
from gridcontext.errors import ContentValidationError, TransportError

log = structlog.get_logger()

_TRANSIENT_STATUS_CODES = frozenset({408, 429})


def build_http_client(settings: HttpSettings | None = None) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once at startup."""
    settings = settings or HttpSettings()
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(settings.timeout_seconds),
        headers={
            "User-Agent": settings.user_agent or f"gridcontext/{__version__}",
            "Accept": "application/json",
        },
        limits=httpx.Limits(
            max_connections=settings.max_connections,
            max_keepalive_connections=settings.max_keepalive_connections,
        ),
    )


def _is_transient(status_code: int) -> bool:
    return status_code >= 500 or status_code in _TRANSIENT_STATUS_CODES


class Fetcher:
    """GETs a URL and decodes its JSON body."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def fetch_json(self, url: str) -> Any:
        """Fetch ``url`` and return the decoded JSON body.

        Raises TransportError on network errors and non-2xx responses, and
        ContentValidationError when the body is not valid JSON.
        """
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as exc:
            raise TransportError(
                url,
                f"Network error fetching {url}: {exc}",
                recoverable=True,
            ) from exc

        if not response.is_success:
            raise TransportError(
                url,
                f"HTTP {response.status_code} fetching {url}",
                status_code=response.status_code,
                recoverable=_is_transient(response.status_code),
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise ContentValidationError(url, f"Invalid JSON body from {url}: {exc}") from exc

        log.info(
            "fetch_complete",
            url=url,
            status_code=response.status_code,
            content_length=len(response.content),
        )
        return data
