"""Wiring for embedding gridcontext in a long-running process.

A transport layer (MCP server, CLI) enters ``open_content_api()`` once and
keeps the yielded ContentApi for its lifetime.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog

from gridcontext import __version__
from gridcontext.api import ContentApi
from gridcontext.config import Settings
from gridcontext.fetcher import Fetcher, build_http_client
from gridcontext.logs import setup_logging

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

log = structlog.get_logger()


@asynccontextmanager
async def open_content_api(
    settings: Settings | None = None,
    *,
    configure_logging: bool = True,
) -> AsyncGenerator[ContentApi, None]:
    """Create the HTTP client and ContentApi, and close the client on exit."""
    settings = settings or Settings()
    if configure_logging:
        setup_logging(settings.logging)

    log.info("content_api_starting", version=__version__, base_url=settings.api.base_url)

    http_client = build_http_client(settings.http)
    try:
        api = ContentApi.from_settings(settings.api, Fetcher(http_client))
        yield api
    finally:
        await http_client.aclose()
        log.info("content_api_stopped")
