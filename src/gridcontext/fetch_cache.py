"""Single-flight, validated fetch memoization.

One asyncio.Task per URL. The task is created and stored synchronously on
the first request, before anything awaits, so every later request for the
same URL (concurrent or not) awaits that same task and the URL is fetched and
validated at most once. Failed tasks stay cached like successful ones: a
caller re-requesting a failed URL gets the same exception back until
``clear_cache()`` is called.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, TypeVar

import structlog
from pydantic import ValidationError

from gridcontext.errors import ContentError, ContentValidationError, TransportError

if TYPE_CHECKING:
    from gridcontext.protocols import FetcherProtocol, Validator

T = TypeVar("T")

log = structlog.get_logger()


class FetchCache:
    """URL-keyed cache of fetch+validate tasks."""

    def __init__(self, fetcher: FetcherProtocol) -> None:
        self._fetcher = fetcher
        self._entries: dict[str, asyncio.Task[Any]] = {}

    async def fetch_and_cache(self, url: str, validator: Validator[T]) -> T:
        """Return the validated document at ``url``, fetching it at most once.

        Awaits through ``asyncio.shield`` so a cancelled caller never cancels
        the fetch other callers are waiting on.
        """
        task = self._entries.get(url)
        if task is None:
            task = self._start(url, validator)
        return await asyncio.shield(task)

    async def refetch(self, url: str, validator: Validator[T]) -> T:
        """Replace the entry for ``url`` with a fresh fetch and await it."""
        return await asyncio.shield(self._start(url, validator))

    def has_cached(self, url: str) -> bool:
        """True once ``url`` has an entry, whether pending, resolved or failed."""
        return url in self._entries

    def clear_cache(self) -> None:
        """Drop every entry. In-flight fetches still complete for their current awaiters."""
        log.info("fetch_cache_cleared", entries=len(self._entries))
        self._entries = {}

    def _start(self, url: str, validator: Validator[T]) -> asyncio.Task[T]:
        task = asyncio.get_running_loop().create_task(self._load(url, validator))
        self._entries[url] = task
        task.add_done_callback(lambda done: self._on_done(url, done))
        return task

    async def _load(self, url: str, validator: Validator[T]) -> T:
        log.debug("fetch_started", url=url)
        try:
            data = await self._fetcher.fetch_json(url)
        except ContentError:
            raise
        except Exception as exc:
            raise TransportError(url, f"Failed to fetch {url}: {exc}", recoverable=True) from exc

        try:
            return validator(data)
        except ValueError as exc:
            errors = exc.errors() if isinstance(exc, ValidationError) else []
            raise ContentValidationError(
                url, f"Invalid content at {url}: {exc}", errors=errors
            ) from exc

    def _on_done(self, url: str, task: asyncio.Task[Any]) -> None:
        if task.cancelled():
            # Only happens when the loop is torn down; nothing was learned
            # about the URL, so the next request starts over.
            if self._entries.get(url) is task:
                del self._entries[url]
            return
        # Reading the exception here also marks it retrieved for asyncio.
        exc = task.exception()
        if exc is not None:
            log.warning("fetch_failed", url=url, error_type=type(exc).__name__, error=str(exc))
