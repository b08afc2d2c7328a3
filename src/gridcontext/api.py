"""Top-level entry point to the documentation tree.

ContentApi owns the FetchCache shared by every endpoint it hands out, and
the map from version id to VersionEndpoint. ``"latest"`` is an alias key:
once the version list has loaded, the entry flagged ``isLatest`` is reachable
through both its real id and ``"latest"`` as one VersionEndpoint instance.
Calls to ``version("latest")`` and ``version(<real id>)`` that both happen
before the list has loaded each get their own endpoint; the two resolve to
equal descriptors but are not the same object.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING
from urllib.parse import urljoin

import structlog

from gridcontext.endpoints import VersionEndpoint, find_or_fail, spawn
from gridcontext.errors import ContentError, InvalidReferenceError
from gridcontext.fetch_cache import FetchCache
from gridcontext.models.content import VERSION_LIST

if TYPE_CHECKING:
    from gridcontext.config import ApiSettings
    from gridcontext.models.content import VersionDescriptor
    from gridcontext.protocols import FetcherProtocol

log = structlog.get_logger()

LATEST = "latest"


def _resolved(value: VersionDescriptor) -> asyncio.Future[VersionDescriptor]:
    future: asyncio.Future[VersionDescriptor] = asyncio.get_running_loop().create_future()
    future.set_result(value)
    return future


class ContentApi:
    """Resolves versions and hands out VersionEndpoints.

    With ``eager=True`` (the default) the version list fetch starts in the
    constructor, which must then run inside an event loop. With
    ``eager=False`` it starts on first use.

    The version list is the one document that goes stale: after
    ``versions_ttl_seconds`` a call to ``versions()`` fetches it again. If
    that refresh fails the previous list is kept. ``None`` disables refresh.
    An endpoint that failed against an older list is replaced once a
    refreshed list contains its id (or flags a latest version, for
    ``"latest"``).
    """

    def __init__(
        self,
        base_url: str,
        fetcher: FetcherProtocol,
        *,
        versions_path: str = "versions.json",
        versions_ttl_seconds: float | None = 300.0,
        eager: bool = True,
    ) -> None:
        self._cache = FetchCache(fetcher)
        self._versions_url = urljoin(base_url.rstrip("/") + "/", versions_path)
        self._versions_ttl_seconds = versions_ttl_seconds
        self._eager = eager

        self._versions_task: asyncio.Task[list[VersionDescriptor]] | None = None
        self._versions_loaded_at: float | None = None
        # Bumped by clear_cache() so loads started before a clear cannot
        # register endpoints into the fresh map.
        self._generation = 0
        self._endpoints: dict[str, VersionEndpoint] = {}

        if eager:
            self._get_versions_task()

    @classmethod
    def from_settings(cls, settings: ApiSettings, fetcher: FetcherProtocol) -> ContentApi:
        return cls(
            settings.base_url,
            fetcher,
            versions_path=settings.versions_path,
            versions_ttl_seconds=settings.versions_ttl_seconds,
            eager=settings.eager,
        )

    @property
    def versions_url(self) -> str:
        return self._versions_url

    # ------------------------------------------------------------------
    # Version list
    # ------------------------------------------------------------------

    def _get_versions_task(self) -> asyncio.Task[list[VersionDescriptor]]:
        if self._versions_task is None:
            self._versions_task = spawn(self._load_versions(self._generation), name="versions")
        return self._versions_task

    async def _load_versions(self, generation: int) -> list[VersionDescriptor]:
        versions = await self._cache.fetch_and_cache(
            self._versions_url, VERSION_LIST.validate_python
        )
        if generation == self._generation:
            self._versions_loaded_at = time.monotonic()
            self._drop_failed(versions)
            self._register_latest(versions)
        log.info("versions_loaded", url=self._versions_url, count=len(versions))
        return versions

    async def _refresh_versions(
        self, stale: list[VersionDescriptor], generation: int
    ) -> list[VersionDescriptor]:
        try:
            versions = await self._cache.refetch(self._versions_url, VERSION_LIST.validate_python)
        except ContentError as exc:
            log.warning("versions_refresh_failed", url=self._versions_url, error=str(exc))
            versions = stale
        if generation == self._generation:
            self._versions_loaded_at = time.monotonic()
            self._drop_failed(versions)
            self._register_latest(versions)
        return versions

    def _versions_are_stale(self) -> bool:
        task = self._versions_task
        return (
            self._versions_ttl_seconds is not None
            and self._versions_loaded_at is not None
            and task is not None
            and task.done()
            and time.monotonic() - self._versions_loaded_at >= self._versions_ttl_seconds
        )

    def _drop_failed(self, versions: list[VersionDescriptor]) -> None:
        """Forget endpoints that failed for ids this list now contains."""
        keys = {v.id for v in versions}
        if any(v.is_latest for v in versions):
            keys.add(LATEST)
        for key in keys:
            endpoint = self._endpoints.get(key)
            if endpoint is not None and endpoint.failed():
                log.info("version_endpoint_replaced", version=key)
                del self._endpoints[key]

    def _register_latest(self, versions: list[VersionDescriptor]) -> None:
        latest = next((v for v in versions if v.is_latest), None)
        if latest is None:
            return

        alias = self._endpoints.get(LATEST)
        if alias is not None:
            current = alias.resolved()
            if current is not None and current.id != latest.id:
                # A refreshed list moved "latest" to a newer version.
                log.info("latest_version_changed", previous=current.id, latest=latest.id)
                del self._endpoints[LATEST]
                alias = None

        by_id = self._endpoints.get(latest.id)
        if by_id is None and alias is None:
            endpoint = VersionEndpoint(self._cache, _resolved(latest))
            self._endpoints[latest.id] = endpoint
            self._endpoints[LATEST] = endpoint
        elif by_id is None:
            self._endpoints[latest.id] = alias
        elif alias is None:
            self._endpoints[LATEST] = by_id

    async def versions(self) -> list[VersionDescriptor]:
        versions = await asyncio.shield(self._get_versions_task())
        if self._versions_are_stale():
            log.debug("versions_stale", url=self._versions_url)
            self._versions_task = spawn(
                self._refresh_versions(versions, self._generation), name="versions-refresh"
            )
            versions = await asyncio.shield(self._versions_task)
        return versions

    async def available_versions(self) -> list[str]:
        """Version ids, newest first."""
        versions = await self.versions()
        return [v.id for v in sorted(versions, key=lambda v: v.semver, reverse=True)]

    async def latest_version_id(self) -> str | None:
        return next((v.id for v in await self.versions() if v.is_latest), None)

    async def is_valid_version(self, version_id: str) -> bool:
        return any(v.id == version_id for v in await self.versions())

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def version(self, version_id: str) -> VersionEndpoint:
        """Return the endpoint for ``version_id`` (or ``"latest"``), creating it on first use."""
        endpoint = self._endpoints.get(version_id)
        if endpoint is None:
            endpoint = VersionEndpoint(
                self._cache,
                spawn(self._find_version(version_id), name=f"version:{version_id}"),
            )
            self._endpoints[version_id] = endpoint
        return endpoint

    def latest(self) -> VersionEndpoint:
        return self.version(LATEST)

    async def _find_version(self, version_id: str) -> VersionDescriptor:
        versions = await self.versions()
        if version_id == LATEST:
            latest = next((v for v in versions if v.is_latest), None)
            if latest is None:
                raise InvalidReferenceError(
                    "Invalid version: no version is flagged as latest",
                    key=version_id,
                    collection="versions",
                )
            return latest
        return find_or_fail(
            versions,
            version_id,
            lambda v: v.id,
            lambda suggestion: InvalidReferenceError(
                f"Invalid version: '{version_id}'",
                key=version_id,
                collection="versions",
                suggestion=suggestion,
            ),
        )

    # ------------------------------------------------------------------
    # Cache control
    # ------------------------------------------------------------------

    def clear_cache(self) -> None:
        """Forget every fetched document and every endpoint handed out so far.

        With ``eager`` set the version list fetch restarts at once when called
        inside an event loop. Outside one, the next ``versions()`` starts it.
        """
        self._cache.clear_cache()
        self._endpoints = {}
        self._versions_task = None
        self._versions_loaded_at = None
        self._generation += 1
        log.info("content_api_cache_cleared", generation=self._generation)
        if not self._eager:
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return
        self._get_versions_task()

    def has_cached(self, url: str) -> bool:
        return self._cache.has_cached(url)
