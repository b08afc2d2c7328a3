"""Lazy accessors for one version and one (version, framework) pair.

An endpoint is handed a task that resolves to its own descriptor and hands
out child endpoints synchronously, each bound to a task of its own that
starts resolving as soon as the child is created. Every document is fetched
through the shared FetchCache, keyed by the URL discovered in its parent
document.

``framework()`` and the ContentApi lookups create tasks, so they must be
called from inside a running event loop even though they do not await.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine, Iterable
from typing import TYPE_CHECKING, Any, TypeVar

import structlog
from rapidfuzz import fuzz, process

from gridcontext.errors import ContentError, InvalidReferenceError, NotFoundError
from gridcontext.models.content import (
    CHANGELOG,
    DOC_LIST,
    EXAMPLE_LIST,
    FRAMEWORK_LIST,
    INDEX,
    MIGRATION_LIST,
    MODULE_LIST,
    TYPES,
)
from gridcontext.semver import Semver, parse

if TYPE_CHECKING:
    from gridcontext.fetch_cache import FetchCache
    from gridcontext.models.content import (
        ChangelogEntry,
        DocEntry,
        ExampleEntry,
        FrameworkDescriptor,
        IndexLink,
        MigrationEntry,
        ModuleEntry,
        ModuleList,
        VersionDescriptor,
    )
    from gridcontext.protocols import Validator

T = TypeVar("T")

log = structlog.get_logger()

_SUGGESTION_SCORE_CUTOFF = 60
_SUGGESTION_LIMIT = 3


def spawn(coro: Coroutine[Any, Any, T], *, name: str) -> asyncio.Task[T]:
    """Start ``coro`` as a task whose failure is logged even if never awaited."""
    task = asyncio.get_running_loop().create_task(coro, name=name)
    task.add_done_callback(_observe)
    return task


def _observe(task: asyncio.Task[Any]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        log.debug("endpoint_resolution_failed", task=task.get_name(), error=str(exc))


def suggest(key: str, candidates: list[str]) -> str:
    """Human hint naming the candidates closest to ``key``."""
    if not candidates:
        return ""
    matches = process.extract(
        key,
        candidates,
        scorer=fuzz.ratio,
        limit=_SUGGESTION_LIMIT,
        score_cutoff=_SUGGESTION_SCORE_CUTOFF,
    )
    if matches:
        return "Did you mean " + ", ".join(f"'{term}'" for term, _score, _idx in matches) + "?"
    return "Available: " + ", ".join(f"'{c}'" for c in candidates[:10])


def find_or_fail(
    items: Iterable[T],
    key: str,
    extract: Callable[[T], str],
    make_error: Callable[[str], ContentError],
) -> T:
    """Return the first item whose extracted key equals ``key``.

    Otherwise raise ``make_error(suggestion)``, where the suggestion names the
    nearest keys present in ``items``.
    """
    items = list(items)
    for item in items:
        if extract(item) == key:
            return item
    raise make_error(suggest(key, [extract(item) for item in items]))


def _walk_modules(modules: Iterable[ModuleEntry]) -> Iterable[ModuleEntry]:
    for module in modules:
        yield module
        if module.children:
            yield from _walk_modules(module.children)


class VersionEndpoint:
    """Accessor for one documentation version."""

    def __init__(self, cache: FetchCache, descriptor: asyncio.Future[VersionDescriptor]) -> None:
        self._cache = cache
        self._descriptor = descriptor
        self._index: asyncio.Task[list[IndexLink]] | None = None
        self._frameworks: dict[str, FrameworkEndpoint] = {}

    async def get_version(self) -> VersionDescriptor:
        return await asyncio.shield(self._descriptor)

    def resolved(self) -> VersionDescriptor | None:
        """The descriptor if it has already resolved, else None."""
        future = self._descriptor
        if not future.done() or future.cancelled() or future.exception() is not None:
            return None
        return future.result()

    def failed(self) -> bool:
        """True once the descriptor task has settled without a descriptor."""
        future = self._descriptor
        return future.done() and (future.cancelled() or future.exception() is not None)

    def framework(self, name: str) -> FrameworkEndpoint:
        """Return the endpoint for framework ``name``, creating it on first use."""
        endpoint = self._frameworks.get(name)
        if endpoint is None:
            endpoint = FrameworkEndpoint(
                self._cache, spawn(self._find_framework(name), name=f"framework:{name}")
            )
            self._frameworks[name] = endpoint
        return endpoint

    async def _find_framework(self, name: str) -> FrameworkDescriptor:
        frameworks = await self.frameworks()
        version = await self.get_version()
        return find_or_fail(
            frameworks,
            name,
            lambda f: f.framework,
            lambda suggestion: InvalidReferenceError(
                f"Invalid framework for version {version.id}: '{name}'",
                key=name,
                collection="frameworks",
                suggestion=suggestion,
            ),
        )

    # ------------------------------------------------------------------
    # Index resolution
    # ------------------------------------------------------------------

    def _get_index_data(self) -> asyncio.Task[list[IndexLink]]:
        if self._index is None:
            self._index = spawn(self._load_index(), name="version-index")
        return self._index

    async def _load_index(self) -> list[IndexLink]:
        version = await self.get_version()
        return await self._cache.fetch_and_cache(version.index_url, INDEX.validate_python)

    async def _get_index_link(self, link_id: str) -> IndexLink | None:
        index = await asyncio.shield(self._get_index_data())
        return next((link for link in index if link.id == link_id), None)

    async def _fetch_linked(self, link_id: str, validator: Validator[T]) -> T:
        link = await self._get_index_link(link_id)
        if link is None:
            raise NotFoundError(
                f"{link_id.capitalize()} endpoint not found in index",
                key=link_id,
                collection="index",
            )
        return await self._cache.fetch_and_cache(link.url, validator)

    # ------------------------------------------------------------------
    # Linked documents
    # ------------------------------------------------------------------

    async def frameworks(self) -> list[FrameworkDescriptor]:
        return await self._fetch_linked("frameworks", FRAMEWORK_LIST.validate_python)

    async def changelog(self) -> list[ChangelogEntry]:
        return await self._fetch_linked("changelog", CHANGELOG.validate_python)

    async def modules(self) -> ModuleList:
        return await self._fetch_linked("modules", MODULE_LIST.validate_python)

    async def types(self) -> Any:
        return await self._fetch_linked("types", TYPES.validate_python)

    async def framework_names(self) -> list[str]:
        return [f.framework for f in await self.frameworks()]

    async def find_modules(self, query: str) -> list[ModuleEntry]:
        """Modules at any depth whose name or module name contains ``query``."""
        needle = query.lower()
        module_list = await self.modules()
        found: list[ModuleEntry] = []
        for group in module_list.groups:
            for module in _walk_modules(group.children or []):
                if needle in module.name.lower() or (
                    module.module_name and needle in module.module_name.lower()
                ):
                    found.append(module)
        return found

    async def is_feature_available(self, feature: str, *, enterprise: bool) -> bool:
        """Whether the first module matching ``feature`` is usable under the licence."""
        matches = await self.find_modules(feature)
        if not matches:
            return False
        return enterprise or not matches[0].is_enterprise


class FrameworkEndpoint:
    """Accessor for one framework within one version."""

    def __init__(
        self, cache: FetchCache, descriptor: asyncio.Future[FrameworkDescriptor]
    ) -> None:
        self._cache = cache
        self._descriptor = descriptor

    async def get_framework(self) -> FrameworkDescriptor:
        return await asyncio.shield(self._descriptor)

    async def docs(self) -> list[DocEntry]:
        framework = await self.get_framework()
        return await self._cache.fetch_and_cache(framework.docs_url, DOC_LIST.validate_python)

    async def api(self) -> list[DocEntry]:
        framework = await self.get_framework()
        return await self._cache.fetch_and_cache(framework.api_url, DOC_LIST.validate_python)

    async def doc(self, doc_id: str) -> DocEntry:
        return find_or_fail(
            await self.docs(),
            doc_id,
            lambda d: d.id,
            lambda suggestion: NotFoundError(
                f"Doc with id '{doc_id}' not found",
                key=doc_id,
                collection="docs",
                suggestion=suggestion,
            ),
        )

    async def search_docs(self, query: str) -> list[DocEntry]:
        needle = query.lower()
        return [
            d
            for d in await self.docs()
            if needle in d.name.lower() or (d.description and needle in d.description.lower())
        ]

    async def docs_for_license(self, *, enterprise: bool) -> list[DocEntry]:
        """All docs for enterprise users; community users only see community docs."""
        docs = await self.docs()
        if enterprise:
            return docs
        return [d for d in docs if not d.is_enterprise]

    async def migrations(self) -> list[MigrationEntry]:
        framework = await self.get_framework()
        return await self._cache.fetch_and_cache(
            framework.migrations_url, MIGRATION_LIST.validate_python
        )

    async def migration(self, version_tag: str) -> MigrationEntry:
        return find_or_fail(
            await self.migrations(),
            version_tag,
            lambda m: m.migration_version,
            lambda suggestion: NotFoundError(
                f"Migration with id '{version_tag}' not found",
                key=version_tag,
                collection="migrations",
                suggestion=suggestion,
            ),
        )

    async def migration_path(
        self, current: str | Semver, target: str | Semver
    ) -> list[MigrationEntry]:
        """Migrations needed to go from ``current`` to ``target``, oldest first.

        Includes guides after ``current`` up to and including ``target``.
        Guides whose tag is not a version number are never on a path.
        """
        start = parse(current) if isinstance(current, str) else current
        end = parse(target) if isinstance(target, str) else target
        path = [
            m for m in await self.migrations() if m.semver is not None and start < m.semver <= end
        ]
        return sorted(path, key=lambda m: m.semver)

    async def examples(self, language: str) -> list[ExampleEntry]:
        framework = await self.get_framework()
        url = framework.examples_urls.get(language)
        if url is None:
            raise NotFoundError(
                f"No examples available for type '{language}' "
                f"in framework '{framework.framework_name}'",
                key=language,
                collection="examples",
                suggestion=suggest(language, list(framework.examples_urls)),
            )
        return await self._cache.fetch_and_cache(url, EXAMPLE_LIST.validate_python)

    async def example(self, language: str, example_id: str) -> ExampleEntry:
        return find_or_fail(
            await self.examples(language),
            example_id,
            lambda e: e.example_name,
            lambda suggestion: NotFoundError(
                f"Example with id '{example_id}' not found for type '{language}'",
                key=example_id,
                collection="examples",
                suggestion=suggestion,
            ),
        )

    async def search_examples(self, language: str, query: str) -> list[ExampleEntry]:
        needle = query.lower()
        return [
            e
            for e in await self.examples(language)
            if needle in e.example_name.lower() or needle in e.page_name.lower()
        ]
