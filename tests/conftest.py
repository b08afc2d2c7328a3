"""Shared test fixtures for the gridcontext test suite.

The documentation tree used throughout:

    https://x/versions.json          33.0.0, 34.0.0 (latest)
    https://x/33/index.json          frameworks only
    https://x/34/index.json          frameworks, changelog, modules, types
    https://x/34/frameworks.json     react
    https://x/34/react/...           docs, api, migrations, typescript examples
"""

from __future__ import annotations

import asyncio
import copy
from typing import Any

import pytest

from gridcontext.api import ContentApi
from gridcontext.errors import TransportError

BASE_URL = "https://x"
VERSIONS_URL = "https://x/versions.json"

VERSIONS = [
    {
        "version": "33.0.0",
        "releaseDate": "2024-01-01",
        "url": "https://x/33/index.json",
        "isLatest": False,
    },
    {
        "version": "34.0.0",
        "releaseDate": "2024-06-01",
        "url": "https://x/34/index.json",
        "isLatest": True,
    },
]

INDEX_33 = [
    {"id": "frameworks", "url": "https://x/33/frameworks.json"},
]

INDEX_34 = [
    {"id": "frameworks", "url": "https://x/34/frameworks.json"},
    {"id": "changelog", "url": "https://x/34/changelog.json"},
    {"id": "modules", "url": "https://x/34/modules.json"},
    {"id": "types", "url": "https://x/34/types.json"},
]

FRAMEWORKS_33 = [
    {
        "framework": "vue",
        "slug": "vue",
        "examples": {
            "typescript": "https://x/33/vue/ex-ts.json",
            "javascript": "https://x/33/vue/ex-js.json",
        },
        "docs": "https://x/33/vue/docs.json",
        "migrations": "https://x/33/vue/mig.json",
        "api": "https://x/33/vue/api.json",
    }
]

FRAMEWORKS_34 = [
    {
        "framework": "react",
        "slug": "react",
        "examples": {"typescript": "https://x/34/react/ex-ts.json"},
        "docs": "https://x/34/react/docs.json",
        "migrations": "https://x/34/react/mig.json",
        "api": "https://x/34/react/api.json",
    }
]

DOCS_REACT = [
    {
        "id": "getting-started",
        "name": "Getting Started",
        "description": "Install the grid and render your first rows",
        "url": "https://x/34/react/docs/getting-started.md",
        "mimeType": "text/plain",
    },
    {
        "id": "server-side-model",
        "name": "Server-Side Row Model",
        "url": "https://x/34/react/docs/server-side-model.md",
        "isEnterprise": True,
        "mimeType": "text/html",
    },
]

API_REACT = [
    {
        "id": "grid-options",
        "name": "Grid Options",
        "url": "https://x/34/react/api/grid-options.md",
        "mimeType": "text/plain",
    }
]

MIGRATIONS_REACT = [
    {"migrationVersion": "34.0.0", "url": "https://x/34/react/mig/34.md", "mimeType": "text/html"},
    {"migrationVersion": "32.0.0", "url": "https://x/34/react/mig/32.md", "mimeType": "text/html"},
    {"migrationVersion": "33.0.0", "url": "https://x/34/react/mig/33.md", "mimeType": "text/html"},
]

EXAMPLES_REACT_TS = [
    {
        "exampleName": "basic-grid",
        "pageName": "getting-started",
        "url": "https://x/34/react/examples/basic-grid.tsx",
        "preview": "https://x/34/react/examples/basic-grid.html",
    },
    {
        "exampleName": "row-grouping",
        "pageName": "grouping",
        "url": "https://x/34/react/examples/row-grouping.tsx",
        "preview": "https://x/34/react/examples/row-grouping.html",
    },
]

CHANGELOG_34 = [
    {
        "key": "GRID-101",
        "issueType": "Bug",
        "componentsByName": ["Filtering"],
        "summary": "Set filter loses selection after refresh",
        "versions": ["34.0.0"],
        "status": "Done",
        "resolution": "Fixed",
        "features": None,
        "moreInformation": None,
        "deprecationNotes": None,
        "breakingChangesNotes": None,
        "documentationUrl": None,
    }
]

MODULES_34 = {
    "groups": [
        {
            "name": "Row Models",
            "children": [
                {
                    "moduleName": "ClientSideRowModelModule",
                    "name": "Client-Side Row Model",
                    "children": [
                        {"moduleName": "RowApiModule", "name": "Row API"},
                    ],
                },
                {
                    "moduleName": "ServerSideRowModelModule",
                    "name": "Server-Side Row Model",
                    "isEnterprise": True,
                    "ssrmBundled": True,
                },
            ],
        },
        {"name": "Empty Group", "hideFromSelection": True},
    ]
}

TYPES_34 = {"GridOptions": {"rowData": "TData[]"}}


def build_responses() -> dict[str, Any]:
    return {
        VERSIONS_URL: VERSIONS,
        "https://x/33/index.json": INDEX_33,
        "https://x/34/index.json": INDEX_34,
        "https://x/33/frameworks.json": FRAMEWORKS_33,
        "https://x/34/frameworks.json": FRAMEWORKS_34,
        "https://x/34/changelog.json": CHANGELOG_34,
        "https://x/34/modules.json": MODULES_34,
        "https://x/34/types.json": TYPES_34,
        "https://x/34/react/docs.json": DOCS_REACT,
        "https://x/34/react/api.json": API_REACT,
        "https://x/34/react/mig.json": MIGRATIONS_REACT,
        "https://x/34/react/ex-ts.json": EXAMPLES_REACT_TS,
    }


class FakeFetcher:
    """In-memory FetcherProtocol that records every call.

    Set ``gate`` to an unset asyncio.Event to hold all responses back until
    the test sets it.
    """

    def __init__(self, responses: dict[str, Any]) -> None:
        self.responses = responses
        self.calls: list[str] = []
        self.gate: asyncio.Event | None = None

    async def fetch_json(self, url: str) -> Any:
        self.calls.append(url)
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)
        if url not in self.responses:
            raise TransportError(url, f"HTTP 404 fetching {url}", status_code=404)
        payload = self.responses[url]
        if isinstance(payload, Exception):
            raise payload
        return copy.deepcopy(payload)

    def count(self, url: str) -> int:
        return self.calls.count(url)


@pytest.fixture()
def responses() -> dict[str, Any]:
    return build_responses()


@pytest.fixture()
def fetcher(responses: dict[str, Any]) -> FakeFetcher:
    return FakeFetcher(responses)


@pytest.fixture()
async def api(fetcher: FakeFetcher) -> ContentApi:
    """ContentApi over the fake tree, with the eager version list fetch started."""
    return ContentApi(BASE_URL, fetcher)
