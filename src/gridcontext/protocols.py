"""Protocol interfaces for swappable components.

FetchCache and the endpoints reference these, not the concrete
implementations, so tests can substitute in-memory fetchers that count calls
or hold responses back.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, TypeVar

T = TypeVar("T")

# Given decoded JSON, return the typed value or raise ValueError
# (pydantic.ValidationError is a ValueError).
Validator = Callable[[Any], T]


class FetcherProtocol(Protocol):
    """Interface for the HTTP JSON fetcher."""

    async def fetch_json(self, url: str) -> Any: ...
