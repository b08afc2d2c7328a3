"""Prefix completion for version ids, framework names and example languages."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel

from gridcontext.models.content import LANGUAGES

if TYPE_CHECKING:
    from gridcontext.api import ContentApi
    from gridcontext.endpoints import VersionEndpoint


class Completion(BaseModel):
    values: list[str]
    total: int
    has_more: bool = False


def _completion(values: list[str]) -> Completion:
    return Completion(values=values, total=len(values))


async def complete_version(api: ContentApi, prefix: str) -> Completion:
    return _completion([v.id for v in await api.versions() if v.id.startswith(prefix)])


async def complete_framework(version: VersionEndpoint, prefix: str) -> Completion:
    prefix = prefix.lower()
    return _completion([n for n in await version.framework_names() if n.startswith(prefix)])


def complete_language(prefix: str) -> Completion:
    prefix = prefix.lower()
    return _completion([language for language in LANGUAGES if language.startswith(prefix)])
