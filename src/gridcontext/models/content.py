"""Descriptors for every document in the documentation tree.

Each model validates one wire shape (camelCase keys, accepted through
aliases) into an immutable snake_case descriptor. The ``*_LIST`` adapters at
the bottom are the validators handed to ``FetchCache.fetch_and_cache``.
"""

from __future__ import annotations

from datetime import date
from typing import Annotated, Any, Literal, get_args
from urllib.parse import urlparse

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, TypeAdapter, model_validator

from gridcontext.semver import Semver, parse

FrameworkName = Literal["vanilla", "react", "angular", "vue"]
Language = Literal["typescript", "javascript"]
ContentType = Literal["text/html", "text/plain"]

LANGUAGES: tuple[str, ...] = get_args(Language)


def _require_absolute_url(value: str) -> str:
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Expected an absolute http(s) URL, got {value!r}")
    return value


Url = Annotated[str, AfterValidator(_require_absolute_url)]


class _Descriptor(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class VersionDescriptor(_Descriptor):
    """One entry of the top-level version list."""

    id: str
    semver: Semver
    release_date: date = Field(alias="releaseDate")
    url: Url  # The version's index document
    is_latest: bool = Field(default=False, alias="isLatest")

    @model_validator(mode="before")
    @classmethod
    def _derive_id(cls, data: Any) -> Any:
        # Wire shape carries "version"; id and semver are derived from it.
        if isinstance(data, dict) and "version" in data and "id" not in data:
            data = dict(data)
            raw = data.pop("version")
            if not isinstance(raw, str):
                raise ValueError("'version' must be a string")
            data["id"] = raw
            data["semver"] = parse(raw)
        return data

    @property
    def index_url(self) -> str:
        return self.url


class IndexLink(_Descriptor):
    id: str
    url: Url


class FrameworkExamples(_Descriptor):
    typescript: Url
    javascript: Url | None = None


class FrameworkDescriptor(_Descriptor):
    framework: FrameworkName
    slug: str
    examples: FrameworkExamples
    docs: Url
    migrations: Url
    api: Url

    @property
    def framework_name(self) -> str:
        return self.framework

    @property
    def docs_url(self) -> str:
        return self.docs

    @property
    def api_url(self) -> str:
        return self.api

    @property
    def migrations_url(self) -> str:
        return self.migrations

    @property
    def examples_urls(self) -> dict[str, str]:
        """Language → example list URL, for languages that have one."""
        return {
            language: url
            for language, url in self.examples.model_dump().items()
            if url is not None
        }


class DocEntry(_Descriptor):
    id: str
    name: str
    description: str | None = None
    url: Url
    is_enterprise: bool = Field(default=False, alias="isEnterprise")
    content_type: ContentType = Field(alias="mimeType")


class MigrationEntry(_Descriptor):
    migration_version: str = Field(alias="migrationVersion")
    semver: Semver | None = None  # None when the tag is not a version number
    url: Url
    content_type: ContentType = Field(alias="mimeType")

    @model_validator(mode="before")
    @classmethod
    def _derive_semver(cls, data: Any) -> Any:
        if isinstance(data, dict) and "semver" not in data:
            raw = data.get("migrationVersion", data.get("migration_version"))
            if isinstance(raw, str):
                try:
                    data = {**data, "semver": parse(raw)}
                except ValueError:
                    data = {**data, "semver": None}
        return data


class ExampleEntry(_Descriptor):
    example_name: str = Field(alias="exampleName")
    page_name: str = Field(alias="pageName")
    url: Url
    preview_url: Url = Field(alias="preview")


class ChangelogEntry(_Descriptor):
    key: str
    issue_type: str = Field(alias="issueType")
    components_by_name: list[str] = Field(alias="componentsByName")
    summary: str
    versions: list[str]
    status: str
    resolution: str
    features: list[str] | None
    more_information: str | None = Field(alias="moreInformation")
    deprecation_notes: str | None = Field(alias="deprecationNotes")
    breaking_changes_notes: str | None = Field(alias="breakingChangesNotes")
    documentation_url: str | None = Field(alias="documentationUrl")


class ModuleEntry(_Descriptor):
    module_name: str | None = Field(default=None, alias="moduleName")
    name: str
    path: str | None = None
    is_enterprise: bool = Field(default=False, alias="isEnterprise")
    ssrm_bundled: bool = Field(default=False, alias="ssrmBundled")
    children: list[ModuleEntry] | None = None


class ModuleGroup(_Descriptor):
    name: str
    children: list[ModuleEntry] | None = None
    is_enterprise: bool = Field(default=False, alias="isEnterprise")
    hide_from_selection: bool = Field(default=False, alias="hideFromSelection")


class ModuleList(_Descriptor):
    groups: list[ModuleGroup]


ModuleEntry.model_rebuild()

VERSION_LIST: TypeAdapter[list[VersionDescriptor]] = TypeAdapter(list[VersionDescriptor])
INDEX: TypeAdapter[list[IndexLink]] = TypeAdapter(list[IndexLink])
FRAMEWORK_LIST: TypeAdapter[list[FrameworkDescriptor]] = TypeAdapter(list[FrameworkDescriptor])
DOC_LIST: TypeAdapter[list[DocEntry]] = TypeAdapter(list[DocEntry])
MIGRATION_LIST: TypeAdapter[list[MigrationEntry]] = TypeAdapter(list[MigrationEntry])
EXAMPLE_LIST: TypeAdapter[list[ExampleEntry]] = TypeAdapter(list[ExampleEntry])
CHANGELOG: TypeAdapter[list[ChangelogEntry]] = TypeAdapter(list[ChangelogEntry])
MODULE_LIST: TypeAdapter[ModuleList] = TypeAdapter(ModuleList)
TYPES: TypeAdapter[Any] = TypeAdapter(Any)
