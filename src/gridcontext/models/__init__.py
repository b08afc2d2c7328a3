from __future__ import annotations

from gridcontext.models.content import (
    CHANGELOG,
    DOC_LIST,
    EXAMPLE_LIST,
    FRAMEWORK_LIST,
    INDEX,
    LANGUAGES,
    MIGRATION_LIST,
    MODULE_LIST,
    TYPES,
    VERSION_LIST,
    ChangelogEntry,
    DocEntry,
    ExampleEntry,
    FrameworkDescriptor,
    FrameworkExamples,
    FrameworkName,
    IndexLink,
    Language,
    MigrationEntry,
    ModuleEntry,
    ModuleGroup,
    ModuleList,
    VersionDescriptor,
)

__all__ = [
    # literals
    "LANGUAGES",
    "FrameworkName",
    "Language",
    # version level
    "VersionDescriptor",
    "IndexLink",
    "ChangelogEntry",
    "ModuleList",
    "ModuleGroup",
    "ModuleEntry",
    # framework level
    "FrameworkDescriptor",
    "FrameworkExamples",
    "DocEntry",
    "MigrationEntry",
    "ExampleEntry",
    # validators
    "VERSION_LIST",
    "INDEX",
    "FRAMEWORK_LIST",
    "DOC_LIST",
    "MIGRATION_LIST",
    "EXAMPLE_LIST",
    "CHANGELOG",
    "MODULE_LIST",
    "TYPES",
]
