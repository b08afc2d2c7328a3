"""Semantic version parsing and comparison.

Versions in the documentation tree are plain ``MAJOR.MINOR.PATCH`` strings.
Parsing is lenient: a leading ``v`` is accepted and a missing minor or patch
component counts as zero, so ``"v33"`` and ``"33.0.0"`` compare equal.
"""

from __future__ import annotations

import re
from typing import NamedTuple

_SEMVER_RE = re.compile(r"^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?")


class Semver(NamedTuple):
    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


def parse(version: str) -> Semver:
    """Parse a version string. Raises ``ValueError`` if it has no leading number."""
    match = _SEMVER_RE.match(version.strip())
    if not match:
        raise ValueError(f"Invalid semver version: {version!r}")
    major, minor, patch = match.groups()
    return Semver(int(major), int(minor or 0), int(patch or 0))

