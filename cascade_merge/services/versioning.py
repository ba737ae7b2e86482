"""Version keys derived from release branch names.

Branches are expected to be named ``<kind>/<version>``, e.g. ``release/22.1.1``,
``release/v22.1.1`` or ``release/version_22.1.1``. The development branch has
no version of its own and sorts after every release branch.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from packaging.version import Version

DEFAULT_DEVELOPMENT_NAME = "devel"

# Sentinels: the development branch sorts last, unparsable names sort first.
MAX_VERSION = Version("99999999")
ZERO_VERSION = Version("0")

# major[.minor[.patch]] with an optional leading "v". Suffixed names such as
# 1.0.0-1 or 1.2.3-hotfix are not release lines and carry no usable key.
_SEMVER_RE = re.compile(r"v?\d+(?:\.\d+){0,2}", re.ASCII)


def parse_version(branch: str) -> Version | None:
    """Parse the version carried by the last path segment of a branch name."""
    segment = branch.replace("version_", "").split("/")[-1]
    if not _SEMVER_RE.fullmatch(segment):
        return None
    return Version(segment)


def extract_version(branch: str, development_name: str = DEFAULT_DEVELOPMENT_NAME) -> Version:
    """Return the sort key of a branch. Never raises."""
    version = parse_version(branch)
    if version is not None:
        return version
    if branch == development_name:
        return MAX_VERSION
    return ZERO_VERSION


def sort_by_version(
    branches: Iterable[str], development_name: str = DEFAULT_DEVELOPMENT_NAME
) -> list[str]:
    """Sort branch names by ascending version; ties keep their input order."""
    return sorted(branches, key=lambda b: extract_version(b, development_name))
