"""Cascade data model and merge outcomes."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict

from cascade_merge.errors import BranchNotInCascadeError
from cascade_merge.services.versioning import (
    DEFAULT_DEVELOPMENT_NAME,
    ZERO_VERSION,
    extract_version,
    sort_by_version,
)

# Returned by Cascade.next() once the last branch has been reached.
END_OF_CASCADE = ""


class CascadeOptions(BaseModel):
    """Branching model of a repository, as far as cascading is concerned."""

    model_config = ConfigDict(frozen=True)

    development_name: str
    release_prefix: str


@dataclass
class Cascade:
    """Ordered, duplicate-free list of branches to merge through."""

    branches: list[str] = field(default_factory=list)
    current: int = 0

    def __iter__(self) -> Iterator[str]:
        return iter(self.branches)

    def next(self) -> str:
        """Advance to the following branch, or return END_OF_CASCADE."""
        if self.current + 1 < len(self.branches):
            self.current += 1
            return self.branches[self.current]
        return END_OF_CASCADE

    def append(self, branch: str) -> None:
        if branch not in self.branches:
            self.branches.append(branch)

    def append_semver(self, branch: str, development_name: str = DEFAULT_DEVELOPMENT_NAME) -> None:
        """Add a branch and keep the list version-sorted.

        Branches without a usable version are ignored, as are duplicates.
        """
        if branch in self.branches:
            return
        if extract_version(branch, development_name) == ZERO_VERSION:
            return
        self.branches.append(branch)
        self.branches = sort_by_version(self.branches, development_name)

    def slice_from(self, start: str) -> None:
        """Drop every branch before ``start`` and rewind the cursor.

        Raises BranchNotInCascadeError, leaving the cascade untouched, when
        ``start`` is not part of it.
        """
        try:
            index = self.branches.index(start)
        except ValueError:
            raise BranchNotInCascadeError(start, list(self.branches)) from None
        self.branches = self.branches[index:]
        self.current = 0


@dataclass(frozen=True)
class Done:
    """Nothing left to merge."""


@dataclass(frozen=True)
class Conflict:
    """Merging ``source`` into ``target`` needs a human."""

    source: str
    target: str


@dataclass(frozen=True)
class Failed:
    """An infrastructure or resolution error aborted the cascade."""

    cause: Exception


MergeOutcome = Done | Conflict | Failed
