"""Test doubles shared by the test modules."""

from __future__ import annotations

from contextlib import asynccontextmanager

from cascade_merge.errors import GitError
from cascade_merge.models.bitbucket import CreatedPullRequest
from cascade_merge.models.cascade import CascadeOptions
from cascade_merge.models.webhook import MergeEvent
from cascade_merge.services.git_client import MergeResult


class FakeBackend:
    """In-memory CascadeBackend recording every call."""

    def __init__(
        self,
        branches: set[str],
        options: CascadeOptions | None = None,
        conflicts: set[tuple[str, str]] = frozenset(),
        failures: set[tuple[str, str]] = frozenset(),
        options_error: Exception | None = None,
        pr_error: Exception | None = None,
    ):
        self.branches = branches
        self.options = options or CascadeOptions(development_name="devel", release_prefix="release/")
        self.conflicts = conflicts
        self.failures = failures
        self.options_error = options_error
        self.pr_error = pr_error
        self.merges: list[tuple[str, str]] = []
        self.pull_requests: list[tuple[str, str, str, str]] = []

    async def get_cascade_options(self) -> CascadeOptions:
        if self.options_error:
            raise self.options_error
        return self.options

    async def list_branches(self) -> set[str]:
        return set(self.branches)

    async def merge_branch(self, current: str, target: str) -> MergeResult:
        self.merges.append((current, target))
        if (current, target) in self.failures:
            raise GitError(["push", "origin", target], "remote hung up")
        if (current, target) in self.conflicts:
            return MergeResult.CONFLICT
        return MergeResult.MERGED

    async def create_pull_request(
        self, title: str, description: str, source: str, target: str
    ) -> CreatedPullRequest:
        if self.pr_error:
            raise self.pr_error
        self.pull_requests.append((title, description, source, target))
        return CreatedPullRequest(id=len(self.pull_requests), title=title)


def backend_factory_for(backend: FakeBackend):
    @asynccontextmanager
    async def open_backend(event):
        yield backend

    return open_backend


def make_event(destination: str = "release/2", source: str = "feature/fix") -> MergeEvent:
    return MergeEvent(
        repository_uuid="{repo-uuid}",
        repository_name="winterfell",
        owner_uuid="{owner-uuid}",
        source_branch=source,
        destination_branch=destination,
    )
