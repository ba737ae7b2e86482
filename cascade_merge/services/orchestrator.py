"""Cascade merge orchestration.

For each merge event the orchestrator resolves the cascade of branches that
follow the destination branch, merges them forward one pair at a time, and
opens a recovery pull request on the first conflict.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from pathlib import Path
from typing import Protocol

from cascade_merge.config import Settings
from cascade_merge.errors import (
    BitbucketError,
    BranchNotInCascadeError,
    CascadeError,
    ResolutionError,
)
from cascade_merge.models.bitbucket import CreatedPullRequest
from cascade_merge.models.cascade import (
    END_OF_CASCADE,
    CascadeOptions,
    Conflict,
    Done,
    Failed,
    MergeOutcome,
)
from cascade_merge.models.webhook import MergeEvent
from cascade_merge.services.bitbucket import BitbucketClient
from cascade_merge.services.git_client import GitRepository, MergeResult
from cascade_merge.services.resolver import build_cascade, is_cascade_candidate

logger = logging.getLogger(__name__)

RECOVERY_TITLE = "Automatic merge failure"
RECOVERY_DESCRIPTION = "There was a merge conflict automatically merging this branch"


def _resolution_failure(message: str, error: Exception) -> Failed:
    failure = ResolutionError(f"{message}: {error}")
    failure.__cause__ = error
    return Failed(failure)


class CascadeBackend(Protocol):
    """Repository operations the orchestrator depends on."""

    async def get_cascade_options(self) -> CascadeOptions: ...

    async def list_branches(self) -> set[str]: ...

    async def merge_branch(self, current: str, target: str) -> MergeResult: ...

    async def create_pull_request(
        self, title: str, description: str, source: str, target: str
    ) -> CreatedPullRequest: ...


BackendFactory = Callable[[MergeEvent], AbstractAsyncContextManager[CascadeBackend]]


class BitbucketBackend:
    """CascadeBackend over the Bitbucket API and a local working copy."""

    def __init__(self, api: BitbucketClient, repo: GitRepository, timeout: float | None = None):
        self.api = api
        self.repo = repo
        self.timeout = timeout

    async def get_cascade_options(self) -> CascadeOptions:
        return await self.api.get_cascade_options()

    async def list_branches(self) -> set[str]:
        await asyncio.to_thread(self.repo.sync, self.timeout)
        return await asyncio.to_thread(self.repo.list_branches)

    async def merge_branch(self, current: str, target: str) -> MergeResult:
        return await asyncio.to_thread(self.repo.merge_branch, current, target, self.timeout)

    async def create_pull_request(
        self, title: str, description: str, source: str, target: str
    ) -> CreatedPullRequest:
        return await self.api.create_pull_request(title, description, source, target)


def bitbucket_backend_factory(settings: Settings) -> BackendFactory:
    """Open a BitbucketBackend for the repository an event belongs to."""

    @asynccontextmanager
    async def open_backend(event: MergeEvent) -> AsyncIterator[CascadeBackend]:
        async with BitbucketClient(
            settings.bitbucket_username,
            settings.bitbucket_password,
            event.owner_uuid,
            event.repository_name,
            base_url=settings.bitbucket_api_url,
        ) as api:
            url = await api.get_clone_url("https")
            repo = GitRepository(
                Path(settings.work_dir) / event.repository_uuid,
                url,
                username=settings.bitbucket_username,
                password=settings.bitbucket_password,
                author_name=settings.git_author_name,
                author_email=settings.git_author_email,
            )
            yield BitbucketBackend(api, repo)

    return open_backend


class ConflictRecovery:
    """Opens a pull request for a branch pair that could not be merged automatically."""

    async def recover(self, backend: CascadeBackend, conflict: Conflict, event: MergeEvent) -> None:
        try:
            pr = await backend.create_pull_request(
                RECOVERY_TITLE, RECOVERY_DESCRIPTION, conflict.source, conflict.target
            )
        except BitbucketError as e:
            logger.error(
                f"could not create a pull request {conflict.source} to {conflict.target} "
                f"on {event.repository_name}: {e}"
            )
            return
        logger.info(
            f"Pull request #{pr.id} created from {conflict.source} to {conflict.target} "
            f"on {event.repository_name}"
        )


class MergeOrchestrator:
    def __init__(self, backend_factory: BackendFactory, recovery: ConflictRecovery | None = None):
        self.backend_factory = backend_factory
        self.recovery = recovery or ConflictRecovery()

    async def handle(self, event: MergeEvent) -> MergeOutcome:
        """Process one event end to end and act on its outcome."""
        logger.info(
            f"Processing cascade merge for {event.repository_name} "
            f"from {event.source_branch} to {event.destination_branch}"
        )
        try:
            async with self.backend_factory(event) as backend:
                outcome = await self.process(event, backend)
                if isinstance(outcome, Conflict):
                    await self.recovery.recover(backend, outcome, event)
        except CascadeError as e:
            outcome = Failed(e)

        if isinstance(outcome, Failed):
            logger.error(
                f"Error while doing cascade merge for repo {event.repository_name}: {outcome.cause}"
            )
        elif isinstance(outcome, Done):
            logger.info(f"Cascade merge complete for {event.repository_name}")
        return outcome

    async def process(self, event: MergeEvent, backend: CascadeBackend) -> MergeOutcome:
        """Walk the cascade starting at the event's destination branch."""
        destination = event.destination_branch
        try:
            options = await backend.get_cascade_options()
        except CascadeError as e:
            return _resolution_failure(
                f"cannot detect cascade options for {event.repository_name}, check branching model", e
            )

        if not is_cascade_candidate(destination, options):
            logger.info(f"{destination} is the development branch, nothing to cascade")
            return Done()

        try:
            branches = await backend.list_branches()
        except CascadeError as e:
            return _resolution_failure(f"cannot list branches of {event.repository_name}", e)

        cascade = build_cascade(branches, options)
        try:
            cascade.slice_from(destination)
        except BranchNotInCascadeError:
            logger.info(f"{destination} does not take part in the cascade of {event.repository_name}")
            return Done()
        logger.debug(f"Cascade for {event.repository_name}: {' -> '.join(cascade)}")

        current = destination
        target = cascade.next()
        while target != END_OF_CASCADE:
            try:
                result = await backend.merge_branch(current, target)
            except CascadeError as e:
                return Failed(e)
            if result is MergeResult.CONFLICT:
                return Conflict(source=current, target=target)
            current = target
            target = cascade.next()
        return Done()
