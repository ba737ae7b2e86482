"""Bitbucket pull-request webhook payload models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class PullRequestState(str, Enum):
    OPEN = "OPEN"
    MERGED = "MERGED"
    DECLINED = "DECLINED"
    SUPERSEDED = "SUPERSEDED"


class Link(BaseModel):
    name: str | None = None
    href: str


class Owner(BaseModel):
    uuid: str


class Repository(BaseModel):
    uuid: str
    name: str
    owner: Owner


class Branch(BaseModel):
    name: str


class PullRequestRef(BaseModel):
    branch: Branch


class PullRequest(BaseModel):
    id: int | None = None
    title: str = ""
    description: str = ""
    state: str
    source: PullRequestRef
    destination: PullRequestRef


class PullRequestEvent(BaseModel):
    """Body of a ``pullrequest:*`` webhook delivery."""

    repository: Repository
    pullrequest: PullRequest | None = None

    def to_merge_event(self) -> MergeEvent:
        if self.pullrequest is None:
            raise ValueError("event carries no pull request")
        return MergeEvent(
            repository_uuid=self.repository.uuid,
            repository_name=self.repository.name,
            owner_uuid=self.repository.owner.uuid,
            source_branch=self.pullrequest.source.branch.name,
            destination_branch=self.pullrequest.destination.branch.name,
        )


class MergeEvent(BaseModel):
    """One accepted merge, queued for cascading."""

    model_config = ConfigDict(frozen=True)

    repository_uuid: str
    repository_name: str
    owner_uuid: str
    source_branch: str
    destination_branch: str
