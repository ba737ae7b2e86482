"""Bitbucket REST API response models."""

from __future__ import annotations

from pydantic import BaseModel

from cascade_merge.models.webhook import Branch, Link


class CloneLinks(BaseModel):
    clone: list[Link] = []


class RepositoryInfo(BaseModel):
    links: CloneLinks = CloneLinks()


class DevelopmentBranch(BaseModel):
    name: str | None = None
    branch: Branch | None = None


class BranchType(BaseModel):
    kind: str
    prefix: str | None = None


class BranchingModel(BaseModel):
    development: DevelopmentBranch | None = None
    branch_types: list[BranchType] = []


class CreatedPullRequest(BaseModel):
    id: int | None = None
    title: str = ""
