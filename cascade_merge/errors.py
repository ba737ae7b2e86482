"""Error types raised while processing a merge event."""

from __future__ import annotations


class CascadeError(Exception):
    """Base class for failures that abort the processing of one event."""


class ResolutionError(CascadeError):
    """Branching model, branch list or clone URL could not be resolved."""


class BranchNotInCascadeError(ResolutionError):
    """The requested start branch is not part of the cascade."""

    def __init__(self, branch: str, branches: list[str]):
        super().__init__(f"branch {branch!r} is not in cascade {branches}")
        self.branch = branch
        self.branches = branches


class InfrastructureError(CascadeError):
    """Transport or tooling failure, distinct from a merge conflict."""


class GitError(InfrastructureError):
    """A git command failed for a reason other than a merge conflict."""

    def __init__(self, command: list[str], stderr: str = "", returncode: int | None = None):
        detail = stderr.strip() or f"exit status {returncode}"
        super().__init__(f"git {' '.join(command)} failed: {detail}")
        self.command = command
        self.stderr = stderr
        self.returncode = returncode


class BitbucketError(InfrastructureError):
    """The Bitbucket API could not be reached or rejected a request."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
