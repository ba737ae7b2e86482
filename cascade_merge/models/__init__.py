"""Data models for webhook payloads and cascades."""

from cascade_merge.models.cascade import Cascade, CascadeOptions, Conflict, Done, Failed, MergeOutcome
from cascade_merge.models.webhook import MergeEvent, PullRequest, PullRequestEvent, PullRequestState

__all__ = [
    "Cascade",
    "CascadeOptions",
    "Conflict",
    "Done",
    "Failed",
    "MergeEvent",
    "MergeOutcome",
    "PullRequest",
    "PullRequestEvent",
    "PullRequestState",
]
