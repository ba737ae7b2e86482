"""Bitbucket Cloud REST API client."""

from __future__ import annotations

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from cascade_merge.config import DEFAULT_API_URL
from cascade_merge.errors import BitbucketError
from cascade_merge.models.bitbucket import BranchingModel, CreatedPullRequest, RepositoryInfo
from cascade_merge.models.cascade import CascadeOptions
from cascade_merge.models.webhook import Link

logger = logging.getLogger(__name__)

# Timeout for individual API calls (seconds).
API_TIMEOUT = 30

ModelT = TypeVar("ModelT", bound=BaseModel)


def clone_url(links: list[Link], *protocols: str) -> str:
    """Pick the first clone link matching one of ``protocols``.

    An empty protocol (or none at all) matches any link.
    """
    if not links:
        raise BitbucketError("missing clone link")
    wanted = protocols or ("",)
    for link in links:
        for protocol in wanted:
            if not protocol or protocol == link.name:
                return link.href
    raise BitbucketError("no matching clone link")


class BitbucketClient:
    """Thin async wrapper around the repository endpoints the cascade needs."""

    def __init__(
        self,
        username: str,
        password: str,
        owner: str,
        repository: str,
        base_url: str = DEFAULT_API_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.owner = owner
        self.repository = repository
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            auth=(username, password) if username else None,
            timeout=API_TIMEOUT,
            follow_redirects=True,
            transport=transport,
        )

    @property
    def _repo_path(self) -> str:
        return f"/repositories/{self.owner}/{self.repository}"

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> BitbucketClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, model: type[ModelT], **kwargs: Any) -> ModelT:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise BitbucketError(f"{method} {path} failed: {e}") from e
        if resp.status_code >= 400:
            raise BitbucketError(
                f"{method} {path} returned {resp.status_code}: {resp.text[:200]}",
                status_code=resp.status_code,
            )
        try:
            return model.model_validate_json(resp.content)
        except ValidationError as e:
            raise BitbucketError(f"{method} {path} returned an unexpected body: {e}") from e

    async def get_clone_url(self, *protocols: str) -> str:
        info = await self._request("GET", self._repo_path, RepositoryInfo)
        return clone_url(info.links.clone, *protocols)

    async def get_cascade_options(self) -> CascadeOptions:
        """Read the development branch and release prefix from the branching model."""
        model = await self._request("GET", f"{self._repo_path}/branching-model", BranchingModel)

        development = model.development
        development_name = None
        if development is not None:
            development_name = development.name or (development.branch.name if development.branch else None)
        if not development_name:
            raise BitbucketError(f"no development branch in branching model of {self.repository}")

        release_prefix = None
        for branch_type in model.branch_types:
            if branch_type.kind == "release":
                release_prefix = branch_type.prefix
                break
        if not release_prefix:
            raise BitbucketError(f"no release prefix in branching model of {self.repository}")

        return CascadeOptions(development_name=development_name, release_prefix=release_prefix)

    async def create_pull_request(
        self, title: str, description: str, source: str, destination: str
    ) -> CreatedPullRequest:
        payload = {
            "title": title,
            "description": description,
            "source": {"branch": {"name": source}},
            "destination": {"branch": {"name": destination}},
            "close_source_branch": False,
        }
        pr = await self._request(
            "POST", f"{self._repo_path}/pullrequests", CreatedPullRequest, json=payload
        )
        logger.debug(f"Created pull request {pr.id} on {self.repository}")
        return pr
