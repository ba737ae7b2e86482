"""Bitbucket webhook route."""

from __future__ import annotations

import json
import logging
import secrets

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import ValidationError

from cascade_merge.models.webhook import PullRequestEvent, PullRequestState
from cascade_merge.services.queue import IngestionQueue

logger = logging.getLogger(__name__)

router = APIRouter()


def check_token(request: Request, token: str = "") -> None:
    """Reject deliveries whose ``token`` query parameter is not the shared secret."""
    expected = request.app.state.settings.token
    if not secrets.compare_digest(token.encode(), expected.encode()):
        logger.warning(f"Wrong token from {request.client.host if request.client else 'unknown'}")
        raise HTTPException(status_code=403, detail="Invalid token")


@router.post("/", status_code=201, dependencies=[Depends(check_token)])
async def receive_webhook(request: Request) -> Response:
    """Queue a merged pull request for cascading."""
    try:
        payload = json.loads(await request.body())
        event = PullRequestEvent.model_validate(payload)
    except (ValueError, ValidationError) as e:
        raise HTTPException(status_code=400, detail=f"Malformed event: {e}")

    if event.pullrequest is None:
        raise HTTPException(status_code=400, detail="Event has no pull request")

    # Take only merged pull requests.
    if event.pullrequest.state != PullRequestState.MERGED:
        raise HTTPException(status_code=422, detail=f"Ignoring {event.pullrequest.state} pull request")

    queue: IngestionQueue = request.app.state.queue
    if not queue.try_enqueue(event.to_merge_event()):
        raise HTTPException(status_code=429, detail="Too many pending merges")

    return Response(status_code=201)
