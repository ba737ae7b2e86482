"""Tests for the webhook endpoint."""

from __future__ import annotations

import copy

import pytest
from fastapi.testclient import TestClient

from cascade_merge.config import Settings
from cascade_merge.models.cascade import Done
from cascade_merge.server import create_app

from fakes import make_event

TOKEN = "s3cret"

MERGED_EVENT = {
    "repository": {
        "uuid": "{repo-uuid}",
        "name": "winterfell",
        "owner": {"uuid": "{owner-uuid}"},
    },
    "actor": {"uuid": "{actor-uuid}"},
    "pullrequest": {
        "id": 42,
        "title": "Fix the wall",
        "state": "MERGED",
        "source": {"branch": {"name": "feature/wall"}},
        "destination": {"branch": {"name": "release/2"}},
    },
}


class NoopOrchestrator:
    def __init__(self):
        self.handled = []

    async def handle(self, event):
        self.handled.append(event)
        return Done()


@pytest.fixture
def app():
    return create_app(Settings(token=TOKEN), orchestrator=NoopOrchestrator())


@pytest.fixture
def client(app):
    # No lifespan: the worker does not run, so accepted events stay queued.
    return TestClient(app)


def post(client, body, token=TOKEN):
    return client.post("/", params={"token": token}, json=body)


class TestWebhook:
    def test_merged_event_is_queued(self, client, app):
        resp = post(client, MERGED_EVENT)

        assert resp.status_code == 201
        assert len(app.state.queue) == 1

    def test_wrong_token(self, client, app):
        resp = post(client, MERGED_EVENT, token="nope")

        assert resp.status_code == 403
        assert len(app.state.queue) == 0

    def test_missing_token(self, client):
        resp = client.post("/", json=MERGED_EVENT)
        assert resp.status_code == 403

    def test_token_checked_before_body(self, client):
        resp = client.post("/", params={"token": "nope"}, content=b"not json")
        assert resp.status_code == 403

    def test_malformed_body(self, client):
        resp = client.post("/", params={"token": TOKEN}, content=b"{not json")
        assert resp.status_code == 400

    def test_schema_mismatch(self, client):
        resp = post(client, {"repository": "winterfell"})
        assert resp.status_code == 400

    def test_missing_pull_request(self, client, app):
        body = copy.deepcopy(MERGED_EVENT)
        del body["pullrequest"]

        resp = post(client, body)

        assert resp.status_code == 400
        assert len(app.state.queue) == 0

    @pytest.mark.parametrize("state", ["OPEN", "DECLINED", "merged", "UNKNOWN"])
    def test_not_merged(self, client, app, state):
        body = copy.deepcopy(MERGED_EVENT)
        body["pullrequest"]["state"] = state

        resp = post(client, body)

        assert resp.status_code == 422
        assert len(app.state.queue) == 0

    def test_queue_full(self, client, app):
        queue = app.state.queue
        for _ in range(queue.capacity):
            assert queue.try_enqueue(make_event())

        resp = post(client, MERGED_EVENT)

        assert resp.status_code == 429
        assert len(queue) == queue.capacity

    def test_queued_event_fields(self, client, app):
        post(client, MERGED_EVENT)

        event = app.state.queue._queue.get_nowait()
        assert event.repository_uuid == "{repo-uuid}"
        assert event.repository_name == "winterfell"
        assert event.owner_uuid == "{owner-uuid}"
        assert event.source_branch == "feature/wall"
        assert event.destination_branch == "release/2"

    def test_empty_token_accepts_any_missing_token(self):
        client = TestClient(create_app(Settings(), orchestrator=NoopOrchestrator()))
        resp = client.post("/", json=MERGED_EVENT)
        assert resp.status_code == 201


class TestLifespan:
    def test_worker_consumes_events(self):
        orchestrator = NoopOrchestrator()
        app = create_app(Settings(token=TOKEN), orchestrator=orchestrator)

        with TestClient(app) as client:
            assert post(client, MERGED_EVENT).status_code == 201
            client.portal.call(app.state.queue.join)

        assert [e.destination_branch for e in orchestrator.handled] == ["release/2"]

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"
        assert resp.json()["queued"] == 0
