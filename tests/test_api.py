import asyncio
import logging
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from tests.conftest import FakeAuth
from tracktrivia.api.app import _log_bot_exit, app
from tracktrivia.api.state import get_state
from tracktrivia.models.session import UserSession


@pytest.fixture
def app_state(store):
    return SimpleNamespace(token_store=store, spotify_auth=FakeAuth(), bot_ready=False)


@pytest.fixture
def client(app_state):
    app.dependency_overrides[get_state] = lambda: app_state
    # Not used as a context manager: lifespan (and the Discord bot) stays off.
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_callback_stores_session_under_state(client, store):
    resp = client.get("/callback", params={"code": "abc", "state": "1001"})

    assert resp.status_code == 200
    assert "Successfully authenticated" in resp.text
    assert store.get("1001") == UserSession("1001", "access-abc", "refresh-abc")


def test_callback_replaces_existing_session(client, store):
    store.put(UserSession("1001", "stale", "stale-refresh"))
    client.get("/callback", params={"code": "fresh", "state": "1001"})
    assert store.get("1001").access_token == "access-fresh"


def test_callback_without_code_or_state(client, store):
    assert client.get("/callback", params={"state": "1001"}).status_code == 400
    assert client.get("/callback", params={"code": "abc"}).status_code == 400
    assert len(store) == 0


def test_callback_exchange_failure(client, store):
    resp = client.get("/callback", params={"code": "bad", "state": "1001"})
    assert resp.status_code == 502
    assert "Failed to authenticate." in resp.text
    assert store.get("1001") is None


def test_callback_denied_by_user(client, store):
    resp = client.get("/callback", params={"error": "access_denied", "state": "1001"})
    assert resp.status_code == 400
    assert store.get("1001") is None


def test_auth_url_reports_link_status(client, store):
    body = client.get("/api/spotify/auth-url", params={"user_id": "1001"}).json()
    assert "state=1001" in body["auth_url"]
    assert body["linked"] is False

    store.put(UserSession("1001", "a", "r"))
    assert client.get("/api/spotify/auth-url", params={"user_id": "1001"}).json()["linked"] is True


def test_auth_url_without_credentials(client, app_state):
    app_state.spotify_auth.configured = False
    body = client.get("/api/spotify/auth-url", params={"user_id": "1001"}).json()
    assert body["auth_url"] is None
    assert "SPOTIFY_CLIENT_ID" in body["error"]


def test_health(client, store):
    store.put(UserSession("1001", "a", "r"))
    assert client.get("/health").json() == {"ok": True, "bot_ready": False, "linked_users": 1}


@pytest.mark.asyncio
async def test_bot_task_failure_is_logged(caplog):
    async def failing_login():
        raise RuntimeError("Improper token has been passed.")

    task = asyncio.create_task(failing_login())
    with caplog.at_level(logging.ERROR, logger="tracktrivia.api.app"):
        task.add_done_callback(_log_bot_exit)
        await asyncio.gather(task, return_exceptions=True)
        await asyncio.sleep(0)

    assert "Discord bot stopped: Improper token" in caplog.text
