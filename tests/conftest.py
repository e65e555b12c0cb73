"""Shared fixtures and fakes for the Spotify gateway, the chat surface and prompts."""
import asyncio
from typing import Callable, Dict, List, Optional, Tuple

import pytest

from tracktrivia.core.errors import RefreshFailed, TokenExpired, UpstreamUnavailable
from tracktrivia.core.prompter import Choice, PendingChoice, Prompter
from tracktrivia.core.token_store import TokenStore
from tracktrivia.models.session import UserSession


def make_track(track_id: str, name: str, preview: bool = True) -> dict:
    return {
        "id": track_id,
        "name": name,
        "preview_url": f"https://p.scdn.co/mp3-preview/{track_id}" if preview else None,
    }


def make_album(album_id: str, tracks: List[dict]) -> dict:
    return {"id": album_id, "name": f"Album {album_id}", "tracks": {"items": tracks}}


class FakeCatalogue:
    """Stands in for SpotifyCatalogue; one instance serves every access token."""

    def __init__(
        self,
        *,
        top_artists: Optional[List[dict]] = None,
        albums_by_artist: Optional[Dict[str, List[dict]]] = None,
        probe_error: Optional[Exception] = None,
        valid_tokens: Optional[set] = None,
    ) -> None:
        self.top_artists_items = top_artists or []
        self.albums_by_artist = albums_by_artist or {}
        self.probe_error = probe_error
        self.valid_tokens = valid_tokens
        self.tokens_seen: List[str] = []
        self.probe_calls = 0
        self.album_batches: List[List[str]] = []
        self._token: Optional[str] = None

    def __call__(self, access_token: str) -> "FakeCatalogue":
        self.tokens_seen.append(access_token)
        self._token = access_token
        return self

    def probe(self) -> None:
        self.probe_calls += 1
        if self.valid_tokens is not None and self._token in self.valid_tokens:
            return
        if self.probe_error is not None:
            raise self.probe_error

    def top_artists(self, limit: int) -> List[dict]:
        return self.top_artists_items[:limit]

    def artist_albums(self, artist_id: str, limit: int) -> List[dict]:
        return [{"id": a["id"], "name": a["name"]} for a in self.albums_by_artist.get(artist_id, [])][:limit]

    def albums(self, album_ids: List[str]) -> List[dict]:
        self.album_batches.append(list(album_ids))
        by_id = {a["id"]: a for albums in self.albums_by_artist.values() for a in albums}
        return [by_id[i] for i in album_ids if i in by_id]


class FakeAuth:
    def __init__(self, refresh_result: Optional[dict] = None, refresh_error: Optional[Exception] = None) -> None:
        self.refresh_result = refresh_result
        self.refresh_error = refresh_error
        self.refresh_calls: List[str] = []
        self.configured = True

    def authorize_url(self, state: str) -> str:
        return f"https://accounts.spotify.com/authorize?scope=user-top-read&state={state}"

    def refresh(self, refresh_token: str) -> dict:
        self.refresh_calls.append(refresh_token)
        if self.refresh_error is not None:
            raise self.refresh_error
        return dict(self.refresh_result or {})

    def exchange_code(self, code: str) -> dict:
        if code == "bad":
            raise UpstreamUnavailable("invalid_grant")
        return {"access_token": f"access-{code}", "refresh_token": f"refresh-{code}"}


class FakeSurface:
    def __init__(self, requester_id: str = "1001", channel_id: str = "42") -> None:
        self.requester_id = requester_id
        self.channel_id = channel_id
        self.mention = f"<@{requester_id}>"
        self.sent: List[str] = []
        self.direct: List[str] = []

    async def send(self, content: str) -> None:
        self.sent.append(content)

    async def send_direct(self, content: str) -> None:
        self.direct.append(content)


# A responder looks at the shown choices and the attached clip and returns
# (user_id, choice_id) picks to deliver, in order.
Responder = Callable[[List[Choice], Optional[str]], List[Tuple[str, str]]]


class ScriptedPrompter(Prompter):
    """Delivers scripted picks through the real PendingChoice machinery."""

    def __init__(self, responders: List[Optional[Responder]]) -> None:
        self.responders = list(responders)
        self.shown: List[dict] = []
        self.expired: List[dict] = []

    async def present(self, target, content, choices, pending: PendingChoice, *, attachment_url=None, as_menu=False):
        shown = {
            "content": content,
            "choices": choices,
            "attachment_url": attachment_url,
            "as_menu": as_menu,
        }
        self.shown.append(shown)
        responder = self.responders.pop(0) if self.responders else None
        if responder is not None:
            loop = asyncio.get_running_loop()
            for user_id, choice_id in responder(choices, attachment_url):
                loop.call_soon(pending.offer, user_id, choice_id)
        return shown

    async def expire(self, handle) -> None:
        handle["content"] = "You took too long to respond!"
        self.expired.append(handle)


@pytest.fixture
def store(tmp_path) -> TokenStore:
    return TokenStore(tmp_path / "tokens.json")


@pytest.fixture
def linked_store(store) -> TokenStore:
    store.put(UserSession(user_id="1001", access_token="old-access", refresh_token="old-refresh"))
    return store


@pytest.fixture
def expired_catalogue() -> FakeCatalogue:
    return FakeCatalogue(probe_error=TokenExpired(), valid_tokens={"new-access"})


@pytest.fixture
def refresh_rejected() -> FakeAuth:
    return FakeAuth(refresh_error=RefreshFailed("invalid_grant"))
