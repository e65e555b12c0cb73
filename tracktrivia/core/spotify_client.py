"""Spotify API access via Spotipy: OAuth for linking users, catalogue reads per access token."""
import logging
from typing import Any, Dict, List

import requests
from spotipy import Spotify, SpotifyException
from spotipy.cache_handler import MemoryCacheHandler
from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError

from tracktrivia.config import (
    SPOTIFY_CLIENT_ID,
    SPOTIFY_CLIENT_SECRET,
    SPOTIFY_REDIRECT_URI,
    SPOTIFY_REQUEST_TIMEOUT,
    SPOTIFY_SCOPES,
)
from tracktrivia.core.errors import RefreshFailed, TokenExpired, UpstreamUnavailable

logger = logging.getLogger(__name__)

# Spotify rejects more than 20 ids per GET /albums
ALBUMS_BATCH_SIZE = 20


class SpotifyAuth:
    """Authorization-code flow for many users; nothing is cached between calls."""

    def __init__(
        self,
        client_id: str = SPOTIFY_CLIENT_ID,
        client_secret: str = SPOTIFY_CLIENT_SECRET,
        redirect_uri: str = SPOTIFY_REDIRECT_URI,
        scope: str = SPOTIFY_SCOPES,
    ) -> None:
        self.client_id = client_id
        self._client_secret = client_secret
        self._redirect_uri = redirect_uri
        self._scope = scope

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self._client_secret)

    def _oauth(self) -> SpotifyOAuth:
        # One manager per call: the token cache must never be shared between users
        return SpotifyOAuth(
            client_id=self.client_id,
            client_secret=self._client_secret,
            redirect_uri=self._redirect_uri,
            scope=self._scope,
            cache_handler=MemoryCacheHandler(),
            requests_timeout=SPOTIFY_REQUEST_TIMEOUT,
            open_browser=False,
        )

    def authorize_url(self, state: str) -> str:
        """Authorization URL for the configured scope; state comes back on the callback."""
        return self._oauth().get_authorize_url(state=state)

    def exchange_code(self, code: str) -> Dict[str, Any]:
        """Exchange an authorization code for a token dict with access_token and refresh_token."""
        try:
            token_info = self._oauth().get_access_token(code=code, as_dict=True, check_cache=False)
        except (SpotifyOauthError, requests.exceptions.RequestException) as e:
            raise UpstreamUnavailable(str(e)) from e
        if not token_info or not token_info.get("access_token") or not token_info.get("refresh_token"):
            raise UpstreamUnavailable("token response without access_token/refresh_token")
        return token_info

    def refresh(self, refresh_token: str) -> Dict[str, Any]:
        """Exchange a refresh token for a new access token (and maybe a new refresh token)."""
        try:
            token_info = self._oauth().refresh_access_token(refresh_token)
        except (SpotifyOauthError, SpotifyException, requests.exceptions.RequestException) as e:
            raise RefreshFailed(str(e)) from e
        if not token_info or not token_info.get("access_token"):
            raise RefreshFailed("refresh response without access_token")
        return token_info


class SpotifyCatalogue:
    """Catalogue reads on behalf of one user's access token. Single attempt, no retries."""

    def __init__(self, access_token: str) -> None:
        self._sp = Spotify(
            auth=access_token,
            requests_timeout=SPOTIFY_REQUEST_TIMEOUT,
            retries=0,
            status_retries=0,
        )

    def _call(self, name: str, *args, **kwargs) -> Any:
        try:
            return getattr(self._sp, name)(*args, **kwargs)
        except SpotifyException as e:
            logger.warning("Spotify %s failed: HTTP %s %s", name, e.http_status, e.msg)
            raise UpstreamUnavailable(f"{name}: HTTP {e.http_status}") from e
        except requests.exceptions.RequestException as e:
            logger.warning("Spotify %s failed: %s", name, e)
            raise UpstreamUnavailable(f"{name}: {e}") from e

    def probe(self) -> None:
        """Cheap authenticated call; raises TokenExpired on 401, UpstreamUnavailable otherwise."""
        try:
            self._sp.me()
        except SpotifyException as e:
            if e.http_status == 401:
                raise TokenExpired() from e
            raise UpstreamUnavailable(f"me: HTTP {e.http_status}") from e
        except requests.exceptions.RequestException as e:
            raise UpstreamUnavailable(f"me: {e}") from e

    def top_artists(self, limit: int) -> List[dict]:
        data = self._call("current_user_top_artists", limit=limit)
        return list((data or {}).get("items") or [])

    def artist_albums(self, artist_id: str, limit: int) -> List[dict]:
        data = self._call("artist_albums", artist_id, limit=limit)
        return list((data or {}).get("items") or [])

    def albums(self, album_ids: List[str]) -> List[dict]:
        """Full album objects (with track listings), fetched in batches of 20."""
        out: List[dict] = []
        for start in range(0, len(album_ids), ALBUMS_BATCH_SIZE):
            batch = album_ids[start : start + ALBUMS_BATCH_SIZE]
            data = self._call("albums", batch)
            out.extend(a for a in (data or {}).get("albums") or [] if a)
        return out
