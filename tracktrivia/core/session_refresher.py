"""Keep a user's stored Spotify session usable: probe, refresh once on 401, persist."""
import logging
from typing import Callable

from tracktrivia.core.errors import NotAuthenticated, TokenExpired
from tracktrivia.core.spotify_client import SpotifyAuth, SpotifyCatalogue
from tracktrivia.core.token_store import TokenStore
from tracktrivia.models.session import UserSession

logger = logging.getLogger(__name__)


class SessionRefresher:
    """ensure_valid(user_id) touches nothing but the token store.

    Raises NotAuthenticated when the user never linked an account,
    RefreshFailed when the refresh token is rejected (stored session left
    as it was) and UpstreamUnavailable for any other probe failure.
    """

    def __init__(
        self,
        store: TokenStore,
        auth: SpotifyAuth,
        catalogue_factory: Callable[[str], SpotifyCatalogue] = SpotifyCatalogue,
    ) -> None:
        self._store = store
        self._auth = auth
        self._catalogue_factory = catalogue_factory

    def ensure_valid(self, user_id: str) -> UserSession:
        """Return a session whose access token passed the probe or was just refreshed."""
        session = self._store.get(user_id)
        if session is None:
            raise NotAuthenticated(user_id)
        try:
            self._catalogue_factory(session.access_token).probe()
            return session
        except TokenExpired:
            logger.info("Access token expired for user %s, refreshing", user_id)

        token_info = self._auth.refresh(session.refresh_token)
        refreshed = UserSession(
            user_id=user_id,
            access_token=token_info["access_token"],
            refresh_token=token_info.get("refresh_token") or session.refresh_token,
        )
        self._store.put(refreshed)
        logger.info("Access token refreshed for user %s", user_id)
        return refreshed
