"""Shared application state (injected into routes)."""
from typing import Optional

from tracktrivia.bot import TriviaBot
from tracktrivia.config import TOKEN_STORE_PATH
from tracktrivia.core.session_refresher import SessionRefresher
from tracktrivia.core.spotify_client import SpotifyAuth
from tracktrivia.core.token_store import TokenStore


class AppState:
    def __init__(self) -> None:
        self.token_store = TokenStore(TOKEN_STORE_PATH)
        self.spotify_auth = SpotifyAuth()
        self.refresher = SessionRefresher(self.token_store, self.spotify_auth)
        self._bot: Optional[TriviaBot] = None

    def load_sessions(self) -> None:
        self.token_store.load()

    @property
    def bot(self) -> TriviaBot:
        if self._bot is None:
            self._bot = TriviaBot(self.token_store, self.spotify_auth, self.refresher)
        return self._bot

    @property
    def bot_ready(self) -> bool:
        return self._bot is not None and self._bot.is_ready()


_state = AppState()


def get_state() -> AppState:
    return _state
