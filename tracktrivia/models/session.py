"""Linked Spotify session for one chat user."""
from dataclasses import dataclass


@dataclass(frozen=True)
class UserSession:
    """Stored credentials: chat user id -> Spotify access/refresh token pair."""
    user_id: str
    access_token: str
    refresh_token: str

    def is_complete(self) -> bool:
        return bool(self.user_id and self.access_token and self.refresh_token)
