"""Spotify OAuth: auth URL and callback that links a Discord user."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from tracktrivia.api.state import AppState, get_state
from tracktrivia.core.errors import UpstreamUnavailable
from tracktrivia.models.session import UserSession

logger = logging.getLogger(__name__)

router = APIRouter()


class AuthUrlResponse(BaseModel):
    auth_url: Optional[str] = None
    linked: bool = False
    error: Optional[str] = None


def _page(text: str, status_code: int = 200) -> HTMLResponse:
    return HTMLResponse(f"<body><p>{text}</p></body>", status_code=status_code)


@router.get("/callback")
def spotify_callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    app_state: AppState = Depends(get_state),
):
    """Exchange code for tokens and store them under the Discord user id carried in state."""
    if error:
        logger.info("Callback: authorization denied for %s: %s", state, error)
        return _page("Failed to authenticate: authorization was denied.", status_code=400)
    if not code or not state:
        return _page(
            "Failed to authenticate: missing authorization code. Run the command again in Discord.",
            status_code=400,
        )
    try:
        token_info = app_state.spotify_auth.exchange_code(code)
    except UpstreamUnavailable as e:
        logger.error("Callback: error during authorization for %s: %s", state, e)
        return _page("Failed to authenticate.", status_code=502)
    app_state.token_store.put(
        UserSession(
            user_id=state,
            access_token=token_info["access_token"],
            refresh_token=token_info["refresh_token"],
        )
    )
    logger.info("Callback: linked Spotify for user %s", state)
    return _page("Successfully authenticated. You can close this window.")


@router.get("/api/spotify/auth-url", response_model=AuthUrlResponse)
def get_auth_url(user_id: str, app_state: AppState = Depends(get_state)):
    """Return the Spotify authorization URL for a Discord user and whether they are linked."""
    if not user_id.strip():
        raise HTTPException(status_code=400, detail="user_id must not be empty")
    if not app_state.spotify_auth.configured:
        return AuthUrlResponse(error="SPOTIFY_CLIENT_ID or SPOTIFY_CLIENT_SECRET not set")
    return AuthUrlResponse(
        auth_url=app_state.spotify_auth.authorize_url(state=user_id),
        linked=app_state.token_store.get(user_id) is not None,
    )
