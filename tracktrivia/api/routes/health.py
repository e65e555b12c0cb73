"""Liveness endpoint."""
from fastapi import APIRouter, Depends

from tracktrivia.api.state import AppState, get_state

router = APIRouter()


@router.get("/health")
def health(state: AppState = Depends(get_state)):
    return {
        "ok": True,
        "bot_ready": state.bot_ready,
        "linked_users": len(state.token_store),
    }
