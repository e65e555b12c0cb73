"""Data models for sessions and quiz rounds."""
from tracktrivia.models.round import Candidate, RoundOutcome, RoundPhase, RoundState
from tracktrivia.models.session import UserSession

__all__ = [
    "Candidate",
    "RoundOutcome",
    "RoundPhase",
    "RoundState",
    "UserSession",
]
