"""Core services: token store, Spotify access, session refresh, sampling, prompts, rounds."""
from tracktrivia.core.quiz_round import QuizOrchestrator
from tracktrivia.core.sampler import CandidateSampler
from tracktrivia.core.session_refresher import SessionRefresher
from tracktrivia.core.token_store import TokenStore

__all__ = ["CandidateSampler", "QuizOrchestrator", "SessionRefresher", "TokenStore"]
