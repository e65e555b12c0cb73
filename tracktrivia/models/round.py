"""Quiz round state: candidates, phases and outcome."""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

LABELS = "ABCDEFGHIJ"


class RoundPhase(str, Enum):
    IDLE = "idle"
    AWAITING_AUTH = "awaiting_auth"
    SELECTING_ARTIST = "selecting_artist"
    SAMPLING_CANDIDATES = "sampling_candidates"
    AWAITING_ANSWER = "awaiting_answer"
    RESOLVED = "resolved"


class RoundOutcome(str, Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    EXPIRED = "expired"
    FAILED = "failed"
    UNAUTHENTICATED = "unauthenticated"


@dataclass(frozen=True)
class Candidate:
    """One track offered as a possible answer."""
    display_name: str
    preview_url: Optional[str]
    is_correct: bool
    track_id: str = ""


def label_for(index: int) -> str:
    """Display label for the candidate at presentation index (A, B, C, ...)."""
    return LABELS[index]


def choice_id_for(index: int) -> str:
    return f"option {label_for(index)}"


@dataclass
class RoundState:
    """In-memory state for one trigger; dropped once the round resolves."""
    requester_id: str
    channel_id: str
    phase: RoundPhase = RoundPhase.IDLE
    artist_id: Optional[str] = None
    artist_name: Optional[str] = None
    candidates: List[Candidate] = field(default_factory=list)
    correct_choice_id: Optional[str] = None
    deadline: Optional[float] = None  # time.monotonic() at which the open prompt expires
    outcome: Optional[RoundOutcome] = None

    @property
    def correct_candidate(self) -> Optional[Candidate]:
        for c in self.candidates:
            if c.is_correct:
                return c
        return None
