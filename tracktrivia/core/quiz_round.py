"""Quiz round state machine: link check, artist pick, candidate draw, answer, verdict."""
import asyncio
import logging
import time
from typing import Callable, List, Protocol

from tracktrivia.config import CHOICE_COUNT, PROMPT_TIMEOUT_SEC, TOP_ARTIST_LIMIT
from tracktrivia.core.errors import (
    LinkUnavailable,
    NotAuthenticated,
    NoTopArtists,
    QuizError,
    RefreshFailed,
    UpstreamUnavailable,
)
from tracktrivia.core.prompter import Choice, Prompter
from tracktrivia.core.sampler import CandidateSampler
from tracktrivia.core.session_refresher import SessionRefresher
from tracktrivia.core.spotify_client import SpotifyAuth, SpotifyCatalogue
from tracktrivia.models.round import (
    Candidate,
    RoundOutcome,
    RoundPhase,
    RoundState,
    choice_id_for,
    label_for,
)

logger = logging.getLogger(__name__)

# Discord caps select option labels at 100 characters
MAX_CHOICE_LABEL = 100


class RoundSurface(Protocol):
    """The chat context a trigger came from."""
    requester_id: str
    channel_id: str
    mention: str

    async def send(self, content: str) -> None: ...

    async def send_direct(self, content: str) -> None: ...


def _truncate(text: str, limit: int = MAX_CHOICE_LABEL) -> str:
    return text if len(text) <= limit else text[: limit - 1] + "…"


class QuizOrchestrator:
    """Runs one round per trigger. Every QuizError ends the round with one message; none escape."""

    def __init__(
        self,
        refresher: SessionRefresher,
        auth: SpotifyAuth,
        prompter: Prompter,
        *,
        catalogue_factory: Callable[[str], SpotifyCatalogue] = SpotifyCatalogue,
        sampler_factory: Callable[[SpotifyCatalogue], CandidateSampler] = CandidateSampler,
        choice_count: int = CHOICE_COUNT,
        top_artist_limit: int = TOP_ARTIST_LIMIT,
        prompt_timeout: float = PROMPT_TIMEOUT_SEC,
    ) -> None:
        self._refresher = refresher
        self._auth = auth
        self._prompter = prompter
        self._catalogue_factory = catalogue_factory
        self._sampler_factory = sampler_factory
        self._choice_count = choice_count
        self._top_artist_limit = top_artist_limit
        self._prompt_timeout = prompt_timeout

    async def handle_trigger(self, surface: RoundSurface) -> RoundState:
        """Play one round for surface.requester_id. Returns the final state."""
        state = RoundState(requester_id=surface.requester_id, channel_id=surface.channel_id)
        try:
            await self._run(state, surface)
        except (NotAuthenticated, RefreshFailed) as e:
            state.phase = RoundPhase.AWAITING_AUTH
            state.outcome = RoundOutcome.UNAUTHENTICATED
            if await self.send_auth_link(surface):
                await surface.send(e.user_message)
            else:
                await surface.send(LinkUnavailable.user_message)
        except QuizError as e:
            logger.info(
                "Round for user %s failed in %s: %s", state.requester_id, state.phase.value, type(e).__name__
            )
            state.outcome = RoundOutcome.FAILED
            await surface.send(e.user_message)
        except Exception:
            logger.exception("Round for user %s crashed in %s", state.requester_id, state.phase.value)
            state.outcome = RoundOutcome.FAILED
            await surface.send(UpstreamUnavailable.user_message)
        logger.info(
            "Round for user %s ended: phase=%s outcome=%s",
            state.requester_id,
            state.phase.value,
            state.outcome.value if state.outcome else None,
        )
        return state

    async def send_auth_link(self, surface: RoundSurface) -> bool:
        """DM the authorization link. Returns False when no link can be built."""
        if not self._auth.configured:
            logger.error("Cannot build authorization link: Spotify client credentials not set")
            return False
        url = self._auth.authorize_url(state=surface.requester_id)
        await surface.send_direct(
            f"Please authorize the bot by clicking [here]({url})\n"
            "Ps: This bot's commands work in DMs too!"
        )
        return True

    async def _run(self, state: RoundState, surface: RoundSurface) -> None:
        session = await asyncio.to_thread(self._refresher.ensure_valid, state.requester_id)
        catalogue = self._catalogue_factory(session.access_token)

        state.phase = RoundPhase.SELECTING_ARTIST
        artists = [
            a for a in await asyncio.to_thread(catalogue.top_artists, self._top_artist_limit) if a.get("id")
        ]
        if not artists:
            raise NoTopArtists(state.requester_id)
        names = {a["id"]: a.get("name") or a["id"] for a in artists}
        listing = "\n".join(f"{i}. {names[a['id']]}" for i, a in enumerate(artists, start=1))
        state.deadline = time.monotonic() + self._prompt_timeout
        artist_id = await self._prompter.prompt(
            surface,
            f"Here are your top artists, {surface.mention}. Choose one to start the game!\n{listing}",
            [Choice(id=a["id"], label=_truncate(names[a["id"]])) for a in artists],
            self._prompt_timeout,
            as_menu=True,
        )
        if artist_id is None or artist_id not in names:
            state.outcome = RoundOutcome.EXPIRED
            return
        state.artist_id = artist_id
        state.artist_name = names[artist_id]

        state.phase = RoundPhase.SAMPLING_CANDIDATES
        sampler = self._sampler_factory(catalogue)
        state.candidates = await asyncio.to_thread(sampler.sample, artist_id, self._choice_count)
        correct = self._bind_correct_label(state)

        state.phase = RoundPhase.AWAITING_ANSWER
        state.deadline = time.monotonic() + self._prompt_timeout
        answer = await self._prompter.prompt(
            surface,
            f"Choose the correct name of the clip\n{surface.mention}",
            self._answer_choices(state.candidates),
            self._prompt_timeout,
            attachment_url=correct.preview_url,
        )

        state.phase = RoundPhase.RESOLVED
        state.deadline = None
        if answer is None:
            state.outcome = RoundOutcome.EXPIRED
            return
        if answer == state.correct_choice_id:
            state.outcome = RoundOutcome.CORRECT
            await surface.send(f"Correct! The correct name of the clip is {correct.display_name}")
        else:
            state.outcome = RoundOutcome.INCORRECT
            await surface.send(f"Wrong! The correct name of the clip is {correct.display_name}")

    @staticmethod
    def _bind_correct_label(state: RoundState) -> Candidate:
        for i, candidate in enumerate(state.candidates):
            if candidate.is_correct:
                state.correct_choice_id = choice_id_for(i)
                return candidate
        raise ValueError("candidate set has no correct member")

    @staticmethod
    def _answer_choices(candidates: List[Candidate]) -> List[Choice]:
        return [
            Choice(id=choice_id_for(i), label=_truncate(f"{label_for(i)}. {c.display_name}", 80))
            for i, c in enumerate(candidates)
        ]
