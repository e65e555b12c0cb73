"""Bounded-time choice prompts: show choices to one user, wait for their pick or a timeout."""
import abc
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, List, Optional, Protocol

logger = logging.getLogger(__name__)

EXPIRED_MESSAGE = "You took too long to respond!"


@dataclass(frozen=True)
class Choice:
    """One selectable option: id comes back from prompt(), label is what the user sees."""
    id: str
    label: str


class PromptTarget(Protocol):
    """Where a prompt is shown and who may answer it."""
    requester_id: str


class PendingChoice:
    """Single-result future keyed by expected responder and deadline.

    offer() resolves it for the expected responder only and only once;
    wait() returns the choice id, or None once the deadline passes. After the
    first outcome nothing else can resolve it.
    """

    def __init__(self, responder_id: str, timeout: float) -> None:
        self.responder_id = responder_id
        self.timeout = timeout
        self.deadline = time.monotonic() + timeout
        self._future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._closed = False
        self._timed_out = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def timed_out(self) -> bool:
        return self._timed_out

    def accepts(self, user_id: str) -> bool:
        return not self._closed and user_id == self.responder_id

    def offer(self, user_id: str, choice_id: str) -> bool:
        """Resolve with choice_id if user_id is the expected responder. Returns True if it resolved."""
        if not self.accepts(user_id):
            return False
        self._closed = True
        self._future.set_result(choice_id)
        return True

    async def wait(self) -> Optional[str]:
        # Counts from construction, so time spent showing the prompt is part of the window
        remaining = max(0.0, self.deadline - time.monotonic())
        try:
            return await asyncio.wait_for(asyncio.shield(self._future), remaining)
        except asyncio.TimeoutError:
            self._closed = True
            # A pick landed in the same loop iteration as the timeout
            if self._future.done() and not self._future.cancelled():
                return self._future.result()
            self._timed_out = True
            self._future.cancel()
            return None


class Prompter(abc.ABC):
    """prompt() returns the chosen Choice.id, or None on timeout.

    Subclasses put the prompt on screen (present) and, on timeout, replace it
    with an expiry notice and remove its controls (expire). Removing controls
    after a valid pick is done by the subclass while answering that pick.
    """

    async def prompt(
        self,
        target: PromptTarget,
        content: str,
        choices: List[Choice],
        timeout: float,
        *,
        attachment_url: Optional[str] = None,
        as_menu: bool = False,
    ) -> Optional[str]:
        if not choices:
            raise ValueError("prompt needs at least one choice")
        pending = PendingChoice(target.requester_id, timeout)
        handle = await self.present(
            target, content, choices, pending, attachment_url=attachment_url, as_menu=as_menu
        )
        choice_id = await pending.wait()
        if choice_id is None:
            logger.info("Prompt for user %s expired after %.0fs", target.requester_id, timeout)
            await self.expire(handle)
        return choice_id

    @abc.abstractmethod
    async def present(
        self,
        target: PromptTarget,
        content: str,
        choices: List[Choice],
        pending: PendingChoice,
        *,
        attachment_url: Optional[str] = None,
        as_menu: bool = False,
    ) -> Any:
        """Show the prompt and route the user's picks into pending.offer(). Returns a handle for expire()."""

    @abc.abstractmethod
    async def expire(self, handle: Any) -> None:
        """Edit the shown prompt to EXPIRED_MESSAGE and remove its choices."""
