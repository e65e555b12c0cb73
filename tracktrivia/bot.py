"""Discord client: trigger commands, choice views and preview attachments."""
import io
import logging
from dataclasses import dataclass
from typing import List, Optional

import aiohttp
import discord

from tracktrivia.config import SPOTIFY_REQUEST_TIMEOUT, TRIGGER_COMMAND, UNLINK_COMMAND
from tracktrivia.core.prompter import EXPIRED_MESSAGE, Choice, PendingChoice, Prompter
from tracktrivia.core.quiz_round import QuizOrchestrator
from tracktrivia.core.session_refresher import SessionRefresher
from tracktrivia.core.spotify_client import SpotifyAuth
from tracktrivia.core.token_store import TokenStore

logger = logging.getLogger(__name__)

PREVIEW_FILENAME = "preview.mp3"


class DiscordSurface:
    """Round surface for one triggering message."""

    def __init__(self, message: discord.Message) -> None:
        self.message = message
        self.channel = message.channel
        self.requester_id = str(message.author.id)
        self.channel_id = str(message.channel.id)
        self.mention = message.author.mention

    async def send(self, content: str) -> None:
        await self.channel.send(content)

    async def send_direct(self, content: str) -> None:
        try:
            await self.message.author.send(content)
        except discord.Forbidden:
            logger.warning("Cannot DM user %s", self.requester_id)
            await self.channel.send(
                f"{self.mention} I can't send you direct messages. Please allow DMs and try again."
            )


class ChoiceView(discord.ui.View):
    """Buttons (or one select menu) whose first valid pick resolves a PendingChoice."""

    def __init__(self, pending: PendingChoice, choices: List[Choice], as_menu: bool) -> None:
        super().__init__(timeout=None)  # deadline lives in PendingChoice
        self.pending = pending
        if as_menu:
            select = discord.ui.Select(
                placeholder="Choose an artist",
                options=[discord.SelectOption(label=c.label, value=c.id) for c in choices],
            )

            async def on_select(interaction: discord.Interaction) -> None:
                await self._resolve(interaction, select.values[0])

            select.callback = on_select
            self.add_item(select)
        else:
            for choice in choices:
                button = discord.ui.Button(
                    label=choice.label,
                    custom_id=choice.id,
                    style=discord.ButtonStyle.secondary,
                )
                button.callback = self._button_callback(choice.id)
                self.add_item(button)

    def _button_callback(self, choice_id: str):
        async def on_click(interaction: discord.Interaction) -> None:
            await self._resolve(interaction, choice_id)

        return on_click

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if self.pending.accepts(str(interaction.user.id)):
            return True
        if self.pending.timed_out:
            await interaction.response.send_message(EXPIRED_MESSAGE, ephemeral=True)
        else:
            await interaction.response.send_message("This prompt isn't for you.", ephemeral=True)
        return False

    async def _resolve(self, interaction: discord.Interaction, choice_id: str) -> None:
        if self.pending.offer(str(interaction.user.id), choice_id):
            await interaction.response.edit_message(view=None)
            self.stop()
        else:
            await interaction.response.defer()


@dataclass
class ShownPrompt:
    message: discord.Message
    view: ChoiceView
    expired: bool = False


class DiscordPrompter(Prompter):
    """Posts prompts in the triggering channel; the correct clip is attached as preview.mp3."""

    def __init__(self, bot: "TriviaBot") -> None:
        self._bot = bot

    async def present(self, target, content, choices, pending, *, attachment_url=None, as_menu=False):
        view = ChoiceView(pending, choices, as_menu)
        kwargs = {"content": content, "view": view}
        if attachment_url:
            data = await self._download(attachment_url)
            if data is not None:
                kwargs["file"] = discord.File(io.BytesIO(data), filename=PREVIEW_FILENAME)
            else:
                kwargs["content"] = f"{content}\n{attachment_url}"
        message = await target.channel.send(**kwargs)
        return ShownPrompt(message=message, view=view)

    async def expire(self, handle: ShownPrompt) -> None:
        if handle.expired:
            return
        handle.expired = True
        handle.view.stop()
        try:
            await handle.message.edit(content=EXPIRED_MESSAGE, view=None, attachments=[])
        except discord.HTTPException as e:
            logger.warning("Could not mark prompt %s expired: %s", handle.message.id, e)

    async def _download(self, url: str) -> Optional[bytes]:
        try:
            async with self._bot.http_session.get(url) as resp:
                resp.raise_for_status()
                return await resp.read()
        except aiohttp.ClientError as e:
            logger.warning("Preview download failed for %s: %s", url, e)
            return None


class TriviaBot(discord.Client):
    """Listens for the trigger in any visible channel or DM and runs one round per trigger."""

    def __init__(self, store: TokenStore, auth: SpotifyAuth, refresher: SessionRefresher) -> None:
        intents = discord.Intents.default()
        intents.message_content = True
        super().__init__(intents=intents)
        self.store = store
        self.http_session: Optional[aiohttp.ClientSession] = None
        self.prompter = DiscordPrompter(self)
        self.orchestrator = QuizOrchestrator(refresher, auth, self.prompter)

    async def setup_hook(self) -> None:
        self.http_session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=SPOTIFY_REQUEST_TIMEOUT)
        )

    async def close(self) -> None:
        if self.http_session is not None:
            await self.http_session.close()
            self.http_session = None
        await super().close()

    async def on_ready(self) -> None:
        logger.info("Connected to Discord as %s", self.user)

    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot:
            return
        content = message.content.strip()
        if content.startswith(TRIGGER_COMMAND):
            await self.orchestrator.handle_trigger(DiscordSurface(message))
        elif content.startswith(UNLINK_COMMAND):
            if self.store.delete(str(message.author.id)):
                await message.channel.send("Your Spotify account has been unlinked.")
            else:
                await message.channel.send("No linked Spotify account found.")
