"""FastAPI app: OAuth callback server that also runs the Discord bot for its lifetime."""
import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

# Configure logging in the worker process so core INFO logs are visible under uvicorn
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(name)s: %(message)s",
)
logging.getLogger("discord").setLevel(logging.INFO)

from tracktrivia.api.state import AppState, get_state
from tracktrivia.config import DISCORD_BOT_TOKEN, ensure_data_dir

# Import routes after state to avoid circular imports
from tracktrivia.api.routes import health, spotify

__all__ = ["app", "AppState", "get_state"]

logger = logging.getLogger(__name__)

_state = get_state()


def _log_bot_exit(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.error("Discord bot stopped: %s", error, exc_info=error)


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_data_dir()
    _state.load_sessions()

    bot_task = None
    if DISCORD_BOT_TOKEN:
        bot_task = asyncio.create_task(_state.bot.start(DISCORD_BOT_TOKEN))
        bot_task.add_done_callback(_log_bot_exit)
        logger.info("Discord bot starting")
    else:
        logger.warning("DISCORD_BOT_TOKEN not set, running callback server only")

    yield

    if bot_task is not None:
        await _state.bot.close()
        try:
            await asyncio.wait_for(bot_task, timeout=5.0)
        except asyncio.TimeoutError:
            bot_task.cancel()
        except Exception:
            logger.exception("Discord bot stopped with an error")


app = FastAPI(
    title="Track Trivia",
    description="Spotify link callback and Discord music quiz bot",
    lifespan=lifespan,
)

app.include_router(spotify.router, tags=["spotify"])
app.include_router(health.router, tags=["health"])
