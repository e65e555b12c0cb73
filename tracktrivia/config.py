"""Configuration: env, Discord bot, Spotify credentials, round tuning."""
import os
from pathlib import Path

from dotenv import load_dotenv

# Base paths (project root = parent of tracktrivia package)
BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env from project root so SPOTIFY_CLIENT_ID etc. are set
load_dotenv(BASE_DIR / ".env")

DATA_DIR = BASE_DIR / "data"
TOKEN_STORE_PATH = Path(os.getenv("TRACKTRIVIA_TOKEN_STORE", str(DATA_DIR / "tokens.json")))

# API (OAuth callback server)
API_HOST = os.getenv("TRACKTRIVIA_API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("TRACKTRIVIA_API_PORT", os.getenv("PORT", "8000")))

# Discord
DISCORD_BOT_TOKEN = os.getenv("DISCORD_BOT_TOKEN", "")
TRIGGER_COMMAND = os.getenv("TRACKTRIVIA_TRIGGER", "!topartists")
UNLINK_COMMAND = os.getenv("TRACKTRIVIA_UNLINK", "!unlink")

# Spotify (OAuth; tokens stored per Discord user after the callback)
SPOTIFY_CLIENT_ID = os.getenv("SPOTIFY_CLIENT_ID", "")
SPOTIFY_CLIENT_SECRET = os.getenv("SPOTIFY_CLIENT_SECRET", "")
SPOTIFY_REDIRECT_URI = os.getenv("SPOTIFY_REDIRECT_URI", "http://localhost:8000/callback")
SPOTIFY_SCOPES = "user-top-read"
SPOTIFY_REQUEST_TIMEOUT = float(os.getenv("SPOTIFY_REQUEST_TIMEOUT", "10"))

# Round tuning
MAX_CHOICE_COUNT = 10  # one label per choice, A..J
CHOICE_COUNT = max(1, min(MAX_CHOICE_COUNT, int(os.getenv("TRACKTRIVIA_CHOICE_COUNT", "4"))))
TOP_ARTIST_LIMIT = int(os.getenv("TRACKTRIVIA_TOP_ARTISTS", "10"))
ALBUM_PAGE_SIZE = int(os.getenv("TRACKTRIVIA_ALBUM_PAGE_SIZE", "20"))
PROMPT_TIMEOUT_SEC = float(os.getenv("TRACKTRIVIA_PROMPT_TIMEOUT", "60"))


def ensure_data_dir() -> None:
    TOKEN_STORE_PATH.parent.mkdir(parents=True, exist_ok=True)
