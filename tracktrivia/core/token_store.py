"""Persist and load linked Spotify sessions (JSON), keyed by chat user id."""
import json
import logging
import os
import threading
from pathlib import Path
from typing import Dict, Optional

from tracktrivia.models.session import UserSession

logger = logging.getLogger(__name__)


class TokenStore:
    """In-memory map of user id -> UserSession, rewritten in full to disk on every change.

    All reads and writes go through one lock so a refresh for one user never
    interleaves with another user's write. A failed disk write is logged and
    the in-memory session is kept.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()
        self._sessions: Dict[str, UserSession] = {}

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> None:
        """Replace the in-memory map with the sessions on disk."""
        sessions = self._read()
        with self._lock:
            self._sessions = sessions
        logger.info("Token store: loaded %d session(s) from %s", len(sessions), self._path)

    def _read(self) -> Dict[str, UserSession]:
        if not self._path.exists():
            return {}
        try:
            raw = self._path.read_text()
            data = json.loads(raw) if raw.strip() else {}
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Token store: could not read %s: %s", self._path, e)
            return {}
        sessions = data.get("sessions") or {} if isinstance(data, dict) else None
        if not isinstance(sessions, dict):
            logger.warning("Token store: unexpected layout in %s, ignoring it", self._path)
            return {}
        out: Dict[str, UserSession] = {}
        for user_id, item in sessions.items():
            try:
                session = UserSession(
                    user_id=str(user_id),
                    access_token=item["access_token"],
                    refresh_token=item["refresh_token"],
                )
            except (KeyError, TypeError):
                continue
            if session.is_complete():
                out[session.user_id] = session
        return out

    def get(self, user_id: str) -> Optional[UserSession]:
        """Return the session for user_id or None."""
        with self._lock:
            return self._sessions.get(user_id)

    def put(self, session: UserSession) -> None:
        """Insert or replace a session and save."""
        if not session.is_complete():
            raise ValueError("session must carry both an access token and a refresh token")
        with self._lock:
            self._sessions[session.user_id] = session
            self._flush_locked()

    def delete(self, user_id: str) -> bool:
        """Remove a session and save. Returns True if it existed."""
        with self._lock:
            if self._sessions.pop(user_id, None) is None:
                return False
            self._flush_locked()
            return True

    def flush(self) -> None:
        """Write the current map to disk."""
        with self._lock:
            self._flush_locked()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _flush_locked(self) -> None:
        data = {
            "sessions": {
                s.user_id: {"access_token": s.access_token, "refresh_token": s.refresh_token}
                for s in self._sessions.values()
            }
        }
        tmp = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(data, indent=2))
            os.replace(tmp, self._path)
        except OSError:
            logger.exception("Token store: failed writing %s", self._path)
