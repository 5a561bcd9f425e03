"""Stable user id and per-work session id."""

import logging

from .core import Identity, generate_id
from .storage import SESSION_ID_KEY, USER_ID_KEY, KeyValueStore

logger = logging.getLogger(__name__)


class IdentityStore:
    """Creates and persists the user id and the current session id.

    Ids are opaque correlation tokens for the generation backend, not
    security tokens; they carry no collision check. When the store cannot
    be read or written the ids live in memory for the rest of the process.
    """

    def __init__(self, store: KeyValueStore):
        self._store = store
        self._user_id: str | None = None
        self._session_id: str | None = None

    def ensure_user_id(self) -> str:
        if self._user_id is None:
            user_id = self._read(USER_ID_KEY)
            if not user_id:
                user_id = generate_id()
                self._write(USER_ID_KEY, user_id)
                logger.info("Created user id %s", user_id)
            self._user_id = user_id
        return self._user_id

    def ensure_session_id(self) -> str:
        """Return the persisted session id, minting one if there is none."""
        if self._session_id is None:
            session_id = self._read(SESSION_ID_KEY)
            if not session_id:
                return self.start_session()
            self._session_id = session_id
        return self._session_id

    def start_session(self) -> str:
        """Mint, persist and return a fresh session id."""
        self._session_id = generate_id()
        self._write(SESSION_ID_KEY, self._session_id)
        logger.debug("Started session %s", self._session_id)
        return self._session_id

    @property
    def identity(self) -> Identity:
        return Identity(user_id=self.ensure_user_id(), session_id=self.ensure_session_id())

    # ── Private helpers ──────────────────────────────────────────────

    def _read(self, key: str) -> str | None:
        try:
            return self._store.get(key)
        except Exception as e:
            logger.warning("Could not read %s, minting a new id: %s", key, e)
            return None

    def _write(self, key: str, value: str) -> None:
        try:
            self._store.set(key, value)
        except Exception as e:
            logger.warning("Could not persist %s, keeping it in memory: %s", key, e)
