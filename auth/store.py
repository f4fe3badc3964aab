"""
Persistent session store.

Reads and writes the single session record {"access_token", "user"} as one
JSON string under one storage key. Loading is self-healing: a record that
cannot be parsed or is only partly present is purged and reported as no
session. When the storage backend is unavailable the store degrades to a
non-persistent mode and never raises.
"""

import json
from typing import Optional

from auth.storage import Storage
from core.errors import StorageUnavailableError
from core.logging_config import get_logger
from core.models import Session, User

logger = get_logger(__name__)

SESSION_KEY = "session"


class SessionStore:
    """
    Owner of the persisted session record.

    Only save(), clear() and the self-healing path inside load() mutate the
    record; every other caller is read-only.

    Attributes:
        storage: Backend holding the record
        key: Storage key of the record
    """

    def __init__(self, storage: Storage, key: str = SESSION_KEY):
        self.storage = storage
        self.key = key

    @property
    def available(self) -> bool:
        """Check if the backend can persist anything at all."""
        return self.storage.is_available()

    def save(self, session: Session) -> None:
        """Write the session record in a single key write."""
        try:
            self.storage.set_item(self.key, json.dumps(session.to_record()))
        except StorageUnavailableError as e:
            logger.debug(f"Session not persisted, storage unavailable: {e}")

    def load(self) -> Optional[Session]:
        """
        Return the persisted session, or None.

        Corrupt or partial records are cleared as a side effect.
        """
        try:
            raw = self.storage.get_item(self.key)
        except StorageUnavailableError as e:
            logger.debug(f"Session not loaded, storage unavailable: {e}")
            return None
        except ValueError as e:
            logger.warning(f"Discarding unreadable session record: {e}")
            self.clear()
            return None

        if not raw:
            return None

        try:
            return Session.from_record(json.loads(raw))
        except ValueError as e:
            # json.JSONDecodeError is a ValueError too
            logger.warning(f"Discarding corrupt session record: {e}")
            self.clear()
            return None

    def clear(self) -> None:
        """Remove the session record."""
        try:
            self.storage.remove_item(self.key)
        except StorageUnavailableError as e:
            logger.debug(f"Session not cleared, storage unavailable: {e}")

    def has_session(self) -> bool:
        return self.load() is not None

    def token(self) -> Optional[str]:
        session = self.load()
        return session.token if session else None

    def user(self) -> Optional[User]:
        session = self.load()
        return session.user if session else None
