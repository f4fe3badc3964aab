"""
Bridge between the browser's session dcc.Store and SessionStore.

The store's data is the persisted record as a JSON string. Each callback
wraps it in a MemoryStorage, works through SessionStore/SessionContext, and
writes back whatever the storage holds afterwards (None once cleared).
"""

from typing import Optional

from auth import MemoryStorage, SessionContext, SessionStore
from config import get_dashboard_config
from core.models import Session


def open_store(data) -> SessionStore:
    """SessionStore over a snapshot of the session dcc.Store."""
    key = get_dashboard_config().storage.session_key
    initial = {key: data} if isinstance(data, str) and data else None
    return SessionStore(MemoryStorage(initial), key=key)


def open_context(data) -> SessionContext:
    """Initialized SessionContext over a snapshot of the session dcc.Store."""
    routes = get_dashboard_config().routes
    context = SessionContext(open_store(data), login_path=routes.login)
    return context.initialize()


def current_session(data) -> Optional[Session]:
    return open_store(data).load()


def stored_value(store: SessionStore) -> Optional[str]:
    """What the dcc.Store should hold after working on store."""
    return store.storage.get_item(store.key)


def was_purged(data, store: SessionStore) -> bool:
    """True if the snapshot held a record that loading has just discarded."""
    return bool(data) and stored_value(store) is None
