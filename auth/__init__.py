"""
Session persistence, the session context, and the route guard.
"""

from auth.storage import Storage, MemoryStorage, FileStorage, StorageEvent
from auth.store import SessionStore, SESSION_KEY
from auth.context import SessionContext, SessionProvider, use_session
from auth.guard import RouteGuard, GuardState

__all__ = [
    "Storage",
    "MemoryStorage",
    "FileStorage",
    "StorageEvent",
    "SessionStore",
    "SESSION_KEY",
    "SessionContext",
    "SessionProvider",
    "use_session",
    "RouteGuard",
    "GuardState",
]
