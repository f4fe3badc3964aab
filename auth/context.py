"""
Session context: the tab-lifetime holder of the signed-in user.

A SessionContext is created once per tab (or CLI process), hydrated from the
SessionStore, and kept in step with other tabs through the storage change
channel. SessionProvider gives it a well-defined lifecycle and binds it so
nested code can reach it with use_session().

Usage:
    with SessionProvider(store, navigate=redirect) as session:
        if session.is_authenticated:
            ...
"""

from contextvars import ContextVar, Token
from typing import Callable, Optional

from auth.storage import StorageEvent
from auth.store import SessionStore
from core.errors import SessionContextError
from core.logging_config import get_logger
from core.models import Session, User

logger = get_logger(__name__)

DEFAULT_LOGIN_PATH = "/auth/login"

Navigator = Callable[[str], None]
SessionListener = Callable[["SessionContext"], None]


class SessionContext:
    """
    Reactive holder of {user, is_authenticated}.

    Attributes:
        store: Persistent store the context reads and writes through
        navigate: Called with login_path on logout (None disables navigation)
        login_path: Path of the login view
    """

    def __init__(
        self,
        store: SessionStore,
        navigate: Optional[Navigator] = None,
        login_path: str = DEFAULT_LOGIN_PATH,
    ):
        self.store = store
        self.navigate = navigate
        self.login_path = login_path
        self._user: Optional[User] = None
        self._is_loading = True
        self._initialized = False
        self._listeners: list[SessionListener] = []
        self._unsubscribe_storage: Optional[Callable[[], None]] = None

    @property
    def user(self) -> Optional[User]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    @property
    def is_loading(self) -> bool:
        """True until initialize() has read the persisted session."""
        return self._is_loading

    def initialize(self) -> "SessionContext":
        """Load the persisted session once and start listening to other tabs."""
        if self._initialized:
            return self

        session = self.store.load()
        self._user = session.user if session else None

        if self.store.available:
            self._unsubscribe_storage = self.store.storage.subscribe(self._on_storage_event)

        self._initialized = True
        self._is_loading = False
        if self._user:
            logger.info(f"Restored session for {self._user.username}")
        self._notify()
        return self

    def close(self) -> None:
        """Stop listening to storage changes."""
        if self._unsubscribe_storage is not None:
            self._unsubscribe_storage()
            self._unsubscribe_storage = None
        self._listeners.clear()

    def login(self, session: Session) -> None:
        """Adopt an already obtained session: persist it and update state."""
        self.store.save(session)
        self._set_user(session.user)
        logger.info(f"Signed in as {session.user.username}")

    def logout(self) -> None:
        """Clear the session everywhere and go to the login view."""
        self.store.clear()
        self._set_user(None)
        logger.info("Signed out")
        if self.navigate is not None:
            self.navigate(self.login_path)

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener called after every state change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _on_storage_event(self, event: StorageEvent) -> None:
        if event.key != self.store.key:
            return

        if event.new_value:
            # A record that fails validation has just been purged by load()
            session = self.store.load()
            self._set_user(session.user if session else None)
            logger.debug("Session changed in another tab")
        else:
            self._set_user(None)
            logger.debug("Session removed in another tab")

    def _set_user(self, user: Optional[User]) -> None:
        if user == self._user:
            return
        self._user = user
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)


_current_context: ContextVar[Optional[SessionContext]] = ContextVar("session_context", default=None)


class SessionProvider:
    """
    Create, initialize, bind, and tear down a SessionContext.

    Providers nest; leaving one restores whatever context was bound before.
    """

    def __init__(
        self,
        store: SessionStore,
        navigate: Optional[Navigator] = None,
        login_path: str = DEFAULT_LOGIN_PATH,
    ):
        self.context = SessionContext(store, navigate=navigate, login_path=login_path)
        self._token: Optional[Token] = None

    def __enter__(self) -> SessionContext:
        self.context.initialize()
        self._token = _current_context.set(self.context)
        return self.context

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._token is not None:
            _current_context.reset(self._token)
            self._token = None
        self.context.close()


def use_session() -> SessionContext:
    """
    Return the context bound by the innermost SessionProvider.

    Raises:
        SessionContextError: If called outside any provider.
    """
    context = _current_context.get()
    if context is None:
        raise SessionContextError("use_session must be used within a SessionProvider")
    return context
