"""
Route guard for protected views.

CHECKING → AUTHENTICATED | UNAUTHENTICATED, evaluated once per mount. The
check reads the persisted session directly as well as the context, because
the context may still be hydrating when a protected view mounts and a
premature negative answer would bounce a signed-in user to the login page.
"""

from enum import Enum
from typing import Callable, Optional

from auth.context import Navigator, SessionContext
from auth.store import SessionStore
from core.logging_config import get_logger

logger = get_logger(__name__)


class GuardState(str, Enum):
    CHECKING = "checking"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


_STATUS_TEXT = {
    GuardState.CHECKING: "Authenticating...",
    GuardState.AUTHENTICATED: "",
    GuardState.UNAUTHENTICATED: "Redirecting to login...",
}


class RouteGuard:
    """
    Gatekeeper for one protected view.

    Attributes:
        context: Session context of the tab
        store: Persistent store read directly on mount
        navigate: Called with login_path when access is denied
        login_path: Path of the login view
        state: Current GuardState
    """

    def __init__(
        self,
        context: SessionContext,
        store: SessionStore,
        navigate: Navigator,
        login_path: Optional[str] = None,
    ):
        self.context = context
        self.store = store
        self.navigate = navigate
        self.login_path = login_path or context.login_path
        self.state = GuardState.CHECKING
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def allows_render(self) -> bool:
        """Children render only once the session is confirmed."""
        return self.state is GuardState.AUTHENTICATED

    @property
    def status_text(self) -> str:
        """Loader text while children are withheld."""
        return _STATUS_TEXT[self.state]

    def mount(self) -> GuardState:
        """Run the one-shot check and start following the session context."""
        if self.context.is_authenticated or self.store.has_session():
            self.state = GuardState.AUTHENTICATED
        else:
            self._deny()

        if self._unsubscribe is None:
            self._unsubscribe = self.context.subscribe(self._on_session_change)
        return self.state

    def unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.state = GuardState.CHECKING

    def _on_session_change(self, context: SessionContext) -> None:
        if context.is_loading:
            return
        if context.is_authenticated:
            self.state = GuardState.AUTHENTICATED
        elif self.state is not GuardState.UNAUTHENTICATED:
            self._deny()

    def _deny(self) -> None:
        self.state = GuardState.UNAUTHENTICATED
        logger.info(f"No valid session, redirecting to {self.login_path}")
        self.navigate(self.login_path)
