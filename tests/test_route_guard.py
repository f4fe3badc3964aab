"""
Tests for auth/guard.py - the protected-view gate.

Tests cover:
- CHECKING before mount, AUTHENTICATED/UNAUTHENTICATED after
- Reading storage directly while the context is still hydrating
- Following later session changes
"""

from auth import GuardState, RouteGuard, SessionContext


def make_guard(store, initialize=True):
    visited = []
    context = SessionContext(store)
    if initialize:
        context.initialize()
    return RouteGuard(context, store, navigate=visited.append), context, visited


class TestMount:
    """Test the one-shot check on mount."""

    def test_checking_before_mount(self, session_store):
        guard, _, _ = make_guard(session_store)
        assert guard.state is GuardState.CHECKING
        assert not guard.allows_render
        assert guard.status_text == "Authenticating..."

    def test_authenticated(self, session_store, national_session):
        session_store.save(national_session)
        guard, _, visited = make_guard(session_store)

        assert guard.mount() is GuardState.AUTHENTICATED
        assert guard.allows_render
        assert visited == []

    def test_unauthenticated_redirects(self, session_store):
        guard, _, visited = make_guard(session_store)

        assert guard.mount() is GuardState.UNAUTHENTICATED
        assert not guard.allows_render
        assert guard.status_text == "Redirecting to login..."
        assert visited == ["/auth/login"]

    def test_hydrating_context_with_stored_session(self, session_store, national_session):
        """A persisted session admits the user even before the context has loaded."""
        session_store.save(national_session)
        guard, context, visited = make_guard(session_store, initialize=False)
        assert context.is_loading

        assert guard.mount() is GuardState.AUTHENTICATED
        assert visited == []

    def test_corrupt_record_redirects(self, session_store, memory_storage):
        memory_storage.set_item("session", "{}")
        guard, _, visited = make_guard(session_store)

        assert guard.mount() is GuardState.UNAUTHENTICATED
        assert visited == ["/auth/login"]


class TestSessionChanges:
    """Test the guard following the context after mount."""

    def test_logout_after_mount(self, session_store, national_session):
        session_store.save(national_session)
        guard, context, visited = make_guard(session_store)
        guard.mount()

        context.logout()

        assert guard.state is GuardState.UNAUTHENTICATED
        assert visited == ["/auth/login"]

    def test_login_after_denial(self, session_store, national_session):
        guard, context, _ = make_guard(session_store)
        guard.mount()

        context.login(national_session)

        assert guard.state is GuardState.AUTHENTICATED

    def test_unmount_stops_following(self, session_store, national_session):
        session_store.save(national_session)
        guard, context, visited = make_guard(session_store)
        guard.mount()
        guard.unmount()

        context.logout()

        assert guard.state is GuardState.CHECKING
        assert visited == []

    def test_custom_login_path(self, session_store):
        visited = []
        context = SessionContext(session_store, login_path="/signin").initialize()
        guard = RouteGuard(context, session_store, navigate=visited.append)

        guard.mount()

        assert visited == ["/signin"]
