"""Callbacks for routing through the route guard, login and logout."""
import logging
from dataclasses import dataclass
from typing import Optional

from dash import Input, Output, State, no_update
import dash_mantine_components as dmc

from auth import RouteGuard
from config import get_dashboard_config
from core.errors import AuthenticationError
from dash_app.data.session_state import open_context, open_store, stored_value, was_purged

log = logging.getLogger(__name__)

SHOW = {}
HIDE = {"display": "none"}


@dataclass
class RouteDecision:
    """Outcome of routing one pathname with one session snapshot."""
    show_dashboard: bool
    redirect_to: Optional[str] = None
    status_text: str = ""
    purge_session: bool = False


def resolve_route(pathname: Optional[str], session_data) -> RouteDecision:
    """Decide what to show for pathname given the session dcc.Store data.

    The login path is public; every other path is protected by a RouteGuard.
    A corrupt session record is purged (purge_session) and treated as absent.
    """
    routes = get_dashboard_config().routes
    context = open_context(session_data)
    purge = was_purged(session_data, context.store)

    if pathname == routes.login:
        redirect = routes.dashboard if context.is_authenticated else None
        context.close()
        return RouteDecision(
            show_dashboard=context.is_authenticated,
            redirect_to=redirect,
            purge_session=purge,
        )

    redirects = []
    guard = RouteGuard(context, context.store, redirects.append, routes.login)
    guard.mount()
    allowed = guard.allows_render
    status = guard.status_text
    guard.unmount()
    context.close()

    if not allowed:
        return RouteDecision(
            show_dashboard=False,
            redirect_to=redirects[-1] if redirects else routes.login,
            status_text=status,
            purge_session=purge,
        )

    redirect = routes.dashboard if pathname in (None, "", "/") else None
    return RouteDecision(show_dashboard=True, redirect_to=redirect, purge_session=purge)


def register_auth_callbacks(app):
    """Register routing, login, logout and header callbacks."""

    @app.callback(
        Output("url", "pathname"),
        Output("session", "data"),
        Output("login-view", "style"),
        Output("dashboard-view", "style"),
        Output("guard-status", "children"),
        Input("url", "pathname"),
        Input("session", "data"),
    )
    def route(pathname, session_data):
        """Gate the dashboard view; also reacts to session changes from other tabs."""
        decision = resolve_route(pathname, session_data)
        if decision.redirect_to:
            log.info("Routing %s -> %s", pathname, decision.redirect_to)

        return (
            decision.redirect_to or no_update,
            None if decision.purge_session else no_update,
            HIDE if decision.show_dashboard else SHOW,
            SHOW if decision.show_dashboard else HIDE,
            decision.status_text,
        )

    @app.callback(
        Output("session", "data", allow_duplicate=True),
        Output("login-error", "children"),
        Output("login-password", "value"),
        Input("login-submit", "n_clicks"),
        State("login-username", "value"),
        State("login-password", "value"),
        prevent_initial_call=True,
    )
    def submit_login(_n_clicks, username, password):
        """Authenticate; on success the new session record is written to the store."""
        from dash_app.data.queries import login

        if not username or not password:
            return no_update, dmc.Alert("Enter your username and password.", color="red"), no_update

        try:
            session = login(username, password)
        except AuthenticationError as e:
            return no_update, dmc.Alert(str(e), color="red", title="Sign in failed"), ""

        context = open_context(None)
        context.login(session)
        return stored_value(context.store), None, ""

    @app.callback(
        Output("session", "data", allow_duplicate=True),
        Input("logout-button", "n_clicks"),
        State("session", "data"),
        prevent_initial_call=True,
    )
    def submit_logout(n_clicks, session_data):
        """Clear the session; routing then sends every open tab to the login view."""
        if not n_clicks:
            return no_update
        context = open_context(session_data)
        context.logout()
        return stored_value(context.store)

    @app.callback(
        Output("header-username", "children"),
        Output("header-role", "children"),
        Input("session", "data"),
    )
    def update_header(session_data):
        user = open_store(session_data).user()
        if user is None:
            return "", ""
        scope = f"Region: {user.region}" if user.is_region_scoped else "National"
        return user.username, scope
