"""Callbacks for collapsing the sidebar; the preference lives in local storage."""
from dash import Input, Output, State

from dash_app.components.sidebar import SIDEBAR_CLASS, SIDEBAR_COLLAPSED_CLASS


def register_sidebar_callbacks(app):
    """Register sidebar toggle callbacks."""

    @app.callback(
        Output("sidebar-collapsed", "data"),
        Input("sidebar-toggle", "n_clicks"),
        State("sidebar-collapsed", "data"),
        prevent_initial_call=True,
    )
    def toggle_sidebar(_n_clicks, collapsed):
        return not bool(collapsed)

    @app.callback(
        Output("sidebar", "className"),
        Input("sidebar-collapsed", "data"),
    )
    def apply_sidebar_state(collapsed):
        return SIDEBAR_COLLAPSED_CLASS if collapsed else SIDEBAR_CLASS
