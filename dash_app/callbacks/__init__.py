"""Callback registration: imports the callback modules and wires them to the app."""


def register_callbacks(app):
    """Register all Dash callbacks with the app instance."""
    from dash_app.callbacks.auth import register_auth_callbacks
    from dash_app.callbacks.filters import register_filter_callbacks
    from dash_app.callbacks.table import register_table_callbacks
    from dash_app.callbacks.sidebar import register_sidebar_callbacks

    register_auth_callbacks(app)
    register_filter_callbacks(app)
    register_table_callbacks(app)
    register_sidebar_callbacks(app)
