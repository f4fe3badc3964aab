"""Dash application entry point with layout root and state stores."""
from dash import Dash, html, dcc
import dash_mantine_components as dmc

from dash_app.components.header import make_header
from dash_app.components.sidebar import make_sidebar
from dash_app.components.filter_bar import make_filter_bar
from dash_app.components.feedback_table import make_feedback_table
from dash_app.components.login import make_login_view

app = Dash(
    __name__,
    suppress_callback_exceptions=True,
    title="CSF Dashboard",
)

app.layout = dmc.MantineProvider(
    children=[
        # State stores
        # Persisted session record as a JSON string, shared by every tab
        dcc.Store(id="session", storage_type="local"),
        dcc.Store(id="filter-state", storage_type="memory"),
        dcc.Store(id="page-state", storage_type="memory"),
        dcc.Store(id="sidebar-collapsed", storage_type="local", data=False),
        dcc.Location(id="url", refresh=False),

        make_login_view(),

        # Protected view, shown only once the route guard lets it render
        html.Div(
            id="guard-status",
            className="guard-status",
        ),
        html.Div(
            id="dashboard-view",
            style={"display": "none"},
            children=[
                make_header(),
                make_sidebar(),
                html.Main(
                    className="main",
                    children=[
                        make_filter_bar(),
                        make_feedback_table(),
                    ],
                ),
            ],
        ),
    ],
)

from dash_app.callbacks import register_callbacks

register_callbacks(app)

server = app.server
