"""Top header bar: sidebar toggle, title, signed-in user and sign out."""
from dash import html


def make_header():
    """Return the fixed top header of the dashboard view."""
    return html.Header(
        className="top-header",
        children=[
            # Left: sidebar toggle + title
            html.Div(
                className="top-header__brand",
                children=[
                    html.Button(
                        "☰",
                        id="sidebar-toggle",
                        className="top-header__toggle",
                        n_clicks=0,
                        **{"aria-label": "Toggle sidebar"},
                    ),
                    html.Div("CSF Dashboard", className="top-header__title"),
                ],
            ),

            # Right: user + sign out
            html.Div(
                className="top-header__right",
                children=[
                    html.Span(id="header-username", className="top-header__user"),
                    html.Span(id="header-role", className="top-header__role"),
                    html.Button(
                        "Sign out",
                        id="logout-button",
                        className="filter-btn",
                        n_clicks=0,
                    ),
                ],
            ),
        ],
    )
