"""Left sidebar navigation; its collapsed state persists in local storage."""
from dash import html

from config import get_dashboard_config

SIDEBAR_CLASS = "sidebar"
SIDEBAR_COLLAPSED_CLASS = "sidebar sidebar--collapsed"


def make_sidebar():
    """Return the left sidebar navigation."""
    return html.Nav(
        id="sidebar",
        className=SIDEBAR_CLASS,
        **{"aria-label": "Main navigation"},
        children=[
            html.Div(
                className="sidebar__section",
                children=[
                    html.Div("Data", className="sidebar__label"),
                    html.A(
                        "All Feedback",
                        className="sidebar__item sidebar__item--active",
                        href=get_dashboard_config().routes.dashboard,
                    ),
                ],
            ),
            html.Div(
                className="sidebar__footer",
                children=[
                    "Client Satisfaction Feedback",
                    html.Br(),
                    html.Span(id="filter-summary"),
                ],
            ),
        ],
    )
