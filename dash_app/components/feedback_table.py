"""Feedback table card: summary line, inline error, table body and pager."""
from dash import html, dcc
import pandas as pd


def make_feedback_table():
    """Return the paged feedback table card."""
    return html.Section(
        className="chart-card",
        **{"aria-label": "Client feedback responses"},
        children=[
            html.Div(
                className="chart-card__header",
                children=[
                    html.Div("Client Feedback Responses", className="chart-card__title"),
                    html.Div(id="feedback-summary", className="chart-card__subtitle"),
                ],
            ),
            html.Div(id="feedback-error"),
            dcc.Loading(
                html.Div(id="feedback-table", className="feedback-table"),
                type="circle",
            ),
            html.Div(
                className="pager",
                children=[
                    html.Button("Previous", id="page-prev", className="filter-btn", n_clicks=0, disabled=True),
                    html.Span(id="page-label", className="pager__label"),
                    html.Button("Next", id="page-next", className="filter-btn", n_clicks=0, disabled=True),
                ],
            ),
        ],
    )


def render_table(df: pd.DataFrame):
    """Render a formatted rows DataFrame as an HTML table."""
    if df.empty:
        return html.Div(
            "No data available for the selected filters",
            className="feedback-table__empty",
        )
    return html.Table(
        className="feedback-table__table",
        children=[
            html.Thead(html.Tr([html.Th(column) for column in df.columns])),
            html.Tbody([
                html.Tr([html.Td(value) for value in row])
                for row in df.itertuples(index=False, name=None)
            ]),
        ],
    )
