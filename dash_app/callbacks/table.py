"""Callbacks for the paged feedback table."""
import logging
from typing import Optional

from dash import Input, Output, State, ctx, no_update
from dash.exceptions import PreventUpdate
import dash_mantine_components as dmc

from api_client import FetchStatus, PaginatedFetchController
from core.errors import UnauthorizedError
from core.models import FilterState, PageCursor, Session, TimeMode
from dash_app.components.feedback_table import render_table
from dash_app.data.rows import format_rows

log = logging.getLogger(__name__)


def load_table_page(
    session: Session,
    filter_data,
    page_data,
    action: Optional[str] = None,
    controller_factory=None,
) -> Optional[PaginatedFetchController]:
    """Load the page the table should show next.

    A new filter always starts again at page 1. "next"/"previous" move from
    the stored cursor of the same filter; None is returned when the move is
    not allowed (no next page, or already on page 1).

    Raises:
        UnauthorizedError: The session is no longer valid.
    """
    if controller_factory is None:
        from dash_app.data.queries import feedback_controller as controller_factory

    filters = FilterState.from_dict(filter_data)
    previous = page_data or {}
    same_filter = previous.get("filters") == filter_data

    if action in ("next", "previous") and same_filter:
        controller = controller_factory(session, filters, PageCursor.from_dict(previous.get("cursor")))
        moved = controller.next_page() if action == "next" else controller.previous_page()
        if not moved and controller.status is not FetchStatus.ERROR:
            return None
        return controller

    controller = controller_factory(session, filters)
    controller.load(1)
    return controller


def summary_text(controller: PaginatedFetchController) -> str:
    total = controller.total_records if controller.total_records is not None else len(controller.rows)
    text = f"Showing {len(controller.rows)} of {total} records"
    if controller.filters.time.mode is not TimeMode.CUMULATIVE:
        text += f" for {controller.filters.time.label}"
    return text


def register_table_callbacks(app):
    """Register the feedback table callback."""

    @app.callback(
        Output("feedback-table", "children"),
        Output("feedback-summary", "children"),
        Output("feedback-error", "children"),
        Output("page-label", "children"),
        Output("page-prev", "disabled"),
        Output("page-next", "disabled"),
        Output("page-state", "data"),
        Output("session", "data", allow_duplicate=True),
        Input("filter-state", "data"),
        Input("page-prev", "n_clicks"),
        Input("page-next", "n_clicks"),
        State("page-state", "data"),
        State("session", "data"),
        prevent_initial_call=True,
    )
    def update_table(filter_data, _prev_clicks, _next_clicks, page_data, session_data):
        """Reload page 1 on a filter change; step pages on Previous/Next."""
        from dash_app.data.session_state import current_session

        session = current_session(session_data)
        if session is None or filter_data is None:
            raise PreventUpdate

        action = {"page-next": "next", "page-prev": "previous"}.get(ctx.triggered_id)
        try:
            controller = load_table_page(session, filter_data, page_data, action)
        except UnauthorizedError:
            log.warning("Session rejected while loading feedback data")
            return (no_update,) * 7 + (None,)

        if controller is None:
            raise PreventUpdate

        cursor = controller.cursor
        page_state = {"filters": filter_data, "cursor": cursor.to_dict()}
        page_label = f"Page {cursor.page} of {cursor.total_pages}"

        if controller.status is FetchStatus.ERROR:
            return (
                render_table(format_rows([])),
                "",
                dmc.Alert("Error loading data. Please try again.", color="red", title=controller.error),
                page_label,
                not cursor.can_retreat,
                not cursor.can_advance,
                page_state,
                no_update,
            )

        return (
            render_table(format_rows(controller.rows)),
            summary_text(controller),
            None,
            page_label,
            not cursor.can_retreat,
            not cursor.can_advance,
            page_state,
            no_update,
        )
