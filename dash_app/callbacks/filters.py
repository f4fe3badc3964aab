"""Callbacks for the location cascade, time-period controls and URL sync."""
import logging
from dataclasses import dataclass
from typing import Optional

from dash import Input, Output, State, ctx, no_update
from dash.exceptions import PreventUpdate
import dash_mantine_components as dmc

from config import get_dashboard_config
from core.errors import InvalidSelectionError, UnauthorizedError
from core.models import FilterState, TimeMode, User
from filters import FilterStateSynchronizer, LocationFilter, TimePeriodSelector

log = logging.getLogger(__name__)

SHOW = {}
HIDE = {"display": "none"}

_YEAR_MODES = (TimeMode.BY_YEAR.value, TimeMode.BY_MONTH_YEAR.value, TimeMode.BY_QUARTER_YEAR.value)
_PENDING_MODES = (TimeMode.BY_MONTH_YEAR.value, TimeMode.BY_QUARTER_YEAR.value)

CONTROLS = [
    ("region-select", "value"),
    ("district-select", "value"),
    ("facility-select", "value"),
    ("time-period-select", "value"),
    ("year-select", "value"),
    ("month-select", "value"),
    ("quarter-select", "value"),
    ("date-picker", "date"),
]


@dataclass
class FilterView:
    """Everything the filter bar renders after one event."""
    state: FilterState
    changed: bool
    query: Optional[str]
    location: LocationFilter
    time_period: TimePeriodSelector
    mode_value: str


def _restore(filter_data) -> Optional[FilterState]:
    if not filter_data:
        return None
    try:
        return FilterState.from_dict(filter_data)
    except (ValueError, TypeError, KeyError):
        log.warning("Ignoring unreadable filter-state store")
        return None


def _apply_event(sync: FilterStateSynchronizer, trigger: str, value) -> None:
    location = sync.location
    time_period = sync.time_period

    if trigger == "region-select":
        location.set_region(value)
    elif trigger == "district-select":
        location.set_district(value)
    elif trigger == "facility-select":
        location.set_facility(value)
    elif trigger == "time-period-select" and value:
        time_period.select_mode(value)
    elif trigger == "year-select" and value:
        time_period.set_year(value)
    elif trigger == "month-select" and value:
        time_period.set_month(value)
    elif trigger == "quarter-select" and value:
        time_period.set_quarter(value)
    elif trigger == "date-picker" and value:
        time_period.set_date(value)
    elif trigger == "clear-filters":
        sync.clear_filters()


def run_filter_event(
    user: User,
    filter_data,
    search: Optional[str],
    trigger: Optional[str] = None,
    value=None,
    lookups=None,
    mode_control: Optional[str] = None,
) -> FilterView:
    """Apply one control event to the filter state held in the stores.

    The first call (no stored state) hydrates from the URL query. Later calls
    restore the stored state and apply the event. Invalid selections are
    ignored, since the controls that would produce them are disabled.
    mode_control is the value the mode select currently shows, so a month or
    quarter mode chosen earlier survives unrelated events.

    Raises:
        UnauthorizedError: A lookup found the session invalid.
    """
    settings = get_dashboard_config().filters
    location = LocationFilter(user, restrict_to_user_region=settings.restrict_to_user_region)
    time_period = TimePeriodSelector(first_year=settings.first_year)

    stored = _restore(filter_data)
    if stored is not None:
        location.apply(stored.location)
        time_period.apply(stored.time)

    queries = []
    emitted = []
    sync = FilterStateSynchronizer(location, time_period, navigate_query=queries.append, query=search or "")
    sync.subscribe(emitted.append)

    if stored is None:
        sync.hydrate()
    else:
        sync.resume(stored)

    if trigger:
        try:
            _apply_event(sync, trigger, value)
        except InvalidSelectionError as e:
            log.warning("Ignoring filter event %s=%r: %s", trigger, value, e)

    if lookups is not None:
        location.refresh_options(lookups)

    mode_value = time_period.window.mode.value
    if trigger == "time-period-select" and value:
        mode_control = value
    if mode_value == TimeMode.BY_YEAR.value and mode_control in _PENDING_MODES:
        # Month/quarter modes stay selected while only the year is chosen
        mode_value = mode_control

    sync.close()
    return FilterView(
        state=sync.current,
        changed=bool(emitted),
        query=queries[-1] if queries else None,
        location=location,
        time_period=time_period,
        mode_value=mode_value,
    )


def _search(query: Optional[str]):
    """dcc.Location search value for a mirrored query (None means unchanged)."""
    if query is None:
        return no_update
    return f"?{query}" if query else ""


def _location_errors(location: LocationFilter):
    alerts = []
    for level, options in (
        ("regions", location.regions),
        ("districts", location.districts),
        ("facilities", location.facilities),
    ):
        if options.error:
            alerts.append(dmc.Alert(f"Could not load {level}: {options.error}", color="red"))
    return alerts


def register_filter_callbacks(app):
    """Register the filter bar callback."""

    @app.callback(
        Output("filter-state", "data"),
        Output("url", "search"),
        Output("session", "data", allow_duplicate=True),
        Output("region-select", "options"),
        Output("region-select", "value"),
        Output("region-select", "disabled"),
        Output("district-select", "options"),
        Output("district-select", "value"),
        Output("district-select", "disabled"),
        Output("facility-select", "options"),
        Output("facility-select", "value"),
        Output("facility-select", "disabled"),
        Output("location-errors", "children"),
        Output("time-period-select", "value"),
        Output("year-select", "options"),
        Output("year-select", "value"),
        Output("month-select", "value"),
        Output("month-select", "disabled"),
        Output("quarter-select", "value"),
        Output("quarter-select", "disabled"),
        Output("date-picker", "date"),
        Output("year-group", "style"),
        Output("month-group", "style"),
        Output("quarter-group", "style"),
        Output("date-group", "style"),
        Output("filter-summary", "children"),
        *[Input(component, prop) for component, prop in CONTROLS],
        Input("clear-filters", "n_clicks"),
        Input("session", "data"),
        State("filter-state", "data"),
        State("url", "search"),
        prevent_initial_call="initial_duplicate",
    )
    def update_filters(*args):
        """Apply a control event, mirror the state into the URL, refresh options."""
        from dash_app.data.queries import lookup_service
        from dash_app.data.session_state import current_session

        control_values = dict(zip([component for component, _ in CONTROLS], args[:len(CONTROLS)]))
        session_data, filter_data, search = args[-3], args[-2], args[-1]

        session = current_session(session_data)
        if session is None:
            raise PreventUpdate

        trigger = ctx.triggered_id if ctx.triggered_id in control_values or ctx.triggered_id == "clear-filters" else None
        try:
            view = run_filter_event(
                session.user,
                filter_data,
                search,
                trigger=trigger,
                value=control_values.get(trigger),
                lookups=lookup_service(session.token),
                mode_control=control_values["time-period-select"],
            )
        except UnauthorizedError:
            log.warning("Session rejected while loading locations")
            outputs = [no_update] * 26
            outputs[2] = None
            return tuple(outputs)

        location = view.location
        time_period = view.time_period
        window = time_period.window
        selected = location.selector_values()
        mode = view.mode_value

        return (
            view.state.to_dict() if view.changed else no_update,
            _search(view.query),
            no_update,
            location.options("region"),
            selected["region"],
            location.region_disabled,
            location.options("district"),
            selected["district"],
            location.district_disabled,
            location.options("facility"),
            selected["facility"],
            location.facility_disabled,
            _location_errors(location),
            mode,
            [{"label": str(year), "value": str(year)} for year in time_period.years()],
            str(window.year) if window.year is not None else None,
            window.month,
            not time_period.month_enabled,
            str(window.quarter) if window.quarter is not None else None,
            not time_period.quarter_enabled,
            window.day.isoformat() if window.day else None,
            SHOW if mode in _YEAR_MODES else HIDE,
            SHOW if mode == TimeMode.BY_MONTH_YEAR.value else HIDE,
            SHOW if mode == TimeMode.BY_QUARTER_YEAR.value else HIDE,
            SHOW if mode == TimeMode.BY_DATE.value else HIDE,
            view.state.describe(),
        )
