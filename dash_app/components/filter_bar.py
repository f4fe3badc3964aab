"""Filter bar component: location cascade, time-period controls, Clear Filters."""
from dash import html, dcc

from filters import ALL_DISTRICTS, ALL_FACILITIES, ALL_REGIONS, MONTHS, QUARTERS, TIME_PERIODS
from core.models import TimeMode


def _group(label, control, group_id=None, hidden=False):
    """Label + control pair; group_id lets callbacks show or hide it."""
    props = {"className": "filter-bar__group"}
    if group_id:
        props["id"] = group_id
    if hidden:
        props["style"] = {"display": "none"}
    return html.Div(
        **props,
        children=[
            html.Span(label, className="filter-bar__label"),
            control,
        ],
    )


def _dropdown(control_id, options, value, disabled=False):
    return dcc.Dropdown(
        id=control_id,
        options=options,
        value=value,
        clearable=False,
        disabled=disabled,
        className="filter-dropdown",
    )


def make_filter_bar():
    """Return the filter bar.

    Options, values and disabled flags are all set by the filter callback;
    the defaults here are the open, cumulative state.
    """
    return html.Section(
        className="filter-bar",
        **{"aria-label": "Filters"},
        children=[
            # Location cascade
            _group("Region", _dropdown("region-select", [], ALL_REGIONS)),
            _group("District", _dropdown("district-select", [], ALL_DISTRICTS, disabled=True)),
            _group("Facility", _dropdown("facility-select", [], ALL_FACILITIES, disabled=True)),
            html.Div(id="location-errors", className="filter-bar__errors"),
            html.Div(className="filter-bar__divider"),

            # Time period
            _group(
                "Time period",
                _dropdown(
                    "time-period-select",
                    [{"label": label, "value": value} for value, label in TIME_PERIODS],
                    TimeMode.CUMULATIVE.value,
                ),
            ),
            _group("Year", _dropdown("year-select", [], None), group_id="year-group", hidden=True),
            _group(
                "Month",
                _dropdown("month-select", [{"label": label, "value": value} for value, label in MONTHS], None),
                group_id="month-group",
                hidden=True,
            ),
            _group(
                "Quarter",
                _dropdown("quarter-select", [{"label": label, "value": value} for value, label in QUARTERS], None),
                group_id="quarter-group",
                hidden=True,
            ),
            _group(
                "Date",
                dcc.DatePickerSingle(id="date-picker", display_format="DD/MM/YYYY"),
                group_id="date-group",
                hidden=True,
            ),

            html.Button(
                "Clear Filters",
                id="clear-filters",
                className="filter-btn filter-btn--clear",
                n_clicks=0,
            ),
        ],
    )
