"""
Formatting of feedback rows for display and export.

Rows come from the data endpoint as dicts with snake_case keys. Location and
answer values use underscores for spaces, and service points carry a numeric
prefix ("3_Outpatient") that is not shown.
"""

import re

import pandas as pd

# Raw columns in export order; anything else the API adds follows these
RAW_COLUMNS = [
    "meta_instance_id",
    "system_submission_date",
    "region",
    "district",
    "facility",
    "hlevel",
    "ownership",
    "reporting_period",
    "demo_age",
    "demo_gender",
    "servicepoint",
    "servicepoint_others",
    "cleanliness",
    "timeliness_of_services",
    "privacy",
    "respect",
    "availability_of_medicines",
    "availability_of_services",
    "g_access_to_services",
    "needed_time_given",
    "cost_of_services",
    "bribe",
    "service_against_will",
    "satifisaction",
    "comments",
]

DISPLAY_COLUMNS = [
    "Date",
    "Facility",
    "District",
    "Level",
    "Service Point",
    "Demographic",
    "Satisfaction",
    "Comments",
]

OTHER_SERVICE_POINT = "9_Other"

_NUMBER_PREFIX = re.compile(r"^\d+_")


def spaced(value) -> str:
    """Underscores to spaces; missing values become an empty string."""
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    return str(value).replace("_", " ")


def format_service_point(servicepoint, others=None) -> str:
    """Readable service point; "Other" shows the free-text answer when given."""
    if servicepoint == OTHER_SERVICE_POINT and isinstance(others, str) and others:
        return others
    if not isinstance(servicepoint, str):
        return ""
    return spaced(_NUMBER_PREFIX.sub("", servicepoint))


def _demographic(age, gender) -> str:
    parts = []
    if age is not None:
        years = pd.to_numeric(age, errors="coerce")
        if not pd.isna(years):
            parts.append(str(int(years)))
    if isinstance(gender, str) and gender:
        parts.append(spaced(gender))
    return ", ".join(parts)


def rows_to_frame(rows: list[dict]) -> pd.DataFrame:
    """Raw rows as a DataFrame with the known columns first."""
    df = pd.DataFrame(rows)
    if df.empty:
        return pd.DataFrame(columns=RAW_COLUMNS)
    for column in RAW_COLUMNS:
        if column not in df.columns:
            df[column] = None
    extra = [c for c in df.columns if c not in RAW_COLUMNS]
    return df[RAW_COLUMNS + extra]


def format_rows(rows: list[dict]) -> pd.DataFrame:
    """Rows shaped for the feedback table, one column per DISPLAY_COLUMNS entry."""
    df = rows_to_frame(rows)
    if df.empty:
        return pd.DataFrame(columns=DISPLAY_COLUMNS)

    dates = pd.to_datetime(df["system_submission_date"], errors="coerce", format="mixed")
    return pd.DataFrame(
        {
            "Date": dates.dt.strftime("%d/%m/%Y").fillna(""),
            "Facility": df["facility"].map(spaced),
            "District": df["district"].map(spaced),
            "Level": df["hlevel"].map(spaced),
            "Service Point": [
                format_service_point(sp, other)
                for sp, other in zip(df["servicepoint"], df["servicepoint_others"])
            ],
            "Demographic": [
                _demographic(age, gender) for age, gender in zip(df["demo_age"], df["demo_gender"])
            ],
            "Satisfaction": df["satifisaction"].map(spaced),
            "Comments": df["comments"].fillna("").astype(str),
        },
        columns=DISPLAY_COLUMNS,
    )
