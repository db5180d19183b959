"""
Row Classifier & Formatter

Turns raw log records into display rows, partitioned by category.
Missing optional fields fall back to defaults; nothing here raises.
"""
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from glucobites.core.reports.records import (
    Category, CATEGORY_ORDER, FormattedRow, LogRecord, ThresholdProfile
)

# Tags whose readings are compared against the fasting limit
FASTING_TAGS = ("Fasting", "Pre-Meal", "N/A")
POST_MEAL_TAG = "Post-Meal"


def format_timestamp(ts: datetime) -> str:
    """Format like an en-US locale string, e.g. '3/7/2025, 2:05:09 PM'."""
    hour = ts.hour % 12 or 12
    suffix = "AM" if ts.hour < 12 else "PM"
    return f"{ts.month}/{ts.day}/{ts.year}, {hour}:{ts.minute:02d}:{ts.second:02d} {suffix}"


def format_report_date(value: datetime) -> str:
    """Long date used in the report header and email body, e.g. 'March 7, 2025'."""
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def format_glucose_row(record: LogRecord) -> FormattedRow:
    amount = float(record.amount)
    tag = record.tag or "N/A"
    return FormattedRow(
        display_values=(f"{amount:.1f} mg/dL", format_timestamp(record.timestamp), tag),
        severity_value=amount,
        severity_tag=tag,
    )


def format_calorie_row(record: LogRecord) -> FormattedRow:
    amount = float(record.amount)
    return FormattedRow(
        display_values=(f"{amount:.0f} kcal", format_timestamp(record.timestamp), record.label or "Unknown"),
    )


def format_sugar_row(record: LogRecord) -> FormattedRow:
    amount = float(record.amount)
    return FormattedRow(
        display_values=(f"{amount:.1f} g", format_timestamp(record.timestamp), record.label or "Unknown"),
    )


_FORMATTERS = {
    Category.GLUCOSE: format_glucose_row,
    Category.CALORIE: format_calorie_row,
    Category.SUGAR: format_sugar_row,
}


def partition_records(records: Iterable[LogRecord]) -> Dict[Category, List[FormattedRow]]:
    """
    Format records and split them by category.

    Input order is preserved inside each category, so rows delivered in
    descending timestamp order stay that way.

    Args:
        records: Log records in display order

    Returns:
        Mapping with an entry (possibly empty) for every category
    """
    partitioned: Dict[Category, List[FormattedRow]] = {c: [] for c in CATEGORY_ORDER}
    for record in records:
        partitioned[record.category].append(_FORMATTERS[record.category](record))
    return partitioned


def is_alert(value: Optional[float], tag: Optional[str], thresholds: Optional[ThresholdProfile]) -> bool:
    """
    Decide whether a glucose reading is out of range.

    Checks run in a fixed order and the first match wins:
    below low, at/above very high, post-meal at/above its limit,
    fasting-type tag at/above the fasting limit. Tags outside the
    known set are only ever flagged by the first two checks.
    """
    if thresholds is None or value is None:
        return False
    if thresholds.low is not None and value < thresholds.low:
        return True
    if thresholds.very_high is not None and value >= thresholds.very_high:
        return True
    if tag == POST_MEAL_TAG and thresholds.high_post_meal is not None and value >= thresholds.high_post_meal:
        return True
    if tag in FASTING_TAGS and thresholds.high_fasting is not None and value >= thresholds.high_fasting:
        return True
    return False
