"""
Date normalization for spreadsheet cells.

Handles:
- Spreadsheet serial dates (day count from 1899-12-30)
- DD.MM.YYYY strings (day first, as typed by the planners)
- date / datetime / pandas Timestamp cells (pandas reads Excel dates this way)
- Anything else pandas can parse

Formatting helpers render dates and standard times for display only;
comparisons always use the normalized ``datetime.date``.
"""

import math
import numbers
from datetime import date, datetime, timedelta
from typing import Optional

import pandas as pd

from config import prioritizer as config

SERIAL_EPOCH = date(*config.SERIAL_DATE_EPOCH)


def is_blank(value) -> bool:
    """True for None, NaN/NaT and empty or whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _as_number(value) -> Optional[float]:
    """Return value as a finite float if it is a pure number, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _from_dotted(text: str) -> Optional[date]:
    parts = text.strip().split(".")
    if len(parts) != 3:
        return None
    try:
        day, month, year = (int(p) for p in parts)
    except ValueError:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        return None


def serial_to_date(serial: float) -> Optional[date]:
    """
    Convert a spreadsheet serial day count to a calendar date.

    The fractional part (time of day) is dropped.
    """
    try:
        return SERIAL_EPOCH + timedelta(days=math.floor(serial))
    except (OverflowError, ValueError):
        return None


def normalize_date(value) -> Optional[date]:
    """
    Normalize a raw cell value to a calendar date.

    Args:
        value: Raw cell value (number, string, date, datetime or empty)

    Returns:
        ``datetime.date`` or None when the value is empty or unparseable
    """
    if is_blank(value):
        return None

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    number = _as_number(value)
    if number is not None:
        return serial_to_date(number)

    text = str(value).strip()
    if text.count(".") == 2:
        dotted = _from_dotted(text)
        if dotted is not None or all(p.strip().isdigit() for p in text.split(".")):
            return dotted

    try:
        parsed = pd.to_datetime(text, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if parsed is None or pd.isna(parsed):
        return None
    return parsed.date()


def format_date(value: Optional[date]) -> str:
    """Render a date in the display locale (d.m.yyyy); empty for None."""
    if value is None:
        return ""
    return config.DISPLAY_DATE_FORMAT.format(day=value.day, month=value.month, year=value.year)


def format_date_cell(value) -> str:
    """Format a raw date cell for display, passing unparseable text through."""
    if is_blank(value):
        return ""
    normalized = normalize_date(value)
    if normalized is None:
        return str(value)
    return format_date(normalized)


def format_standard_time(value) -> str:
    """
    Render a standard-time cell as H:MM.

    Values between 0 and 1 are fractions of a day (Excel time cells),
    anything larger is a number of hours. Decimal commas are accepted.
    """
    if is_blank(value):
        return ""
    text = str(value)
    try:
        number = float(text.replace(",", "."))
    except ValueError:
        return text
    if not math.isfinite(number):
        return text

    if 0 <= number <= 1:
        total_hours = number * 24
    else:
        total_hours = number
    hours = math.floor(total_hours)
    minutes = round((total_hours - hours) * 60)
    if minutes == 60:
        hours += 1
        minutes = 0
    return f"{hours}:{minutes:02d}"
