"""
Date conversions between the storage format (YYYY-MM-DD) and the
register request format (DD-MMM-YY, e.g. 20-FEB-26).
"""

from datetime import datetime, date, timezone

MONTHS = ["JAN", "FEB", "MAR", "APR", "MAY", "JUN",
          "JUL", "AUG", "SEP", "OCT", "NOV", "DEC"]


def today_utc() -> date:
    """Current calendar date in UTC."""
    return datetime.now(timezone.utc).date()


def parse_iso_date(date_str: str) -> date:
    """Parse YYYY-MM-DD string to date object."""
    return datetime.strptime(date_str.strip(), "%Y-%m-%d").date()


def format_register_date(value: date) -> str:
    """Format a date as DD-MMM-YY for the register request."""
    return f"{value.day:02d}-{MONTHS[value.month - 1]}-{value.year % 100:02d}"


def to_register_date(date_str: str) -> str:
    """Convert YYYY-MM-DD to DD-MMM-YY."""
    return format_register_date(parse_iso_date(date_str))


def parse_register_date(register_date: str) -> date:
    """Parse DD-MMM-YY (month case-insensitive) back to a date."""
    parts = register_date.strip().split("-")
    if len(parts) != 3:
        raise ValueError(f"Invalid register date: {register_date!r}")

    day, month, year = parts
    try:
        month_index = MONTHS.index(month.upper()) + 1
    except ValueError:
        raise ValueError(f"Invalid register month: {month!r}") from None

    if not (day.isdigit() and year.isdigit() and len(year) == 2):
        raise ValueError(f"Invalid register date: {register_date!r}")

    return date(2000 + int(year), month_index, int(day))
