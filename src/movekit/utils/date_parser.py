"""Date parsing utilities."""

import re
from datetime import date, timedelta
from dateutil import parser as date_parser

ISO_DATE = re.compile(r"\d{4}-")
WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


def parse_date(date_str: str, dayfirst: bool = True) -> date:
    """Parse a movement date.

    Supports:
    - ISO dates: "2024-01-15"
    - Day-first dates as written on receipts: "15/01/2024"
    - Relative dates: "today", "yesterday", "tomorrow", "last friday"

    Args:
        date_str: Date string
        dayfirst: Read ambiguous numeric dates as day/month/year

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    value = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if value in relative_dates:
        return relative_dates[value]

    if value.startswith("last ") and value[5:] in WEEKDAYS:
        days_ago = (today.weekday() - WEEKDAYS.index(value[5:])) % 7 or 7
        return today - timedelta(days=days_ago)

    try:
        # ISO input is unambiguous; dayfirst only applies to the rest
        return date_parser.parse(value, dayfirst=dayfirst and not ISO_DATE.match(value)).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}") from e
