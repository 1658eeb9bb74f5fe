"""
Date parsing shared by the date-range filter and the date sort.

Sales exports carry dates as free text. A value is read as an ISO date
(``YYYY-MM-DD``, optionally with a time part) first; otherwise it is split on
``/`` or ``-`` into three numbers, read year-month-day when the first part has
four digits and day-month-year otherwise. Anything else is unparseable and
comes back as ``None``.
"""

import re
from datetime import date, datetime
from typing import Optional, Union

FAR_PAST = date.min
FAR_FUTURE = date.max

_SEPARATOR = re.compile(r"[/-]")


def parse_sale_date(value: Union[str, date, None]) -> Optional[date]:
    """Parse a sale date, returning None when it cannot be read."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None

    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass

    parts = [part.strip() for part in _SEPARATOR.split(text)]
    if len(parts) != 3 or not all(part.isascii() and part.isdigit() for part in parts):
        return None

    if len(parts[0]) == 4:
        year, month, day = (int(part) for part in parts)
    else:
        day, month, year = (int(part) for part in parts)

    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_date_bound(value: Optional[str], default: date) -> date:
    """Parse a range bound, falling back to ``default`` when missing or invalid."""
    parsed = parse_sale_date(value)
    return parsed if parsed is not None else default
