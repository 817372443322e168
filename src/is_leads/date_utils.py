"""
Date validation and utility functions for IS Lead tools.

Dates travel as YYYY-MM-DD strings. For that format string comparison is the
same as chronological comparison, so period checks never parse the values.
"""

import logging
from datetime import date, datetime
from typing import Optional, Tuple

from .errors import ValidationError

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"


def today_iso() -> str:
    """Return today's date as YYYY-MM-DD."""
    return date.today().isoformat()


def validate_date(value: Optional[str], field: str = "date") -> Optional[str]:
    """
    Validate a YYYY-MM-DD date string.

    Args:
        value: Date string, or None/blank for "not provided"
        field: Field name used in the error message

    Returns:
        The stripped date string, or None

    Raises:
        ValidationError: If the value is not a valid YYYY-MM-DD date
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(
            f"Invalid {field}: {value!r}. Expected a YYYY-MM-DD string."
        )
    value = value.strip()
    if not value:
        return None

    try:
        parsed = datetime.strptime(value, DATE_FORMAT)
    except ValueError:
        raise ValidationError(
            f"Invalid {field}: {value!r}. Please use YYYY-MM-DD format."
        )

    # strptime accepts "2024-1-5"; only the zero-padded form sorts correctly
    if parsed.strftime(DATE_FORMAT) != value:
        raise ValidationError(
            f"Invalid {field}: {value!r}. Please use YYYY-MM-DD format."
        )
    return value


def validate_period(
    start_date: Optional[str] = None,
    end_date: Optional[str] = None
) -> Tuple[Optional[str], Optional[str]]:
    """
    Validate an optional inclusive date range.

    Either bound may be omitted to mean unbounded.

    Returns:
        (start_date, end_date) with blanks normalized to None

    Raises:
        ValidationError: If a bound is malformed or start_date > end_date
    """
    start_date = validate_date(start_date, "startDate")
    end_date = validate_date(end_date, "endDate")

    if start_date and end_date and start_date > end_date:
        raise ValidationError(
            f"Start date ({start_date}) must be before end date ({end_date})"
        )

    logger.debug("Using period: %s to %s", start_date or "Beginning", end_date or "Now")
    return start_date, end_date


def in_period(
    value: Optional[str],
    start_date: Optional[str] = None,
    end_date: Optional[str] = None
) -> bool:
    """
    Check whether a date falls inside an inclusive range.

    With no bounds every value matches, including None. With at least one
    bound a missing value never matches.
    """
    if not start_date and not end_date:
        return True
    if not value:
        return False
    if start_date and value < start_date:
        return False
    if end_date and value > end_date:
        return False
    return True
