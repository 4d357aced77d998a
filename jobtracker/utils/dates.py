from __future__ import annotations
import datetime as dt
import re
from typing import Any, Optional
import dateparser

from ..errors import ValidationError

DATE_FORMAT = "%Y-%m-%d"
_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def today() -> dt.date:
    """Current calendar date in UTC."""
    return dt.datetime.now(dt.timezone.utc).date()


def to_date_only(value: Any) -> Optional[dt.date]:
    """Normalize a stored or decoded value to a plain calendar date.

    None and "" mean unset. Datetimes are truncated to their UTC date (naive
    values are taken as UTC). Strings must be exactly YYYY-MM-DD.
    """
    if value is None or value == "":
        return None
    if isinstance(value, dt.datetime):
        if value.tzinfo is not None:
            value = value.astimezone(dt.timezone.utc)
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        if not _DATE_RE.fullmatch(value):
            raise ValidationError(f"Invalid date {value!r}, expected YYYY-MM-DD")
        try:
            return dt.datetime.strptime(value, DATE_FORMAT).date()
        except ValueError as exc:
            raise ValidationError(f"Invalid date {value!r}, expected YYYY-MM-DD") from exc
    raise ValidationError(f"Cannot read {type(value).__name__} as a date")


def format_date_only(value: Optional[dt.date]) -> Optional[str]:
    if value is None:
        return None
    return value.strftime(DATE_FORMAT)


def parse_date(value: Optional[str]) -> dt.date:
    """Parse a free-form date string or return today when value is empty/None."""
    if value is None or value == "":
        return today()
    parsed = dateparser.parse(value, settings={"TIMEZONE": "UTC", "RETURN_AS_TIMEZONE_AWARE": False})
    if not parsed:
        raise ValidationError(f"Could not parse date: {value}")
    return parsed.date()
