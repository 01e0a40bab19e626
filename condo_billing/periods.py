"""Calendar helpers for billing periods.

Due dates and payment dates are plain ``date`` values in the building's
local time zone. Instants are ``datetime`` values; naive datetimes are
interpreted as UTC before being converted to the building zone.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil.relativedelta import relativedelta

DEFAULT_TIMEZONE = "America/Sao_Paulo"


def utcnow() -> datetime:
    """Current instant, timezone-aware in UTC."""
    return datetime.now(timezone.utc)


def get_zone(name: str) -> ZoneInfo:
    """Resolve an IANA time zone name.

    Raises
    ------
    ValueError
        If the zone is unknown.
    """
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown time zone: {name!r}") from exc


def local_date(at: datetime | date, tz: str | ZoneInfo = DEFAULT_TIMEZONE) -> date:
    """Calendar date of ``at`` as seen in ``tz``."""
    if isinstance(at, datetime):
        zone = get_zone(tz) if isinstance(tz, str) else tz
        if at.tzinfo is None:
            at = at.replace(tzinfo=timezone.utc)
        return at.astimezone(zone).date()
    return at


def validate_period(month: int, year: int) -> None:
    """Reject months outside 1-12 and non-positive years."""
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    if year < 1:
        raise ValueError(f"Year must be positive, got {year}")


def due_date_for(year: int, month: int, due_day: int) -> date:
    """Due date for a billing period.

    ``due_day`` is clamped to the last day of the month, so day 31 in
    February 2024 gives 2024-02-29.
    """
    validate_period(month, year)
    if not 1 <= due_day <= 31:
        raise ValueError(f"Due day must be between 1 and 31, got {due_day}")
    return date(year, month, 1) + relativedelta(day=due_day)


def one_month_before(day: date) -> date:
    """Same day-of-month one calendar month earlier, clamped to month end."""
    return day - relativedelta(months=1)
