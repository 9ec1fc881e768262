"""
Calendar arithmetic for deadline offsets.

Month steps clamp the day-of-month to the last valid day of the target
month (Aug 31 + 1 month = Sep 30, never Oct 1). Day steps are ordinary
calendar arithmetic, optionally counting business days only.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from dateutil.parser import isoparse
from dateutil.relativedelta import relativedelta

from deadline_engine.models import DateInput


def last_day_of_month(year: int, month: int) -> int:
    """Number of days in the given month (month is 1-12)."""
    return calendar.monthrange(year, month)[1]


def month_end(year: int, month: int) -> date:
    return date(year, month, last_day_of_month(year, month))


def clamped_date(year: int, month: int, day: int) -> date:
    """Build a date, clamping day to the end of the month."""
    return date(year, month, min(day, last_day_of_month(year, month)))


def add_months_clamped(anchor: date, months: int) -> date:
    """
    Add a signed number of months with day-of-month clamping.

    relativedelta normalizes the target year/month with floor division
    and clamps the day, so Jan 31 - 2 months lands on Nov 30 of the
    previous year.
    """
    if months == 0:
        return anchor
    return anchor + relativedelta(months=months)


def add_business_days(start: date, days: int) -> date:
    """Move a signed number of weekdays from start, skipping Sat/Sun."""
    current = start
    remaining = abs(days)
    step = timedelta(days=1 if days >= 0 else -1)
    while remaining > 0:
        # From a weekday, five business days is exactly one calendar week
        if remaining > 5 and current.weekday() < 5:
            weeks = (remaining - 1) // 5
            current += step * 7 * weeks
            remaining -= 5 * weeks
            continue
        current += step
        # Monday=0 ... Friday=4 are business days
        if current.weekday() < 5:
            remaining -= 1
    return current


def apply_offset(
    anchor: date,
    offset_months: int = 0,
    offset_days: int = 0,
    business_days: bool = False,
) -> date:
    """
    Apply a rule offset to an anchor date.

    Months first (clamped), then days. The day step may cross month and
    year boundaries normally.
    """
    shifted = add_months_clamped(anchor, offset_months or 0)
    if not offset_days:
        return shifted
    if business_days:
        return add_business_days(shifted, offset_days)
    return shifted + timedelta(days=offset_days)


def coerce_date(value: DateInput) -> Optional[date]:
    """
    Convert a raw date input to a calendar date, or None if unparseable.

    Timezone-aware datetimes are reduced to their UTC calendar day.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = isoparse(value.strip())
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date()
