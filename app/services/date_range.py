"""
Date-range resolution for statistics requests.

A request names either an explicit inclusive range (start_date/end_date as
YYYY-MM-DD strings) or a period keyword relative to "today". The resolver is
a pure function of its inputs; "today" is passed in by the caller and defaults
to the current UTC date.
"""
import logging
import re
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from app.core.exceptions import ValidationError
from app.models.enums import StatisticsPeriod

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
TRAILING_WINDOW_DAYS = 30

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def parse_date_param(value: Optional[str]) -> Optional[date]:
    """Parse a strict YYYY-MM-DD string. Anything else yields None."""
    if not value or not _DATE_PATTERN.match(value):
        return None
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        return None


def require_date_param(value: Optional[str], field: str) -> date:
    """Parse a mandatory date parameter, raising ValidationError when malformed."""
    parsed = parse_date_param(value)
    if parsed is None:
        label = field.replace("_date", "")
        raise ValidationError(f"Invalid {label} date", details={"field": field, "value": value})
    return parsed


def trailing_window(today: date) -> tuple[date, date]:
    return today - timedelta(days=TRAILING_WINDOW_DAYS), today


def period_range(period: StatisticsPeriod, today: date) -> tuple[date, date]:
    """Calculate the inclusive calendar range of a period containing today."""
    if period is StatisticsPeriod.DAY:
        return today, today

    if period is StatisticsPeriod.WEEK:
        # ISO week: Monday to Sunday
        start = today - timedelta(days=today.weekday())
        return start, start + timedelta(days=6)

    if period is StatisticsPeriod.MONTH:
        start = today.replace(day=1)
        if today.month == 12:
            next_month = date(today.year + 1, 1, 1)
        else:
            next_month = date(today.year, today.month + 1, 1)
        return start, next_month - timedelta(days=1)

    if period is StatisticsPeriod.YEAR:
        return date(today.year, 1, 1), date(today.year, 12, 31)

    return trailing_window(today)


def resolve_date_range(
    period: StatisticsPeriod,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    today: Optional[date] = None,
) -> tuple[date, date]:
    """Resolve the inclusive range a statistics request aggregates over.

    Both explicit dates present and valid: used verbatim, even if inverted.
    Both present but either malformed: the 30-day trailing window.
    Otherwise: the calendar range of the period keyword.
    """
    if today is None:
        today = utc_today()

    if start_date is not None and end_date is not None:
        start, end = parse_date_param(start_date), parse_date_param(end_date)
        if start is not None and end is not None:
            return start, end
        logger.debug(
            f"Malformed explicit range start_date={start_date!r} end_date={end_date!r}, "
            f"using trailing {TRAILING_WINDOW_DAYS}-day window"
        )
        return trailing_window(today)

    return period_range(period, today)
