from enum import Enum
from typing import Optional


class BillType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"

    @classmethod
    def from_param(cls, value: Optional[str]) -> Optional["BillType"]:
        """Map a query parameter to a bill type.

        Absent or unrecognised values map to None, which callers treat as
        "no type filter" (or apply their own endpoint default).
        """
        if value is None:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


class TrendGranularity(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"

    @classmethod
    def from_param(cls, value: Optional[str]) -> "TrendGranularity":
        """Absent or unrecognised group_by values group by month."""
        if value is None:
            return cls.MONTH
        try:
            return cls(value)
        except ValueError:
            return cls.MONTH


class StatisticsPeriod(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    # Not accepted on the wire: the 30-day window ending today, used for
    # unrecognised period keywords.
    TRAILING = "trailing"

    @classmethod
    def from_param(cls, value: Optional[str]) -> "StatisticsPeriod":
        if value is None:
            return cls.MONTH
        if value in _CALENDAR_PERIODS:
            return cls(value)
        return cls.TRAILING

    def trend_granularity(self) -> TrendGranularity:
        """Granularity of the trend series shown alongside this period.

        Week and month views are charted per day; year views per month.
        """
        if self is StatisticsPeriod.YEAR:
            return TrendGranularity.MONTH
        return TrendGranularity.DAY


_CALENDAR_PERIODS = {"day", "week", "month", "year"}


class LedgerType(str, Enum):
    PERSONAL = "personal"
    GROUP = "group"


class GroupRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"

    @property
    def can_manage(self) -> bool:
        return self in (GroupRole.OWNER, GroupRole.ADMIN)
