import logging
from collections import defaultdict
from datetime import date, timedelta
from typing import Optional, List, Dict, Protocol

from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import StorageError
from app.db.repositories.bill_repo import BillFilter, BillStore
from app.models.bill import Bill
from app.models.category import Category
from app.models.enums import BillType, StatisticsPeriod, TrendGranularity
from app.schemas.statistics import (
    SummaryStatistics,
    CategoryStatistic,
    DailyStatistic,
    TrendStatistic,
    BillStatisticsResponse,
    FullStatisticsResponse,
)

logger = logging.getLogger(__name__)

UNKNOWN_CATEGORY_NAME = "Unknown"


class CategoryLookup(Protocol):
    async def get_by_id(self, category_id: str) -> Optional[Category]: ...


def period_label(day: date, granularity: TrendGranularity) -> str:
    """Label of the trend bucket containing day.

    Labels are zero-padded so that string order is chronological order.
    Weeks use the ISO week-numbering year, which differs from the calendar
    year for some days around New Year.
    """
    if granularity is TrendGranularity.DAY:
        return f"{day.year:04d}-{day.month:02d}-{day.day:02d}"
    if granularity is TrendGranularity.WEEK:
        iso_year, iso_week, _ = day.isocalendar()
        return f"{iso_year:04d}-W{iso_week:02d}"
    if granularity is TrendGranularity.YEAR:
        return f"{day.year:04d}"
    return f"{day.year:04d}-{day.month:02d}"


class StatisticsService:
    """Read-side projections over a ledger's bills.

    Every view loads its own bill set through the store; nothing is cached
    between calls. Ledger access must be checked before calling in.
    """

    def __init__(self, bills: BillStore, categories: CategoryLookup):
        self.bills = bills
        self.categories = categories

    async def _load(self, bill_filter: BillFilter) -> List[Bill]:
        try:
            return await self.bills.find_all(bill_filter)
        except SQLAlchemyError as e:
            logger.error(f"Loading bills for ledger {bill_filter.ledger_id} failed: {e}")
            raise StorageError("Failed to load bills", details={"error": str(e)}) from e

    async def _lookup_category(self, category_id: str) -> Optional[Category]:
        try:
            return await self.categories.get_by_id(category_id)
        except SQLAlchemyError as e:
            logger.error(f"Loading category {category_id} failed: {e}")
            raise StorageError("Failed to load categories", details={"error": str(e)}) from e

    async def get_summary(
        self,
        ledger_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> SummaryStatistics:
        """Total income, total expense and balance. Missing bounds mean all-time."""
        bills = await self._load(
            BillFilter(ledger_id=ledger_id, start_date=start_date, end_date=end_date)
        )

        total_income = sum(b.amount for b in bills if b.bill_type == BillType.INCOME)
        total_expense = sum(b.amount for b in bills if b.bill_type == BillType.EXPENSE)

        return SummaryStatistics(
            total_income=total_income,
            total_expense=total_expense,
            balance=total_income - total_expense,
        )

    async def get_category_statistics(
        self,
        ledger_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        bill_type: Optional[BillType] = None,
    ) -> List[CategoryStatistic]:
        """Per-category totals for one bill type, largest amount first.

        Without a type the breakdown covers expenses. Names and icons are read
        from the current category; a deleted category falls back to the name
        stored on its most recent bill and no icon.
        """
        target_type = bill_type or BillType.EXPENSE
        bills = await self._load(
            BillFilter(
                ledger_id=ledger_id,
                start_date=start_date,
                end_date=end_date,
                bill_type=target_type,
            )
        )

        # Insertion order doubles as the tie-break order for equal amounts
        category_data: Dict[str, dict] = {}
        for bill in bills:
            data = category_data.setdefault(
                bill.category_id, {"amount": 0.0, "count": 0, "last_name": None}
            )
            data["amount"] += bill.amount
            data["count"] += 1
            if bill.category_name:
                data["last_name"] = bill.category_name

        total = sum(data["amount"] for data in category_data.values())

        result = []
        for category_id, data in category_data.items():
            percentage = (data["amount"] / total * 100) if total > 0 else 0.0
            category = await self._lookup_category(category_id)
            if category is not None:
                name, icon = category.name, category.icon
            else:
                logger.debug(f"Category {category_id} no longer exists, using last-known name")
                name, icon = data["last_name"] or UNKNOWN_CATEGORY_NAME, None

            result.append(
                CategoryStatistic(
                    category_id=category_id,
                    category_name=name,
                    category_icon=icon,
                    type=target_type,
                    amount=data["amount"],
                    count=data["count"],
                    percentage=percentage,
                )
            )

        # Stable sort keeps encounter order for ties
        result.sort(key=lambda x: x.amount, reverse=True)
        return result

    async def get_daily_statistics(
        self,
        ledger_id: str,
        start_date: date,
        end_date: date,
    ) -> List[DailyStatistic]:
        """One row per calendar day in [start_date, end_date], including empty days."""
        # Never steps past end_date, which may be date.max
        daily: Dict[date, Dict[str, float]] = {
            start_date + timedelta(days=offset): {"income": 0.0, "expense": 0.0}
            for offset in range((end_date - start_date).days + 1)
        }

        if not daily:
            return []

        bills = await self._load(
            BillFilter(ledger_id=ledger_id, start_date=start_date, end_date=end_date)
        )
        for bill in bills:
            bucket = daily[bill.bill_date]
            if bill.bill_type == BillType.INCOME:
                bucket["income"] += bill.amount
            else:
                bucket["expense"] += bill.amount

        return [
            DailyStatistic(
                date=day,
                income=totals["income"],
                expense=totals["expense"],
            )
            for day, totals in daily.items()
        ]

    async def get_trend_statistics(
        self,
        ledger_id: str,
        start_date: date,
        end_date: date,
        granularity: TrendGranularity = TrendGranularity.MONTH,
    ) -> List[TrendStatistic]:
        """Income, expense and balance per period bucket. Only buckets with bills appear."""
        bills = await self._load(
            BillFilter(ledger_id=ledger_id, start_date=start_date, end_date=end_date)
        )

        trend_data = defaultdict(lambda: {"income": 0.0, "expense": 0.0})
        for bill in bills:
            bucket = trend_data[period_label(bill.bill_date, granularity)]
            if bill.bill_type == BillType.INCOME:
                bucket["income"] += bill.amount
            else:
                bucket["expense"] += bill.amount

        return [
            TrendStatistic(
                period=label,
                income=totals["income"],
                expense=totals["expense"],
                balance=totals["income"] - totals["expense"],
            )
            for label, totals in sorted(trend_data.items())
        ]

    async def get_full_statistics(
        self,
        ledger_id: str,
        period: StatisticsPeriod,
        start_date: date,
        end_date: date,
        bill_type: Optional[BillType] = None,
    ) -> FullStatisticsResponse:
        """Summary with category breakdown, daily series and trend series for one range.

        The trend granularity follows the period (see StatisticsPeriod.trend_granularity).
        """
        summary = await self.get_summary(ledger_id, start_date, end_date)
        by_category = await self.get_category_statistics(
            ledger_id, start_date, end_date, bill_type
        )
        daily = await self.get_daily_statistics(ledger_id, start_date, end_date)
        trend = await self.get_trend_statistics(
            ledger_id, start_date, end_date, period.trend_granularity()
        )

        return FullStatisticsResponse(
            summary=BillStatisticsResponse(
                **summary.model_dump(),
                by_category=by_category,
            ),
            daily=daily,
            trend=trend,
        )
