import logging
from datetime import date
from typing import Optional, List

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_current_db_user, get_ledger_access, get_statistics_service, get_today
from app.models.enums import BillType, StatisticsPeriod, TrendGranularity
from app.models.user import User
from app.schemas.statistics import (
    CategoryStatistic,
    DailyStatistic,
    TrendStatistic,
    FullStatisticsResponse,
)
from app.services.date_range import resolve_date_range, parse_date_param, require_date_param
from app.services.ledger_access import LedgerAccessService
from app.services.statistics_service import StatisticsService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=FullStatisticsResponse)
async def get_statistics(
    ledger_id: str = Query(..., description="Ledger to aggregate"),
    start_date: Optional[str] = Query(None, description="Start date (YYYY-MM-DD), used with end_date"),
    end_date: Optional[str] = Query(None, description="End date (YYYY-MM-DD), used with start_date"),
    period: Optional[str] = Query(None, description="Period: day, week, month (default) or year"),
    bill_type: Optional[str] = Query(None, alias="type", description="Category breakdown type: income or expense (default)"),
    today: date = Depends(get_today),
    current_user: User = Depends(get_current_db_user),
    access: LedgerAccessService = Depends(get_ledger_access),
    statistics: StatisticsService = Depends(get_statistics_service),
):
    """
    Get the summary, category breakdown, daily series and trend series of a ledger.

    With both start_date and end_date the range is explicit; otherwise it is the
    current day, week (Monday-Sunday), month or year. Unknown period keywords,
    and explicit dates that fail to parse, fall back to the last 30 days.
    Trends are grouped per day, except for year views which are grouped per month.
    """
    logger.info(
        f"Statistics raw params: ledger_id={ledger_id}, period={period}, "
        f"start_date={start_date}, end_date={end_date}, type={bill_type}"
    )

    ledger = await access.get_readable_ledger(ledger_id, current_user)

    resolved_period = StatisticsPeriod.from_param(period)
    start, end = resolve_date_range(resolved_period, start_date, end_date, today=today)

    logger.info(
        f"Statistics request: user_id={current_user.id}, ledger_id={ledger.id}, "
        f"period={resolved_period.value}, computed_start={start}, computed_end={end}"
    )

    result = await statistics.get_full_statistics(
        ledger_id=ledger.id,
        period=resolved_period,
        start_date=start,
        end_date=end,
        bill_type=BillType.from_param(bill_type),
    )

    logger.info(
        f"Statistics result: ledger_id={ledger.id}, total_income={result.summary.total_income}, "
        f"total_expense={result.summary.total_expense}, days={len(result.daily)}"
    )

    return result


@router.get("/category", response_model=List[CategoryStatistic])
async def get_category_statistics(
    ledger_id: str = Query(..., description="Ledger to aggregate"),
    start_date: Optional[str] = Query(None, description="Optional start date (YYYY-MM-DD)"),
    end_date: Optional[str] = Query(None, description="Optional end date (YYYY-MM-DD)"),
    bill_type: Optional[str] = Query(None, alias="type", description="income or expense (default)"),
    current_user: User = Depends(get_current_db_user),
    access: LedgerAccessService = Depends(get_ledger_access),
    statistics: StatisticsService = Depends(get_statistics_service),
):
    """
    Get amount, count and percentage per category, largest first.

    Missing or malformed dates leave that side of the range open.
    """
    ledger = await access.get_readable_ledger(ledger_id, current_user)

    return await statistics.get_category_statistics(
        ledger_id=ledger.id,
        start_date=parse_date_param(start_date),
        end_date=parse_date_param(end_date),
        bill_type=BillType.from_param(bill_type),
    )


@router.get("/daily", response_model=List[DailyStatistic])
async def get_daily_statistics(
    ledger_id: str = Query(..., description="Ledger to aggregate"),
    start_date: Optional[str] = Query(None, description="Start date (YYYY-MM-DD), required"),
    end_date: Optional[str] = Query(None, description="End date (YYYY-MM-DD), required"),
    current_user: User = Depends(get_current_db_user),
    access: LedgerAccessService = Depends(get_ledger_access),
    statistics: StatisticsService = Depends(get_statistics_service),
):
    """Get income and expense for every day of the range, including days without bills."""
    ledger = await access.get_readable_ledger(ledger_id, current_user)
    start = require_date_param(start_date, "start_date")
    end = require_date_param(end_date, "end_date")

    return await statistics.get_daily_statistics(ledger.id, start, end)


@router.get("/trend", response_model=List[TrendStatistic])
async def get_trend_statistics(
    ledger_id: str = Query(..., description="Ledger to aggregate"),
    start_date: Optional[str] = Query(None, description="Start date (YYYY-MM-DD), required"),
    end_date: Optional[str] = Query(None, description="End date (YYYY-MM-DD), required"),
    group_by: Optional[str] = Query(None, description="Granularity: day, week, month (default) or year"),
    current_user: User = Depends(get_current_db_user),
    access: LedgerAccessService = Depends(get_ledger_access),
    statistics: StatisticsService = Depends(get_statistics_service),
):
    """
    Get income, expense and balance per period.

    Labels are YYYY-MM-DD, YYYY-Www (ISO week), YYYY-MM or YYYY. Only periods
    with bills are returned, oldest first.
    """
    ledger = await access.get_readable_ledger(ledger_id, current_user)
    start = require_date_param(start_date, "start_date")
    end = require_date_param(end_date, "end_date")

    return await statistics.get_trend_statistics(
        ledger.id, start, end, TrendGranularity.from_param(group_by)
    )
