from datetime import date
from typing import List, Optional

from pydantic import BaseModel

from app.models.enums import BillType


class SummaryStatistics(BaseModel):
    total_income: float = 0.0
    total_expense: float = 0.0
    balance: float = 0.0


class CategoryStatistic(BaseModel):
    """Amount booked on one category, as a share of its bill type's total."""
    category_id: str
    category_name: str
    category_icon: Optional[str] = None
    type: BillType
    amount: float
    count: int
    percentage: float  # 0-100


class DailyStatistic(BaseModel):
    date: date
    income: float = 0.0
    expense: float = 0.0


class TrendStatistic(BaseModel):
    period: str  # "2025-03-07", "2025-W09", "2025-03" or "2025"
    income: float
    expense: float
    balance: float


class BillStatisticsResponse(SummaryStatistics):
    """Summary totals with the category breakdown."""
    by_category: List[CategoryStatistic]


class FullStatisticsResponse(BaseModel):
    summary: BillStatisticsResponse
    daily: List[DailyStatistic]
    trend: List[TrendStatistic]
