from datetime import date, datetime
from typing import Optional, List

from pydantic import BaseModel, Field

from app.models.enums import BillType
from app.schemas.category import CategoryBrief
from app.schemas.common import PaginatedResponse
from app.schemas.user import UserBrief


class BillCreate(BaseModel):
    ledger_id: str
    category_id: str
    amount: float = Field(..., gt=0)
    type: BillType
    note: Optional[str] = None
    bill_date: date


class BillUpdate(BaseModel):
    category_id: Optional[str] = None
    amount: Optional[float] = Field(None, gt=0)
    type: Optional[BillType] = None
    note: Optional[str] = None
    bill_date: Optional[date] = None


class BillResponse(BaseModel):
    id: str
    ledger_id: str
    type: BillType
    amount: float
    category: CategoryBrief
    note: Optional[str] = None
    bill_date: date
    user: UserBrief
    created_at: datetime


class BillListResponse(BaseModel):
    items: List[BillResponse]
    pagination: PaginatedResponse
