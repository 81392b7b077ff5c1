from dataclasses import dataclass
from datetime import date
from typing import Optional, List, Protocol

from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.bill import Bill
from app.models.enums import BillType


@dataclass
class BillFilter:
    """Filter description shared by every bill store.

    Date bounds are inclusive. Pages are 1-based; a page past the end is
    empty but leaves the total count untouched.
    """

    ledger_id: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    bill_type: Optional[BillType] = None
    category_id: Optional[str] = None
    page: int = 1
    page_size: int = 20

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def matches(self, bill: Bill) -> bool:
        if bill.ledger_id != self.ledger_id:
            return False
        if self.start_date is not None and bill.bill_date < self.start_date:
            return False
        if self.end_date is not None and bill.bill_date > self.end_date:
            return False
        if self.bill_type is not None and bill.bill_type != self.bill_type:
            return False
        if self.category_id is not None and bill.category_id != self.category_id:
            return False
        return True


class BillStore(Protocol):
    """Query interface the statistics service is written against."""

    async def create(
        self,
        ledger_id: str,
        category_id: str,
        user_id: str,
        bill_type: BillType,
        amount: float,
        bill_date: date,
        note: Optional[str] = None,
        category_name: Optional[str] = None,
    ) -> Bill: ...

    async def get_by_id(self, bill_id: str) -> Optional[Bill]: ...

    async def find_by_filter(self, bill_filter: BillFilter) -> tuple[List[Bill], int]: ...

    async def find_all(self, bill_filter: BillFilter) -> List[Bill]: ...

    async def update(
        self,
        bill_id: str,
        category_id: Optional[str] = None,
        category_name: Optional[str] = None,
        bill_type: Optional[BillType] = None,
        amount: Optional[float] = None,
        note: Optional[str] = None,
        bill_date: Optional[date] = None,
    ) -> Optional[Bill]: ...

    async def delete(self, bill_id: str) -> bool: ...


class BillRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _conditions(bill_filter: BillFilter) -> list:
        conditions = [Bill.ledger_id == bill_filter.ledger_id]

        if bill_filter.start_date is not None:
            conditions.append(Bill.bill_date >= bill_filter.start_date)
        if bill_filter.end_date is not None:
            conditions.append(Bill.bill_date <= bill_filter.end_date)
        if bill_filter.bill_type is not None:
            conditions.append(Bill.bill_type == bill_filter.bill_type)
        if bill_filter.category_id is not None:
            conditions.append(Bill.category_id == bill_filter.category_id)

        return conditions

    async def get_by_id(self, bill_id: str) -> Optional[Bill]:
        """Get bill by ID."""
        result = await self.db.execute(select(Bill).where(Bill.id == bill_id))
        return result.scalar_one_or_none()

    async def find_by_filter(self, bill_filter: BillFilter) -> tuple[List[Bill], int]:
        """Get one page of bills matching the filter, plus the total match count."""
        conditions = self._conditions(bill_filter)

        count_result = await self.db.execute(
            select(func.count(Bill.id)).where(and_(*conditions))
        )
        total = count_result.scalar() or 0

        result = await self.db.execute(
            select(Bill)
            .where(and_(*conditions))
            .order_by(Bill.bill_date.desc(), Bill.created_at.desc(), Bill.id)
            .offset(bill_filter.offset)
            .limit(bill_filter.page_size)
        )
        bills = list(result.scalars().all())

        return bills, total

    async def find_all(self, bill_filter: BillFilter) -> List[Bill]:
        """Get every bill matching the filter, oldest first. Pagination is ignored."""
        result = await self.db.execute(
            select(Bill)
            .where(and_(*self._conditions(bill_filter)))
            .order_by(Bill.bill_date, Bill.created_at, Bill.id)
        )
        return list(result.scalars().all())

    async def create(
        self,
        ledger_id: str,
        category_id: str,
        user_id: str,
        bill_type: BillType,
        amount: float,
        bill_date: date,
        note: Optional[str] = None,
        category_name: Optional[str] = None,
    ) -> Bill:
        """Create a new bill."""
        bill = Bill(
            ledger_id=ledger_id,
            category_id=category_id,
            category_name=category_name,
            user_id=user_id,
            bill_type=bill_type,
            amount=amount,
            note=note,
            bill_date=bill_date,
        )
        self.db.add(bill)
        await self.db.flush()
        await self.db.refresh(bill)
        return bill

    async def update(
        self,
        bill_id: str,
        category_id: Optional[str] = None,
        category_name: Optional[str] = None,
        bill_type: Optional[BillType] = None,
        amount: Optional[float] = None,
        note: Optional[str] = None,
        bill_date: Optional[date] = None,
    ) -> Optional[Bill]:
        """Update a bill. Fields left as None are unchanged."""
        bill = await self.get_by_id(bill_id)
        if not bill:
            return None

        if category_id is not None:
            bill.category_id = category_id
        if category_name is not None:
            bill.category_name = category_name
        if bill_type is not None:
            bill.bill_type = bill_type
        if amount is not None:
            bill.amount = amount
        if note is not None:
            bill.note = note
        if bill_date is not None:
            bill.bill_date = bill_date

        await self.db.flush()
        await self.db.refresh(bill)
        return bill

    async def delete(self, bill_id: str) -> bool:
        """Delete a bill."""
        bill = await self.get_by_id(bill_id)
        if not bill:
            return False

        await self.db.delete(bill)
        await self.db.flush()
        return True
