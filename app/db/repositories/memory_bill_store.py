import uuid
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from app.db.repositories.bill_repo import BillFilter
from app.models.bill import Bill
from app.models.enums import BillType


class MemoryBillStore:
    """Dict-backed bill store with the same query semantics as BillRepository.

    Backs the pure-logic tests of the statistics service, which run without
    a database session.
    """

    def __init__(self, bills: Optional[List[Bill]] = None):
        self._bills: Dict[str, Bill] = {}
        for bill in bills or []:
            self._add(bill)

    def _add(self, bill: Bill) -> Bill:
        now = datetime.now(timezone.utc)
        if bill.id is None:
            bill.id = str(uuid.uuid4())
        if bill.created_at is None:
            bill.created_at = now
        self._bills[bill.id] = bill
        return bill

    async def get_by_id(self, bill_id: str) -> Optional[Bill]:
        return self._bills.get(bill_id)

    def _matching(self, bill_filter: BillFilter) -> List[Bill]:
        return [b for b in self._bills.values() if bill_filter.matches(b)]

    async def find_by_filter(self, bill_filter: BillFilter) -> tuple[List[Bill], int]:
        matching = self._matching(bill_filter)
        # Two stable passes: newest created first within a date, newest date first overall
        matching.sort(key=lambda b: b.created_at, reverse=True)
        matching.sort(key=lambda b: b.bill_date, reverse=True)

        total = len(matching)
        start = bill_filter.offset
        if start >= total:
            return [], total
        return matching[start:start + bill_filter.page_size], total

    async def find_all(self, bill_filter: BillFilter) -> List[Bill]:
        matching = self._matching(bill_filter)
        matching.sort(key=lambda b: b.bill_date)
        return matching

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
        return self._add(
            Bill(
                ledger_id=ledger_id,
                category_id=category_id,
                category_name=category_name,
                user_id=user_id,
                bill_type=bill_type,
                amount=amount,
                note=note,
                bill_date=bill_date,
            )
        )

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
        bill = self._bills.get(bill_id)
        if bill is None:
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
        bill.updated_at = datetime.now(timezone.utc)
        return bill

    async def delete(self, bill_id: str) -> bool:
        return self._bills.pop(bill_id, None) is not None
