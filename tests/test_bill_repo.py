"""Tests for the SQL bill store."""
from datetime import date

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repositories.bill_repo import BillRepository, BillFilter
from app.db.repositories.ledger_repo import LedgerRepository
from app.models.bill import Bill
from app.models.category import Category
from app.models.enums import BillType
from app.models.ledger import Ledger
from app.models.user import User


@pytest.mark.asyncio
async def test_find_by_filter_orders_and_counts(
    test_session: AsyncSession, personal_ledger: Ledger, test_bills: list[Bill]
):
    repo = BillRepository(test_session)

    page, total = await repo.find_by_filter(
        BillFilter(ledger_id=personal_ledger.id, page=1, page_size=3)
    )
    assert total == 5
    assert [b.bill_date for b in page] == [date(2025, 3, 14), date(2025, 3, 10), date(2025, 3, 3)]

    page, total = await repo.find_by_filter(
        BillFilter(ledger_id=personal_ledger.id, page=3, page_size=3)
    )
    assert page == []
    assert total == 5


@pytest.mark.asyncio
async def test_date_bounds_are_inclusive(
    test_session: AsyncSession, personal_ledger: Ledger, test_bills: list[Bill]
):
    bills = await BillRepository(test_session).find_all(
        BillFilter(
            ledger_id=personal_ledger.id,
            start_date=date(2025, 3, 3),
            end_date=date(2025, 3, 10),
        )
    )
    assert [b.bill_date for b in bills] == [date(2025, 3, 3), date(2025, 3, 10)]


@pytest.mark.asyncio
async def test_find_all_matches_memory_filter(
    test_session: AsyncSession, personal_ledger: Ledger, test_bills: list[Bill], food: Category
):
    bill_filter = BillFilter(
        ledger_id=personal_ledger.id,
        bill_type=BillType.EXPENSE,
        category_id=food.id,
        start_date=date(2025, 3, 1),
    )

    bills = await BillRepository(test_session).find_all(bill_filter)

    assert {b.id for b in bills} == {b.id for b in test_bills if bill_filter.matches(b)}
    assert len(bills) == 2


@pytest.mark.asyncio
async def test_create_update_delete(
    test_session: AsyncSession, test_user: User, personal_ledger: Ledger, food: Category
):
    repo = BillRepository(test_session)

    bill = await repo.create(
        ledger_id=personal_ledger.id,
        category_id=food.id,
        category_name=food.name,
        user_id=test_user.id,
        bill_type=BillType.EXPENSE,
        amount=9.99,
        bill_date=date(2025, 3, 1),
    )
    assert bill.id is not None
    assert bill.created_at is not None

    updated = await repo.update(bill.id, amount=19.99, note="dinner")
    assert updated.amount == 19.99
    assert updated.note == "dinner"
    assert updated.bill_date == date(2025, 3, 1)

    assert await repo.delete(bill.id) is True
    assert await repo.get_by_id(bill.id) is None
    assert await repo.delete(bill.id) is False
    assert await repo.update(bill.id, amount=1) is None


@pytest.mark.asyncio
async def test_deleting_ledger_removes_its_bills(
    test_session: AsyncSession, personal_ledger: Ledger, test_bills: list[Bill]
):
    await LedgerRepository(test_session).delete(personal_ledger.id)

    page, total = await BillRepository(test_session).find_by_filter(
        BillFilter(ledger_id=personal_ledger.id)
    )
    assert total == 0
    assert page == []
