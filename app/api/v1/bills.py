import logging
from math import ceil
from typing import Optional, Dict

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_current_db_user, get_ledger_access
from app.config import get_settings
from app.core.exceptions import ResourceNotFoundError, PermissionDeniedError, ValidationError
from app.core.identifiers import parse_id, parse_optional_id
from app.db.repositories.bill_repo import BillRepository, BillFilter
from app.db.repositories.category_repo import CategoryRepository
from app.db.repositories.user_repo import UserRepository
from app.models.bill import Bill
from app.models.category import Category
from app.models.enums import BillType
from app.models.ledger import Ledger
from app.models.user import User
from app.schemas.bill import BillCreate, BillUpdate, BillResponse, BillListResponse
from app.schemas.category import CategoryBrief
from app.schemas.common import PaginatedResponse, MessageResponse
from app.schemas.user import UserBrief
from app.services.date_range import parse_date_param
from app.services.ledger_access import LedgerAccessService
from app.services.statistics_service import UNKNOWN_CATEGORY_NAME

logger = logging.getLogger(__name__)

settings = get_settings()

router = APIRouter()


class _BillPresenter:
    """Builds bill responses, resolving category and creator once per request."""

    def __init__(self, db: AsyncSession):
        self.category_repo = CategoryRepository(db)
        self.user_repo = UserRepository(db)
        self._categories: Dict[str, Optional[Category]] = {}
        self._users: Dict[str, Optional[User]] = {}

    async def to_response(self, bill: Bill) -> BillResponse:
        if bill.category_id not in self._categories:
            self._categories[bill.category_id] = await self.category_repo.get_by_id(bill.category_id)
        if bill.user_id not in self._users:
            self._users[bill.user_id] = await self.user_repo.get_by_id(bill.user_id)

        category = self._categories[bill.category_id]
        user = self._users[bill.user_id]

        if category is not None:
            category_brief = CategoryBrief(id=category.id, name=category.name, icon=category.icon)
        else:
            category_brief = CategoryBrief(
                id=bill.category_id, name=bill.category_name or UNKNOWN_CATEGORY_NAME
            )

        return BillResponse(
            id=bill.id,
            ledger_id=bill.ledger_id,
            type=bill.bill_type,
            amount=bill.amount,
            category=category_brief,
            note=bill.note,
            bill_date=bill.bill_date,
            user=UserBrief(id=bill.user_id, nickname=user.nickname if user else None),
            created_at=bill.created_at,
        )


async def _get_bookable_category(
    db: AsyncSession, category_id: str, ledger: Ledger, bill_type: BillType
) -> Category:
    """Category a bill of this type may be booked on in this ledger."""
    category = await CategoryRepository(db).get_by_id(parse_id(category_id, "category"))
    if category is None:
        raise ResourceNotFoundError("Category not found")
    if category.ledger_id is not None and category.ledger_id != ledger.id:
        raise ValidationError("Category does not belong to this ledger")
    if category.category_type != bill_type:
        raise ValidationError("Category type does not match bill type")
    return category


@router.get("", response_model=BillListResponse)
async def list_bills(
    ledger_id: str = Query(..., description="Ledger to list"),
    start_date: Optional[str] = Query(None, description="Filter by start date (YYYY-MM-DD)"),
    end_date: Optional[str] = Query(None, description="Filter by end date (YYYY-MM-DD)"),
    bill_type: Optional[str] = Query(None, alias="type", description="income or expense"),
    category_id: Optional[str] = Query(None, description="Filter by category"),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
    access: LedgerAccessService = Depends(get_ledger_access),
):
    """
    List the bills of a ledger, newest bill date first.

    Malformed optional filters are ignored rather than rejected.
    """
    ledger = await access.get_readable_ledger(ledger_id, current_user)

    bill_filter = BillFilter(
        ledger_id=ledger.id,
        start_date=parse_date_param(start_date),
        end_date=parse_date_param(end_date),
        bill_type=BillType.from_param(bill_type),
        category_id=parse_optional_id(category_id),
        page=page,
        page_size=page_size,
    )
    bills, total = await BillRepository(db).find_by_filter(bill_filter)

    presenter = _BillPresenter(db)
    total_pages = ceil(total / page_size) if total > 0 else 1

    return BillListResponse(
        items=[await presenter.to_response(b) for b in bills],
        pagination=PaginatedResponse(
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages,
        ),
    )


@router.post("", response_model=BillResponse)
async def create_bill(
    request: BillCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
    access: LedgerAccessService = Depends(get_ledger_access),
):
    """Record an income or expense bill on a ledger."""
    ledger = await access.get_readable_ledger(request.ledger_id, current_user)
    category = await _get_bookable_category(db, request.category_id, ledger, request.type)

    bill = await BillRepository(db).create(
        ledger_id=ledger.id,
        category_id=category.id,
        category_name=category.name,
        user_id=current_user.id,
        bill_type=request.type,
        amount=request.amount,
        note=request.note,
        bill_date=request.bill_date,
    )
    logger.info(
        f"Bill created: bill_id={bill.id}, ledger_id={ledger.id}, "
        f"type={bill.bill_type.value}, amount={bill.amount}"
    )

    return await _BillPresenter(db).to_response(bill)


@router.get("/{bill_id}", response_model=BillResponse)
async def get_bill(
    bill_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
    access: LedgerAccessService = Depends(get_ledger_access),
):
    """Get a specific bill by ID."""
    bill = await BillRepository(db).get_by_id(parse_id(bill_id, "bill"))
    if not bill:
        raise ResourceNotFoundError(f"Bill {bill_id} not found")

    await access.get_readable_ledger(bill.ledger_id, current_user)

    return await _BillPresenter(db).to_response(bill)


@router.put("/{bill_id}", response_model=BillResponse)
async def update_bill(
    bill_id: str,
    update_data: BillUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
    access: LedgerAccessService = Depends(get_ledger_access),
):
    """Update a bill. Only its creator may change it."""
    bill_repo = BillRepository(db)

    bill = await bill_repo.get_by_id(parse_id(bill_id, "bill"))
    if not bill:
        raise ResourceNotFoundError(f"Bill {bill_id} not found")

    if bill.user_id != current_user.id:
        raise PermissionDeniedError("Only the creator can update a bill")

    new_type = update_data.type or bill.bill_type
    category_id = None
    category_name = None
    if update_data.category_id is not None or update_data.type is not None:
        ledger = await access.get_readable_ledger(bill.ledger_id, current_user)
        category = await _get_bookable_category(
            db, update_data.category_id or bill.category_id, ledger, new_type
        )
        category_id = category.id
        category_name = category.name

    updated = await bill_repo.update(
        bill_id=bill.id,
        category_id=category_id,
        category_name=category_name,
        bill_type=update_data.type,
        amount=update_data.amount,
        note=update_data.note,
        bill_date=update_data.bill_date,
    )

    return await _BillPresenter(db).to_response(updated)


@router.delete("/{bill_id}", response_model=MessageResponse)
async def delete_bill(
    bill_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
):
    """Delete a bill. Only its creator may delete it."""
    bill_repo = BillRepository(db)

    bill = await bill_repo.get_by_id(parse_id(bill_id, "bill"))
    if not bill:
        raise ResourceNotFoundError(f"Bill {bill_id} not found")

    if bill.user_id != current_user.id:
        raise PermissionDeniedError("Only the creator can delete a bill")

    await bill_repo.delete(bill.id)
    logger.info(f"Bill deleted: bill_id={bill.id}, ledger_id={bill.ledger_id}")

    return MessageResponse(message="Bill deleted successfully")
