import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_current_db_user, get_ledger_access
from app.config import get_settings
from app.core.exceptions import ResourceNotFoundError, PermissionDeniedError
from app.core.identifiers import parse_id
from app.db.repositories.group_repo import GroupRepository
from app.db.repositories.ledger_repo import LedgerRepository
from app.models.enums import LedgerType
from app.models.user import User
from app.schemas.common import MessageResponse
from app.schemas.ledger import LedgerCreate, LedgerUpdate, LedgerResponse, LedgerListResponse
from app.services.ledger_access import LedgerAccessService

logger = logging.getLogger(__name__)

settings = get_settings()

router = APIRouter()


@router.get("", response_model=LedgerListResponse)
async def list_ledgers(
    ledger_type: Optional[LedgerType] = Query(None, alias="type", description="personal or group"),
    current_user: User = Depends(get_current_db_user),
    db: AsyncSession = Depends(get_db),
):
    """
    List the ledgers available to the user.

    Personal ledgers come first, followed by the ledgers of every group
    the user belongs to.
    """
    ledger_repo = LedgerRepository(db)

    ledgers = []
    if ledger_type in (None, LedgerType.PERSONAL):
        ledgers.extend(await ledger_repo.get_by_user(current_user.id))
    if ledger_type in (None, LedgerType.GROUP):
        ledgers.extend(await ledger_repo.get_group_ledgers_for_user(current_user.id))

    return LedgerListResponse(
        items=[LedgerResponse.model_validate(ledger) for ledger in ledgers]
    )


@router.post("", response_model=LedgerResponse)
async def create_ledger(
    request: LedgerCreate,
    current_user: User = Depends(get_current_db_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a personal ledger, or a group ledger when group_id is given.

    Only owners and admins of a group may create ledgers for it.
    """
    group_id = None
    if request.group_id is not None:
        group_repo = GroupRepository(db)
        group = await group_repo.get_by_id(parse_id(request.group_id, "group"))
        if group is None:
            raise ResourceNotFoundError("Group not found")
        member = await group_repo.get_member(group.id, current_user.id)
        if member is None or not member.role.can_manage:
            raise PermissionDeniedError("Only group owners and admins can create group ledgers")
        group_id = group.id

    ledger = await LedgerRepository(db).create(
        name=request.name,
        description=request.description,
        currency=(request.currency or settings.DEFAULT_CURRENCY).upper(),
        user_id=current_user.id,
        group_id=group_id,
    )
    logger.info(
        f"Ledger created: ledger_id={ledger.id}, type={ledger.ledger_type.value}, "
        f"user_id={current_user.id}"
    )

    return ledger


@router.get("/{ledger_id}", response_model=LedgerResponse)
async def get_ledger(
    ledger_id: str,
    current_user: User = Depends(get_current_db_user),
    access: LedgerAccessService = Depends(get_ledger_access),
):
    """Get a specific ledger by ID."""
    return await access.get_readable_ledger(ledger_id, current_user)


@router.put("/{ledger_id}", response_model=LedgerResponse)
async def update_ledger(
    ledger_id: str,
    update_data: LedgerUpdate,
    current_user: User = Depends(get_current_db_user),
    access: LedgerAccessService = Depends(get_ledger_access),
    db: AsyncSession = Depends(get_db),
):
    """Rename a ledger or change its description."""
    ledger = await access.get_manageable_ledger(ledger_id, current_user)
    return await LedgerRepository(db).update(
        ledger,
        name=update_data.name,
        description=update_data.description,
    )


@router.delete("/{ledger_id}", response_model=MessageResponse)
async def delete_ledger(
    ledger_id: str,
    current_user: User = Depends(get_current_db_user),
    access: LedgerAccessService = Depends(get_ledger_access),
    db: AsyncSession = Depends(get_db),
):
    """Delete a ledger together with its bills and custom categories."""
    ledger = await access.get_manageable_ledger(ledger_id, current_user)
    await LedgerRepository(db).delete(ledger.id)
    logger.info(f"Ledger deleted: ledger_id={ledger.id}, user_id={current_user.id}")

    return MessageResponse(message="Ledger deleted successfully")
