import logging
from typing import Optional, List, Dict

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_current_db_user, get_ledger_access
from app.core.exceptions import ResourceNotFoundError, PermissionDeniedError, ValidationError
from app.core.identifiers import parse_id
from app.db.repositories.category_repo import CategoryRepository
from app.models.category import Category
from app.models.enums import BillType
from app.models.user import User
from app.schemas.category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
    CategoryListResponse,
)
from app.schemas.common import MessageResponse
from app.services.ledger_access import LedgerAccessService

logger = logging.getLogger(__name__)

router = APIRouter()


def build_category_tree(categories: List[Category]) -> List[CategoryResponse]:
    """Nest children under their parents, keeping the input order at both levels."""
    roots = [c for c in categories if c.parent_id is None]
    children: Dict[str, List[Category]] = {}
    for category in categories:
        if category.parent_id is not None:
            children.setdefault(category.parent_id, []).append(category)

    tree = []
    for root in roots:
        node = CategoryResponse.model_validate(root)
        node.children = [CategoryResponse.model_validate(c) for c in children.get(root.id, [])]
        tree.append(node)
    return tree


async def _get_editable_category(
    category_id: str,
    current_user: User,
    db: AsyncSession,
    access: LedgerAccessService,
) -> Category:
    category = await CategoryRepository(db).get_by_id(parse_id(category_id, "category"))
    if category is None:
        raise ResourceNotFoundError("Category not found")
    if category.is_system:
        raise PermissionDeniedError("System categories cannot be modified")
    await access.get_manageable_ledger(category.ledger_id, current_user)
    return category


@router.get("", response_model=CategoryListResponse)
async def list_categories(
    ledger_id: Optional[str] = Query(None, description="Include this ledger's custom categories"),
    category_type: Optional[str] = Query(None, alias="type", description="income or expense"),
    current_user: User = Depends(get_current_db_user),
    access: LedgerAccessService = Depends(get_ledger_access),
    db: AsyncSession = Depends(get_db),
):
    """
    List categories as a tree.

    System categories are always included. With ledger_id, the ledger's own
    categories are merged in. Roots and children are ordered by sort_order,
    then name.
    """
    if ledger_id is not None:
        ledger_id = (await access.get_readable_ledger(ledger_id, current_user)).id

    categories = await CategoryRepository(db).get_visible(
        ledger_id=ledger_id,
        category_type=BillType.from_param(category_type),
    )

    return CategoryListResponse(items=build_category_tree(categories))


@router.post("", response_model=CategoryResponse)
async def create_category(
    request: CategoryCreate,
    current_user: User = Depends(get_current_db_user),
    access: LedgerAccessService = Depends(get_ledger_access),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a custom category on a ledger.

    A parent, when given, must be a root category of the same type that is
    visible to the ledger. Categories nest one level deep.
    """
    ledger = await access.get_readable_ledger(request.ledger_id, current_user)
    category_repo = CategoryRepository(db)

    parent_id = None
    if request.parent_id is not None:
        parent = await category_repo.get_by_id(parse_id(request.parent_id, "parent category"))
        if parent is None:
            raise ResourceNotFoundError("Parent category not found")
        if parent.ledger_id is not None and parent.ledger_id != ledger.id:
            raise ValidationError("Parent category does not belong to this ledger")
        if parent.category_type != request.type:
            raise ValidationError("Parent category type does not match")
        if parent.parent_id is not None:
            raise ValidationError("Categories can only be nested one level deep")
        parent_id = parent.id

    category = await category_repo.create(
        name=request.name,
        icon=request.icon,
        category_type=request.type,
        parent_id=parent_id,
        ledger_id=ledger.id,
        sort_order=request.sort_order,
    )
    logger.info(
        f"Category created: category_id={category.id}, ledger_id={ledger.id}, "
        f"type={category.category_type.value}"
    )

    return CategoryResponse.model_validate(category)


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: str,
    update_data: CategoryUpdate,
    current_user: User = Depends(get_current_db_user),
    access: LedgerAccessService = Depends(get_ledger_access),
    db: AsyncSession = Depends(get_db),
):
    """Update the name, icon or sort order of a custom category."""
    category = await _get_editable_category(category_id, current_user, db, access)
    category = await CategoryRepository(db).update(
        category,
        name=update_data.name,
        icon=update_data.icon,
        sort_order=update_data.sort_order,
    )
    return CategoryResponse.model_validate(category)


@router.delete("/{category_id}", response_model=MessageResponse)
async def delete_category(
    category_id: str,
    current_user: User = Depends(get_current_db_user),
    access: LedgerAccessService = Depends(get_ledger_access),
    db: AsyncSession = Depends(get_db),
):
    """
    Delete a custom category and its children.

    Bills booked on it are kept and show the category's last-known name.
    """
    category = await _get_editable_category(category_id, current_user, db, access)
    await CategoryRepository(db).delete(category.id)
    logger.info(f"Category deleted: category_id={category.id}, ledger_id={category.ledger_id}")

    return MessageResponse(message="Category deleted successfully")
