import logging
from typing import Optional, List

from sqlalchemy import select, func, or_, delete, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.bill import Bill
from app.models.category import (
    Category,
    DEFAULT_EXPENSE_CATEGORIES,
    DEFAULT_INCOME_CATEGORIES,
)
from app.models.enums import BillType

logger = logging.getLogger(__name__)


class CategoryRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, category_id: str) -> Optional[Category]:
        """Get category by ID."""
        result = await self.db.execute(select(Category).where(Category.id == category_id))
        return result.scalar_one_or_none()

    async def get_visible(
        self,
        ledger_id: Optional[str] = None,
        category_type: Optional[BillType] = None,
    ) -> List[Category]:
        """Get system categories plus the custom categories of a ledger.

        Ordered by sort_order ascending, then name.
        """
        if ledger_id is None:
            conditions = [Category.ledger_id.is_(None)]
        else:
            conditions = [or_(Category.ledger_id.is_(None), Category.ledger_id == ledger_id)]
        if category_type is not None:
            conditions.append(Category.category_type == category_type)

        result = await self.db.execute(
            select(Category)
            .where(*conditions)
            .order_by(Category.sort_order, Category.name)
        )
        return list(result.scalars().all())

    async def create(
        self,
        name: str,
        category_type: BillType,
        icon: Optional[str] = None,
        parent_id: Optional[str] = None,
        ledger_id: Optional[str] = None,
        sort_order: Optional[int] = None,
    ) -> Category:
        """Create a new category."""
        category = Category(
            name=name,
            icon=icon,
            category_type=category_type,
            parent_id=parent_id,
            ledger_id=ledger_id,
            sort_order=sort_order if sort_order is not None else 0,
        )
        self.db.add(category)
        await self.db.flush()
        await self.db.refresh(category)
        return category

    async def update(
        self,
        category: Category,
        name: Optional[str] = None,
        icon: Optional[str] = None,
        sort_order: Optional[int] = None,
    ) -> Category:
        """Update a category. Fields left as None are unchanged.

        A rename is copied onto the category's bills so their last-known
        name stays current if the category is deleted later.
        """
        if name is not None:
            category.name = name
            await self.db.execute(
                update(Bill).where(Bill.category_id == category.id).values(category_name=name)
            )
        if icon is not None:
            category.icon = icon
        if sort_order is not None:
            category.sort_order = sort_order
        await self.db.flush()
        await self.db.refresh(category)
        return category

    async def delete(self, category_id: str) -> None:
        """Delete a category and its children. Bills keep their last-known category name."""
        await self.db.execute(delete(Category).where(Category.parent_id == category_id))
        await self.db.execute(delete(Category).where(Category.id == category_id))
        await self.db.flush()

    async def init_default_categories(self) -> int:
        """Insert the system categories if there are none yet.

        Returns the number of categories created.
        """
        result = await self.db.execute(
            select(func.count(Category.id)).where(Category.ledger_id.is_(None))
        )
        if (result.scalar() or 0) > 0:
            return 0

        defaults = [(BillType.EXPENSE, row) for row in DEFAULT_EXPENSE_CATEGORIES]
        defaults += [(BillType.INCOME, row) for row in DEFAULT_INCOME_CATEGORIES]
        for category_type, (name, icon, sort_order) in defaults:
            self.db.add(
                Category(
                    name=name,
                    icon=icon,
                    category_type=category_type,
                    sort_order=sort_order,
                )
            )
        await self.db.flush()
        logger.debug(f"Created {len(defaults)} system categories")
        return len(defaults)
