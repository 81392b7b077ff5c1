from typing import Optional, List

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.bill import Bill
from app.models.category import Category
from app.models.enums import LedgerType
from app.models.group import GroupMember
from app.models.ledger import Ledger


class LedgerRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, ledger_id: str) -> Optional[Ledger]:
        """Get ledger by ID."""
        result = await self.db.execute(select(Ledger).where(Ledger.id == ledger_id))
        return result.scalar_one_or_none()

    async def get_by_user(self, user_id: str) -> List[Ledger]:
        """Get the personal ledgers owned by a user."""
        result = await self.db.execute(
            select(Ledger)
            .where(Ledger.user_id == user_id)
            .order_by(Ledger.created_at, Ledger.name)
        )
        return list(result.scalars().all())

    async def get_by_group(self, group_id: str) -> List[Ledger]:
        """Get the ledgers owned by a group."""
        result = await self.db.execute(
            select(Ledger)
            .where(Ledger.group_id == group_id)
            .order_by(Ledger.created_at, Ledger.name)
        )
        return list(result.scalars().all())

    async def get_group_ledgers_for_user(self, user_id: str) -> List[Ledger]:
        """Get the ledgers of every group the user is a member of."""
        result = await self.db.execute(
            select(Ledger)
            .join(GroupMember, GroupMember.group_id == Ledger.group_id)
            .where(GroupMember.user_id == user_id)
            .order_by(Ledger.created_at, Ledger.name)
        )
        return list(result.scalars().all())

    async def create(
        self,
        name: str,
        currency: str,
        user_id: Optional[str] = None,
        group_id: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Ledger:
        """Create a personal ledger (user_id) or a group ledger (group_id)."""
        ledger = Ledger(
            name=name,
            description=description,
            ledger_type=LedgerType.GROUP if group_id else LedgerType.PERSONAL,
            user_id=None if group_id else user_id,
            group_id=group_id,
            currency=currency,
        )
        self.db.add(ledger)
        await self.db.flush()
        await self.db.refresh(ledger)
        return ledger

    async def update(
        self,
        ledger: Ledger,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Ledger:
        """Update a ledger. Fields left as None are unchanged."""
        if name is not None:
            ledger.name = name
        if description is not None:
            ledger.description = description
        await self.db.flush()
        await self.db.refresh(ledger)
        return ledger

    async def delete(self, ledger_id: str) -> None:
        """Delete a ledger together with its bills and custom categories."""
        await self.db.execute(delete(Bill).where(Bill.ledger_id == ledger_id))
        await self.db.execute(delete(Category).where(Category.ledger_id == ledger_id))
        await self.db.execute(delete(Ledger).where(Ledger.id == ledger_id))
        await self.db.flush()
