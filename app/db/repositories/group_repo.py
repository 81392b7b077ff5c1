from typing import Optional, List

from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.bill import Bill
from app.models.category import Category
from app.models.enums import GroupRole
from app.models.group import Group, GroupMember, generate_invite_code
from app.models.ledger import Ledger


class GroupRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    # MARK: - Group CRUD

    async def get_by_id(self, group_id: str) -> Optional[Group]:
        """Get group by ID."""
        result = await self.db.execute(select(Group).where(Group.id == group_id))
        return result.scalar_one_or_none()

    async def get_by_invite_code(self, invite_code: str) -> Optional[Group]:
        """Get group by invite code (case-insensitive)."""
        result = await self.db.execute(
            select(Group).where(Group.invite_code == invite_code.strip().upper())
        )
        return result.scalar_one_or_none()

    async def get_by_user(self, user_id: str) -> List[Group]:
        """Get every group the user is a member of."""
        result = await self.db.execute(
            select(Group)
            .join(GroupMember, GroupMember.group_id == Group.id)
            .where(GroupMember.user_id == user_id)
            .order_by(Group.created_at, Group.name)
        )
        return list(result.scalars().all())

    async def create(
        self,
        name: str,
        owner_id: str,
        description: Optional[str] = None,
    ) -> Group:
        """Create a group and register its owner as a member."""
        group = Group(
            name=name,
            description=description,
            owner_id=owner_id,
            invite_code=await self._unused_invite_code(),
        )
        self.db.add(group)
        await self.db.flush()
        owner = GroupMember(group_id=group.id, user_id=owner_id, role=GroupRole.OWNER)
        self.db.add(owner)
        await self.db.flush()
        await self.db.refresh(owner)
        await self.db.refresh(group)
        return group

    async def update(
        self,
        group: Group,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Group:
        """Update a group. Fields left as None are unchanged."""
        if name is not None:
            group.name = name
        if description is not None:
            group.description = description
        await self.db.flush()
        await self.db.refresh(group)
        return group

    async def reset_invite_code(self, group: Group) -> str:
        group.invite_code = await self._unused_invite_code()
        await self.db.flush()
        return group.invite_code

    async def delete(self, group_id: str) -> None:
        """Delete a group, its memberships and its ledgers (with their bills and categories)."""
        ledger_ids = select(Ledger.id).where(Ledger.group_id == group_id)
        await self.db.execute(delete(Bill).where(Bill.ledger_id.in_(ledger_ids)))
        await self.db.execute(delete(Category).where(Category.ledger_id.in_(ledger_ids)))
        await self.db.execute(delete(Ledger).where(Ledger.group_id == group_id))
        await self.db.execute(delete(GroupMember).where(GroupMember.group_id == group_id))
        await self.db.execute(delete(Group).where(Group.id == group_id))
        await self.db.flush()

    async def transfer_ownership(self, group: Group, new_owner_id: str) -> None:
        """Make another member the owner; the previous owner becomes an admin."""
        previous = await self.get_member(group.id, group.owner_id)
        if previous is not None:
            previous.role = GroupRole.ADMIN
        new_owner = await self.get_member(group.id, new_owner_id)
        if new_owner is not None:
            new_owner.role = GroupRole.OWNER
        group.owner_id = new_owner_id
        await self.db.flush()

    async def _unused_invite_code(self) -> str:
        while True:
            code = generate_invite_code()
            if await self.get_by_invite_code(code) is None:
                return code

    # MARK: - Members

    async def add_member(self, group_id: str, user_id: str, role: GroupRole) -> GroupMember:
        member = GroupMember(group_id=group_id, user_id=user_id, role=role)
        self.db.add(member)
        await self.db.flush()
        await self.db.refresh(member)
        return member

    async def get_member(self, group_id: str, user_id: str) -> Optional[GroupMember]:
        result = await self.db.execute(
            select(GroupMember).where(
                GroupMember.group_id == group_id,
                GroupMember.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_members(self, group_id: str) -> List[GroupMember]:
        result = await self.db.execute(
            select(GroupMember)
            .where(GroupMember.group_id == group_id)
            .order_by(GroupMember.joined_at, GroupMember.id)
        )
        return list(result.scalars().all())

    async def count_members(self, group_id: str) -> int:
        result = await self.db.execute(
            select(func.count(GroupMember.id)).where(GroupMember.group_id == group_id)
        )
        return result.scalar() or 0

    async def update_member_role(self, member: GroupMember, role: GroupRole) -> GroupMember:
        member.role = role
        await self.db.flush()
        return member

    async def remove_member(self, group_id: str, user_id: str) -> bool:
        """Remove a member. Returns False if the user was not a member."""
        member = await self.get_member(group_id, user_id)
        if member is None:
            return False
        await self.db.delete(member)
        await self.db.flush()
        return True
