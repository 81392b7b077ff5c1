import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ResourceNotFoundError, PermissionDeniedError
from app.core.identifiers import parse_id
from app.db.repositories.group_repo import GroupRepository
from app.db.repositories.ledger_repo import LedgerRepository
from app.models.enums import LedgerType
from app.models.group import GroupMember
from app.models.ledger import Ledger
from app.models.user import User

logger = logging.getLogger(__name__)


class LedgerAccessService:
    """Ownership and membership checks guarding every ledger-scoped operation."""

    def __init__(self, db: AsyncSession):
        self.ledger_repo = LedgerRepository(db)
        self.group_repo = GroupRepository(db)

    async def _get_ledger(self, ledger_id: Optional[str]) -> Ledger:
        ledger = await self.ledger_repo.get_by_id(parse_id(ledger_id, "ledger"))
        if ledger is None:
            raise ResourceNotFoundError("Ledger not found")
        return ledger

    async def _membership(self, ledger: Ledger, user: User) -> Optional[GroupMember]:
        if ledger.group_id is None:
            return None
        return await self.group_repo.get_member(ledger.group_id, user.id)

    async def get_readable_ledger(self, ledger_id: Optional[str], user: User) -> Ledger:
        """Ledger the user may read and book bills on: its owner, or any member of its group."""
        ledger = await self._get_ledger(ledger_id)

        if ledger.ledger_type == LedgerType.PERSONAL:
            allowed = ledger.user_id == user.id
        else:
            allowed = await self._membership(ledger, user) is not None

        if not allowed:
            logger.info(f"User {user.id} denied access to ledger {ledger.id}")
            raise PermissionDeniedError("Access denied")
        return ledger

    async def get_manageable_ledger(self, ledger_id: Optional[str], user: User) -> Ledger:
        """Ledger the user may rename or delete: its owner, or a group owner/admin."""
        ledger = await self._get_ledger(ledger_id)

        if ledger.ledger_type == LedgerType.PERSONAL:
            allowed = ledger.user_id == user.id
        else:
            member = await self._membership(ledger, user)
            allowed = member is not None and member.role.can_manage

        if not allowed:
            logger.info(f"User {user.id} may not manage ledger {ledger.id}")
            raise PermissionDeniedError("Access denied")
        return ledger
