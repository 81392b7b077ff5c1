from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User


class UserRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_firebase_uid(self, firebase_uid: str) -> Optional[User]:
        """Get user by Firebase UID."""
        result = await self.db.execute(
            select(User).where(User.firebase_uid == firebase_uid)
        )
        return result.scalar_one_or_none()

    async def create(
        self,
        firebase_uid: str,
        email: Optional[str] = None,
        nickname: Optional[str] = None,
    ) -> User:
        """Create a new user."""
        user = User(
            firebase_uid=firebase_uid,
            email=email,
            nickname=nickname,
        )
        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)
        return user

    async def update(
        self,
        user: User,
        nickname: Optional[str] = None,
        avatar: Optional[str] = None,
    ) -> User:
        """Update profile fields. Fields left as None are unchanged."""
        if nickname is not None:
            user.nickname = nickname
        if avatar is not None:
            user.avatar = avatar
        await self.db.flush()
        await self.db.refresh(user)
        return user
