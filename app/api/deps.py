from datetime import date
from typing import AsyncGenerator

from fastapi import Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import async_session_maker
from app.core.security import get_current_user, FirebaseUser
from app.db.repositories.bill_repo import BillRepository
from app.db.repositories.category_repo import CategoryRepository
from app.db.repositories.user_repo import UserRepository
from app.models.user import User
from app.services.date_range import utc_today
from app.services.ledger_access import LedgerAccessService
from app.services.statistics_service import StatisticsService


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Database session dependency."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_current_db_user(
    firebase_user: FirebaseUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Get or create database user from Firebase auth.

    This ensures the user exists in our database and returns
    the SQLAlchemy User model for use in endpoints.
    """
    user_repo = UserRepository(db)

    user = await user_repo.get_by_firebase_uid(firebase_user.uid)

    if user is None:
        # Concurrent first requests can race on the unique firebase_uid
        try:
            user = await user_repo.create(
                firebase_uid=firebase_user.uid,
                email=firebase_user.email,
                nickname=firebase_user.name,
            )
        except IntegrityError:
            await db.rollback()
            user = await user_repo.get_by_firebase_uid(firebase_user.uid)

    return user


def get_today() -> date:
    """Reference date for period keywords (overridden in tests)."""
    return utc_today()


def get_ledger_access(db: AsyncSession = Depends(get_db)) -> LedgerAccessService:
    return LedgerAccessService(db)


def get_statistics_service(db: AsyncSession = Depends(get_db)) -> StatisticsService:
    return StatisticsService(BillRepository(db), CategoryRepository(db))
