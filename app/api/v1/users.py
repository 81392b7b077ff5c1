from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_current_db_user
from app.db.repositories.user_repo import UserRepository
from app.models.user import User
from app.schemas.user import UserResponse, UserUpdate

router = APIRouter()


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_db_user)):
    """
    Get the authenticated user.

    The user record is created on first authenticated request.
    """
    return current_user


@router.put("/me", response_model=UserResponse)
async def update_me(
    update_data: UserUpdate,
    current_user: User = Depends(get_current_db_user),
    db: AsyncSession = Depends(get_db),
):
    """Update nickname and/or avatar of the authenticated user."""
    return await UserRepository(db).update(
        current_user,
        nickname=update_data.nickname,
        avatar=update_data.avatar,
    )
