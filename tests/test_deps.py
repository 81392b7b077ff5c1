"""Tests for request dependencies."""
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_db_user
from app.core.security import FirebaseUser
from app.models.user import User


@pytest.mark.asyncio
async def test_first_request_creates_user(test_session: AsyncSession):
    firebase_user = FirebaseUser(uid="new_uid", email="new@example.com", name="Newcomer")

    user = await get_current_db_user(firebase_user=firebase_user, db=test_session)

    assert user.id is not None
    assert user.firebase_uid == "new_uid"
    assert user.nickname == "Newcomer"

    again = await get_current_db_user(firebase_user=firebase_user, db=test_session)
    assert again.id == user.id


@pytest.mark.asyncio
async def test_existing_user_is_reused(test_session: AsyncSession, test_user: User):
    firebase_user = FirebaseUser(uid=test_user.firebase_uid, email=test_user.email, name=None)

    user = await get_current_db_user(firebase_user=firebase_user, db=test_session)

    assert user.id == test_user.id
