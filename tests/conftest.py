from datetime import date
from typing import AsyncGenerator
import uuid

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from app.main import app
from app.db.base import Base
from app.api.deps import get_db, get_current_db_user, get_today
from app.db.repositories.category_repo import CategoryRepository
from app.db.repositories.group_repo import GroupRepository
from app.db.repositories.ledger_repo import LedgerRepository
from app.models.bill import Bill
from app.models.category import Category
from app.models.enums import BillType
from app.models.group import Group
from app.models.ledger import Ledger
from app.models.user import User


# Use SQLite for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Saturday; its ISO week runs Monday 2025-03-10 to Sunday 2025-03-16
TODAY = date(2025, 3, 15)


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session_maker = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with async_session_maker() as session:
        yield session


async def _make_user(session: AsyncSession, uid: str, nickname: str) -> User:
    user = User(
        id=str(uuid.uuid4()),
        firebase_uid=uid,
        email=f"{uid}@example.com",
        nickname=nickname,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@pytest_asyncio.fixture(scope="function")
async def test_user(test_session: AsyncSession) -> User:
    """Create the authenticated test user."""
    return await _make_user(test_session, "test_firebase_uid", "Test User")


@pytest_asyncio.fixture(scope="function")
async def other_user(test_session: AsyncSession) -> User:
    """Create a second user with no access to the test user's ledgers."""
    return await _make_user(test_session, "other_firebase_uid", "Other User")


@pytest_asyncio.fixture(scope="function")
async def system_categories(test_session: AsyncSession) -> dict[tuple[BillType, str], Category]:
    """Seed the default categories, keyed by (type, name)."""
    repo = CategoryRepository(test_session)
    await repo.init_default_categories()
    await test_session.commit()

    categories = await repo.get_visible()
    return {(c.category_type, c.name): c for c in categories}


@pytest_asyncio.fixture(scope="function")
async def food(system_categories) -> Category:
    return system_categories[(BillType.EXPENSE, "Food")]


@pytest_asyncio.fixture(scope="function")
async def transport(system_categories) -> Category:
    return system_categories[(BillType.EXPENSE, "Transport")]


@pytest_asyncio.fixture(scope="function")
async def salary(system_categories) -> Category:
    return system_categories[(BillType.INCOME, "Salary")]


@pytest_asyncio.fixture(scope="function")
async def personal_ledger(test_session: AsyncSession, test_user: User) -> Ledger:
    ledger = await LedgerRepository(test_session).create(
        name="Daily", currency="CNY", user_id=test_user.id
    )
    await test_session.commit()
    return ledger


@pytest_asyncio.fixture(scope="function")
async def test_group(test_session: AsyncSession, test_user: User) -> Group:
    """A group owned by the test user."""
    group = await GroupRepository(test_session).create(name="Household", owner_id=test_user.id)
    await test_session.commit()
    return group


@pytest_asyncio.fixture(scope="function")
async def group_ledger(test_session: AsyncSession, test_group: Group) -> Ledger:
    ledger = await LedgerRepository(test_session).create(
        name="Shared", currency="CNY", group_id=test_group.id
    )
    await test_session.commit()
    return ledger


@pytest_asyncio.fixture(scope="function")
async def test_bills(
    test_session: AsyncSession,
    test_user: User,
    personal_ledger: Ledger,
    food: Category,
    transport: Category,
    salary: Category,
) -> list[Bill]:
    """Bills in March 2025 plus one in February, on the personal ledger."""
    bills_data = [
        {"category": food, "bill_type": BillType.EXPENSE, "amount": 50.0, "bill_date": date(2025, 3, 1)},
        {"category": salary, "bill_type": BillType.INCOME, "amount": 200.0, "bill_date": date(2025, 3, 3)},
        {"category": food, "bill_type": BillType.EXPENSE, "amount": 25.5, "bill_date": date(2025, 3, 10)},
        {"category": transport, "bill_type": BillType.EXPENSE, "amount": 24.5, "bill_date": date(2025, 3, 14)},
        {"category": food, "bill_type": BillType.EXPENSE, "amount": 10.0, "bill_date": date(2025, 2, 20)},
    ]

    bills = []
    for data in bills_data:
        category = data.pop("category")
        bill = Bill(
            id=str(uuid.uuid4()),
            ledger_id=personal_ledger.id,
            category_id=category.id,
            category_name=category.name,
            user_id=test_user.id,
            **data,
        )
        test_session.add(bill)
        bills.append(bill)

    await test_session.commit()
    for bill in bills:
        await test_session.refresh(bill)

    return bills


@pytest.fixture
def auth_state(test_user: User) -> dict:
    """Mutable holder for the user requests are authenticated as."""
    return {"user": test_user}


@pytest_asyncio.fixture(scope="function")
async def client(
    test_session: AsyncSession,
    auth_state: dict,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with mocked dependencies."""

    async def override_get_db():
        yield test_session

    async def override_get_current_db_user():
        return auth_state["user"]

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_db_user] = override_get_current_db_user
    app.dependency_overrides[get_today] = lambda: TODAY

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
