"""Tests for the bill statistics endpoints."""
import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repositories.category_repo import CategoryRepository
from app.models.bill import Bill
from app.models.enums import BillType
from app.models.ledger import Ledger
from app.models.user import User


@pytest.mark.asyncio
async def test_statistics_default_period_is_current_month(
    client: AsyncClient, personal_ledger: Ledger, test_bills: list[Bill]
):
    response = await client.get(
        "/api/v1/bills/statistics", params={"ledger_id": personal_ledger.id}
    )

    assert response.status_code == 200
    data = response.json()

    summary = data["summary"]
    assert summary["total_income"] == 200.0
    assert summary["total_expense"] == 100.0
    assert summary["balance"] == 100.0
    by_category = summary["by_category"]
    assert [(c["category_name"], c["amount"]) for c in by_category] == [
        ("Food", 75.5),
        ("Transport", 24.5),
    ]
    assert [c["percentage"] for c in by_category] == pytest.approx([75.5, 24.5])

    assert len(data["daily"]) == 31
    assert data["daily"][0] == {"date": "2025-03-01", "income": 0.0, "expense": 50.0}
    assert data["daily"][-1]["date"] == "2025-03-31"

    # Month views chart per day
    assert [t["period"] for t in data["trend"]] == [
        "2025-03-01",
        "2025-03-03",
        "2025-03-10",
        "2025-03-14",
    ]


@pytest.mark.asyncio
async def test_statistics_week_period(
    client: AsyncClient, personal_ledger: Ledger, test_bills: list[Bill]
):
    response = await client.get(
        "/api/v1/bills/statistics",
        params={"ledger_id": personal_ledger.id, "period": "week"},
    )

    assert response.status_code == 200
    data = response.json()
    assert [d["date"] for d in data["daily"]][0] == "2025-03-10"
    assert [d["date"] for d in data["daily"]][-1] == "2025-03-16"
    assert data["summary"]["total_expense"] == 50.0
    assert data["summary"]["total_income"] == 0.0


@pytest.mark.asyncio
async def test_statistics_year_period_groups_trend_by_month(
    client: AsyncClient, personal_ledger: Ledger, test_bills: list[Bill]
):
    response = await client.get(
        "/api/v1/bills/statistics",
        params={"ledger_id": personal_ledger.id, "period": "year"},
    )

    assert response.status_code == 200
    trend = response.json()["trend"]
    assert trend == [
        {"period": "2025-02", "income": 0.0, "expense": 10.0, "balance": -10.0},
        {"period": "2025-03", "income": 200.0, "expense": 100.0, "balance": 100.0},
    ]


@pytest.mark.asyncio
async def test_statistics_malformed_start_date_uses_trailing_window(
    client: AsyncClient, personal_ledger: Ledger, test_bills: list[Bill]
):
    response = await client.get(
        "/api/v1/bills/statistics",
        params={
            "ledger_id": personal_ledger.id,
            "start_date": "not-a-date",
            "end_date": "2025-03-10",
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["daily"][0]["date"] == "2025-02-13"
    assert data["daily"][-1]["date"] == "2025-03-15"
    assert data["summary"]["total_expense"] == 110.0


@pytest.mark.asyncio
async def test_statistics_explicit_range_and_income_breakdown(
    client: AsyncClient, personal_ledger: Ledger, test_bills: list[Bill]
):
    response = await client.get(
        "/api/v1/bills/statistics",
        params={
            "ledger_id": personal_ledger.id,
            "start_date": "2025-03-01",
            "end_date": "2025-03-05",
            "type": "income",
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert len(data["daily"]) == 5
    assert [c["category_name"] for c in data["summary"]["by_category"]] == ["Salary"]
    assert data["summary"]["by_category"][0]["type"] == "income"


@pytest.mark.asyncio
async def test_statistics_rejects_bad_ledger(
    client: AsyncClient, auth_state: dict, other_user: User, personal_ledger: Ledger
):
    response = await client.get("/api/v1/bills/statistics", params={"ledger_id": "abc"})
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid ledger ID"

    response = await client.get(
        "/api/v1/bills/statistics", params={"ledger_id": str(uuid.uuid4())}
    )
    assert response.status_code == 404

    auth_state["user"] = other_user
    response = await client.get(
        "/api/v1/bills/statistics", params={"ledger_id": personal_ledger.id}
    )
    assert response.status_code == 403
    assert response.json()["error"] == "permission_denied"


@pytest.mark.asyncio
async def test_category_statistics_follows_renames(
    client: AsyncClient,
    test_session: AsyncSession,
    personal_ledger: Ledger,
    test_user: User,
):
    category_repo = CategoryRepository(test_session)
    coffee = await category_repo.create(
        name="Coffee", category_type=BillType.EXPENSE, ledger_id=personal_ledger.id
    )
    await client.post(
        "/api/v1/bills",
        json={
            "ledger_id": personal_ledger.id,
            "category_id": coffee.id,
            "amount": 4.5,
            "type": "expense",
            "bill_date": "2025-03-12",
        },
    )
    await category_repo.update(coffee, name="Cafe")

    response = await client.get(
        "/api/v1/bills/statistics/category", params={"ledger_id": personal_ledger.id}
    )
    assert response.status_code == 200
    assert [c["category_name"] for c in response.json()] == ["Cafe"]

    await category_repo.delete(coffee.id)

    response = await client.get(
        "/api/v1/bills/statistics/category", params={"ledger_id": personal_ledger.id}
    )
    assert response.status_code == 200
    stats = response.json()
    # The rename was copied onto the bill before the delete
    assert stats[0]["category_name"] == "Cafe"
    assert stats[0]["category_icon"] is None


@pytest.mark.asyncio
async def test_category_statistics_ignores_malformed_dates(
    client: AsyncClient, personal_ledger: Ledger, test_bills: list[Bill]
):
    response = await client.get(
        "/api/v1/bills/statistics/category",
        params={"ledger_id": personal_ledger.id, "start_date": "2025/03/01"},
    )

    assert response.status_code == 200
    food = response.json()[0]
    # All-time: includes the February bill
    assert food["category_name"] == "Food"
    assert food["amount"] == 85.5
    assert food["count"] == 3


@pytest.mark.asyncio
async def test_daily_statistics_requires_valid_dates(
    client: AsyncClient, personal_ledger: Ledger, test_bills: list[Bill]
):
    response = await client.get(
        "/api/v1/bills/statistics/daily",
        params={"ledger_id": personal_ledger.id, "end_date": "2025-03-03"},
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid start date"

    response = await client.get(
        "/api/v1/bills/statistics/daily",
        params={
            "ledger_id": personal_ledger.id,
            "start_date": "2025-03-01",
            "end_date": "2025-03-03",
        },
    )
    assert response.status_code == 200
    assert response.json() == [
        {"date": "2025-03-01", "income": 0.0, "expense": 50.0},
        {"date": "2025-03-02", "income": 0.0, "expense": 0.0},
        {"date": "2025-03-03", "income": 200.0, "expense": 0.0},
    ]


@pytest.mark.asyncio
async def test_daily_statistics_accepts_last_calendar_day(
    client: AsyncClient, personal_ledger: Ledger, test_bills: list[Bill]
):
    response = await client.get(
        "/api/v1/bills/statistics/daily",
        params={
            "ledger_id": personal_ledger.id,
            "start_date": "9999-12-30",
            "end_date": "9999-12-31",
        },
    )

    assert response.status_code == 200
    assert response.json() == [
        {"date": "9999-12-30", "income": 0.0, "expense": 0.0},
        {"date": "9999-12-31", "income": 0.0, "expense": 0.0},
    ]


@pytest.mark.asyncio
async def test_trend_statistics_group_by(
    client: AsyncClient, personal_ledger: Ledger, test_bills: list[Bill]
):
    params = {
        "ledger_id": personal_ledger.id,
        "start_date": "2025-02-01",
        "end_date": "2025-03-31",
    }

    response = await client.get(
        "/api/v1/bills/statistics/trend", params={**params, "group_by": "week"}
    )
    assert response.status_code == 200
    assert [t["period"] for t in response.json()] == [
        "2025-W08",
        "2025-W09",
        "2025-W10",
        "2025-W11",
    ]

    # Unknown grouping falls back to month
    response = await client.get(
        "/api/v1/bills/statistics/trend", params={**params, "group_by": "quarter"}
    )
    assert [t["period"] for t in response.json()] == ["2025-02", "2025-03"]

    response = await client.get(
        "/api/v1/bills/statistics/trend",
        params={"ledger_id": personal_ledger.id, "start_date": "2025-02-01", "end_date": "x"},
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid end date"
