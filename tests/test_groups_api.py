"""Tests for group, membership and invite code endpoints."""
import pytest
from httpx import AsyncClient

from app.models.group import Group
from app.models.ledger import Ledger
from app.models.user import User


async def _join(client: AsyncClient, auth_state: dict, user: User, group: Group):
    previous = auth_state["user"]
    auth_state["user"] = user
    response = await client.post("/api/v1/groups/join", json={"invite_code": group.invite_code})
    auth_state["user"] = previous
    return response


@pytest.mark.asyncio
async def test_create_and_list_groups(client: AsyncClient):
    response = await client.post(
        "/api/v1/groups", json={"name": "Flatmates", "description": "Rent and bills"}
    )

    assert response.status_code == 200
    created = response.json()
    assert created["name"] == "Flatmates"
    assert len(created["invite_code"]) == 6
    assert created["invite_code"].isalnum() and created["invite_code"].upper() == created["invite_code"]

    response = await client.get("/api/v1/groups")
    items = response.json()["items"]
    assert [(g["id"], g["my_role"], g["member_count"]) for g in items] == [
        (created["id"], "owner", 1)
    ]


@pytest.mark.asyncio
async def test_join_group(
    client: AsyncClient,
    auth_state: dict,
    test_user: User,
    other_user: User,
    test_group: Group,
    group_ledger: Ledger,
):
    response = await _join(client, auth_state, other_user, test_group)

    assert response.status_code == 200
    detail = response.json()
    assert {m["user_id"]: m["role"] for m in detail["members"]} == {
        test_user.id: "owner",
        other_user.id: "member",
    }
    assert [l["id"] for l in detail["ledgers"]] == [group_ledger.id]
    # Members do not see the invite code
    assert detail["invite_code"] is None

    response = await _join(client, auth_state, other_user, test_group)
    assert response.status_code == 409

    response = await client.post("/api/v1/groups/join", json={"invite_code": "ZZZZZZ!"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_group_detail_shows_invite_code_to_owner(client: AsyncClient, test_group: Group):
    response = await client.get(f"/api/v1/groups/{test_group.id}")

    assert response.status_code == 200
    detail = response.json()
    assert detail["invite_code"] == test_group.invite_code
    assert detail["owner"]["nickname"] == "Test User"


@pytest.mark.asyncio
async def test_non_member_cannot_see_group(
    client: AsyncClient, auth_state: dict, other_user: User, test_group: Group
):
    auth_state["user"] = other_user
    response = await client.get(f"/api/v1/groups/{test_group.id}")
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_member_permissions(
    client: AsyncClient, auth_state: dict, test_user: User, other_user: User, test_group: Group
):
    await _join(client, auth_state, other_user, test_group)
    auth_state["user"] = other_user

    response = await client.put(f"/api/v1/groups/{test_group.id}", json={"name": "Mine"})
    assert response.status_code == 403

    response = await client.delete(f"/api/v1/groups/{test_group.id}")
    assert response.status_code == 403

    response = await client.post(f"/api/v1/groups/{test_group.id}/invite-code")
    assert response.status_code == 403

    response = await client.delete(f"/api/v1/groups/{test_group.id}/members/{test_user.id}")
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_owner_cannot_leave(client: AsyncClient, test_group: Group):
    response = await client.post(f"/api/v1/groups/{test_group.id}/leave")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_member_can_leave(
    client: AsyncClient, auth_state: dict, other_user: User, test_group: Group
):
    await _join(client, auth_state, other_user, test_group)
    auth_state["user"] = other_user

    response = await client.post(f"/api/v1/groups/{test_group.id}/leave")
    assert response.status_code == 200

    response = await client.get("/api/v1/groups")
    assert response.json()["items"] == []


@pytest.mark.asyncio
async def test_owner_changes_member_role(
    client: AsyncClient, auth_state: dict, other_user: User, test_group: Group
):
    await _join(client, auth_state, other_user, test_group)

    response = await client.put(
        f"/api/v1/groups/{test_group.id}/members/{other_user.id}/role", json={"role": "admin"}
    )
    assert response.status_code == 200
    assert response.json()["role"] == "admin"

    response = await client.put(
        f"/api/v1/groups/{test_group.id}/members/{other_user.id}/role", json={"role": "owner"}
    )
    assert response.status_code == 400

    # Admins see the invite code and may update the group
    auth_state["user"] = other_user
    response = await client.get(f"/api/v1/groups/{test_group.id}")
    assert response.json()["invite_code"] == test_group.invite_code
    response = await client.put(f"/api/v1/groups/{test_group.id}", json={"name": "Renamed"})
    assert response.status_code == 200
    assert response.json()["name"] == "Renamed"


@pytest.mark.asyncio
async def test_owner_removes_member(
    client: AsyncClient, auth_state: dict, other_user: User, test_group: Group
):
    await _join(client, auth_state, other_user, test_group)

    response = await client.delete(f"/api/v1/groups/{test_group.id}/members/{other_user.id}")
    assert response.status_code == 200

    response = await client.delete(f"/api/v1/groups/{test_group.id}/members/{other_user.id}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_transfer_ownership(
    client: AsyncClient, auth_state: dict, test_user: User, other_user: User, test_group: Group
):
    await _join(client, auth_state, other_user, test_group)

    response = await client.post(
        f"/api/v1/groups/{test_group.id}/transfer", json={"new_owner_id": other_user.id}
    )
    assert response.status_code == 200

    response = await client.get(f"/api/v1/groups/{test_group.id}")
    detail = response.json()
    assert detail["owner"]["id"] == other_user.id
    roles = {m["user_id"]: m["role"] for m in detail["members"]}
    assert roles == {test_user.id: "admin", other_user.id: "owner"}

    # The previous owner is now an admin and may leave
    response = await client.post(f"/api/v1/groups/{test_group.id}/leave")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_reset_invite_code(client: AsyncClient, auth_state: dict, other_user: User, test_group: Group):
    old_code = test_group.invite_code

    response = await client.post(f"/api/v1/groups/{test_group.id}/invite-code")
    assert response.status_code == 200
    new_code = response.json()["invite_code"]
    assert len(new_code) == 6

    auth_state["user"] = other_user
    response = await client.post("/api/v1/groups/join", json={"invite_code": new_code})
    assert response.status_code == 200
    if new_code != old_code:
        response = await client.post("/api/v1/groups/join", json={"invite_code": old_code})
        assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_group_removes_ledgers(
    client: AsyncClient, test_group: Group, group_ledger: Ledger
):
    response = await client.delete(f"/api/v1/groups/{test_group.id}")
    assert response.status_code == 200

    response = await client.get(f"/api/v1/ledgers/{group_ledger.id}")
    assert response.status_code == 404

    response = await client.get("/api/v1/groups")
    assert response.json()["items"] == []
