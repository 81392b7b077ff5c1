import logging
from typing import Tuple

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db, get_current_db_user
from app.core.exceptions import (
    ResourceNotFoundError,
    PermissionDeniedError,
    ValidationError,
    ConflictError,
)
from app.core.identifiers import parse_id
from app.db.repositories.group_repo import GroupRepository
from app.db.repositories.ledger_repo import LedgerRepository
from app.db.repositories.user_repo import UserRepository
from app.models.enums import GroupRole
from app.models.group import Group, GroupMember
from app.models.user import User
from app.schemas.common import MessageResponse
from app.schemas.group import (
    GroupCreate,
    GroupUpdate,
    GroupJoinRequest,
    GroupTransferRequest,
    MemberRoleUpdate,
    GroupResponse,
    GroupCreateResponse,
    GroupMemberResponse,
    GroupDetailResponse,
    GroupListResponse,
    InviteCodeResponse,
)
from app.schemas.ledger import LedgerBrief
from app.schemas.user import UserBrief

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_group_membership(
    group_id: str, user: User, db: AsyncSession
) -> Tuple[Group, GroupMember]:
    """Load a group the user belongs to, with the user's membership."""
    group_repo = GroupRepository(db)
    group = await group_repo.get_by_id(parse_id(group_id, "group"))
    if group is None:
        raise ResourceNotFoundError("Group not found")
    member = await group_repo.get_member(group.id, user.id)
    if member is None:
        raise PermissionDeniedError("You are not a member of this group")
    return group, member


def _require_owner(member: GroupMember, action: str) -> None:
    if member.role != GroupRole.OWNER:
        raise PermissionDeniedError(f"Only the group owner can {action}")


def _require_manager(member: GroupMember, action: str) -> None:
    if not member.role.can_manage:
        raise PermissionDeniedError(f"Only group owners and admins can {action}")


async def _group_detail(group: Group, member: GroupMember, db: AsyncSession) -> GroupDetailResponse:
    group_repo = GroupRepository(db)
    user_repo = UserRepository(db)

    members = []
    for m in await group_repo.get_members(group.id):
        user = await user_repo.get_by_id(m.user_id)
        members.append(
            GroupMemberResponse(
                user_id=m.user_id,
                nickname=user.nickname if user else None,
                avatar=user.avatar if user else None,
                role=m.role,
                joined_at=m.joined_at,
            )
        )

    owner = await user_repo.get_by_id(group.owner_id)
    ledgers = await LedgerRepository(db).get_by_group(group.id)

    return GroupDetailResponse(
        id=group.id,
        name=group.name,
        description=group.description,
        owner=UserBrief(id=group.owner_id, nickname=owner.nickname if owner else None),
        members=members,
        ledgers=[LedgerBrief.model_validate(ledger) for ledger in ledgers],
        invite_code=group.invite_code if member.role.can_manage else None,
    )


@router.get("", response_model=GroupListResponse)
async def list_groups(
    current_user: User = Depends(get_current_db_user),
    db: AsyncSession = Depends(get_db),
):
    """List the groups the user belongs to, with the user's role in each."""
    group_repo = GroupRepository(db)

    items = []
    for group in await group_repo.get_by_user(current_user.id):
        member = await group_repo.get_member(group.id, current_user.id)
        items.append(
            GroupResponse(
                id=group.id,
                name=group.name,
                description=group.description,
                member_count=await group_repo.count_members(group.id),
                my_role=member.role,
                created_at=group.created_at,
            )
        )

    return GroupListResponse(items=items)


@router.post("", response_model=GroupCreateResponse)
async def create_group(
    request: GroupCreate,
    current_user: User = Depends(get_current_db_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a group owned by the user. The response carries the invite code."""
    group = await GroupRepository(db).create(
        name=request.name,
        owner_id=current_user.id,
        description=request.description,
    )
    logger.info(f"Group created: group_id={group.id}, owner_id={current_user.id}")

    return GroupCreateResponse(id=group.id, name=group.name, invite_code=group.invite_code)


@router.post("/join", response_model=GroupDetailResponse)
async def join_group(
    request: GroupJoinRequest,
    current_user: User = Depends(get_current_db_user),
    db: AsyncSession = Depends(get_db),
):
    """Join a group with its invite code (case-insensitive)."""
    group_repo = GroupRepository(db)

    group = await group_repo.get_by_invite_code(request.invite_code)
    if group is None:
        raise ResourceNotFoundError("Invalid invite code")

    if await group_repo.get_member(group.id, current_user.id) is not None:
        raise ConflictError("You are already a member of this group")

    member = await group_repo.add_member(group.id, current_user.id, GroupRole.MEMBER)
    logger.info(f"User {current_user.id} joined group {group.id}")

    return await _group_detail(group, member, db)


@router.get("/{group_id}", response_model=GroupDetailResponse)
async def get_group(
    group_id: str,
    current_user: User = Depends(get_current_db_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Get a group with its members and ledgers.

    The invite code is only included for owners and admins.
    """
    group, member = await _get_group_membership(group_id, current_user, db)
    return await _group_detail(group, member, db)


@router.put("/{group_id}", response_model=GroupDetailResponse)
async def update_group(
    group_id: str,
    update_data: GroupUpdate,
    current_user: User = Depends(get_current_db_user),
    db: AsyncSession = Depends(get_db),
):
    """Rename a group or change its description (owner or admin)."""
    group, member = await _get_group_membership(group_id, current_user, db)
    _require_manager(member, "update the group")

    group = await GroupRepository(db).update(
        group,
        name=update_data.name,
        description=update_data.description,
    )
    return await _group_detail(group, member, db)


@router.delete("/{group_id}", response_model=MessageResponse)
async def delete_group(
    group_id: str,
    current_user: User = Depends(get_current_db_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a group with its ledgers and their bills (owner only)."""
    group, member = await _get_group_membership(group_id, current_user, db)
    _require_owner(member, "delete the group")

    await GroupRepository(db).delete(group.id)
    logger.info(f"Group deleted: group_id={group.id}, owner_id={current_user.id}")

    return MessageResponse(message="Group deleted successfully")


@router.post("/{group_id}/leave", response_model=MessageResponse)
async def leave_group(
    group_id: str,
    current_user: User = Depends(get_current_db_user),
    db: AsyncSession = Depends(get_db),
):
    """Leave a group. The owner must transfer ownership first."""
    group, member = await _get_group_membership(group_id, current_user, db)
    if member.role == GroupRole.OWNER:
        raise ValidationError("The group owner cannot leave; transfer ownership first")

    await GroupRepository(db).remove_member(group.id, current_user.id)
    logger.info(f"User {current_user.id} left group {group.id}")

    return MessageResponse(message="Left group successfully")


@router.post("/{group_id}/transfer", response_model=MessageResponse)
async def transfer_group(
    group_id: str,
    request: GroupTransferRequest,
    current_user: User = Depends(get_current_db_user),
    db: AsyncSession = Depends(get_db),
):
    """Hand ownership to another member. The previous owner becomes an admin."""
    group, member = await _get_group_membership(group_id, current_user, db)
    _require_owner(member, "transfer ownership")

    group_repo = GroupRepository(db)
    new_owner_id = parse_id(request.new_owner_id, "user")
    if new_owner_id == current_user.id:
        raise ValidationError("You already own this group")
    if await group_repo.get_member(group.id, new_owner_id) is None:
        raise ResourceNotFoundError("The new owner must be a member of the group")

    await group_repo.transfer_ownership(group, new_owner_id)
    logger.info(f"Group {group.id} ownership transferred from {current_user.id} to {new_owner_id}")

    return MessageResponse(message="Ownership transferred successfully")


@router.post("/{group_id}/invite-code", response_model=InviteCodeResponse)
async def reset_invite_code(
    group_id: str,
    current_user: User = Depends(get_current_db_user),
    db: AsyncSession = Depends(get_db),
):
    """Replace the invite code; the previous code stops working."""
    group, member = await _get_group_membership(group_id, current_user, db)
    _require_manager(member, "reset the invite code")

    code = await GroupRepository(db).reset_invite_code(group)
    return InviteCodeResponse(invite_code=code)


@router.delete("/{group_id}/members/{user_id}", response_model=MessageResponse)
async def remove_member(
    group_id: str,
    user_id: str,
    current_user: User = Depends(get_current_db_user),
    db: AsyncSession = Depends(get_db),
):
    """Remove a member from the group (owner or admin; the owner cannot be removed)."""
    group, member = await _get_group_membership(group_id, current_user, db)
    _require_manager(member, "remove members")

    group_repo = GroupRepository(db)
    target = await group_repo.get_member(group.id, parse_id(user_id, "user"))
    if target is None:
        raise ResourceNotFoundError("Member not found")
    if target.role == GroupRole.OWNER:
        raise PermissionDeniedError("The group owner cannot be removed")
    if target.role == GroupRole.ADMIN and member.role != GroupRole.OWNER:
        raise PermissionDeniedError("Only the group owner can remove admins")

    await group_repo.remove_member(group.id, target.user_id)
    logger.info(f"User {target.user_id} removed from group {group.id} by {current_user.id}")

    return MessageResponse(message="Member removed successfully")


@router.put("/{group_id}/members/{user_id}/role", response_model=GroupMemberResponse)
async def update_member_role(
    group_id: str,
    user_id: str,
    request: MemberRoleUpdate,
    current_user: User = Depends(get_current_db_user),
    db: AsyncSession = Depends(get_db),
):
    """Promote a member to admin or demote an admin to member (owner only)."""
    group, member = await _get_group_membership(group_id, current_user, db)
    _require_owner(member, "change member roles")

    if request.role == GroupRole.OWNER:
        raise ValidationError("Use the transfer endpoint to change the owner")

    group_repo = GroupRepository(db)
    target = await group_repo.get_member(group.id, parse_id(user_id, "user"))
    if target is None:
        raise ResourceNotFoundError("Member not found")
    if target.role == GroupRole.OWNER:
        raise ValidationError("The owner's role cannot be changed")

    target = await group_repo.update_member_role(target, request.role)
    user = await UserRepository(db).get_by_id(target.user_id)

    return GroupMemberResponse(
        user_id=target.user_id,
        nickname=user.nickname if user else None,
        avatar=user.avatar if user else None,
        role=target.role,
        joined_at=target.joined_at,
    )
