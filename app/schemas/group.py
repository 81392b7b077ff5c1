from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, Field

from app.models.enums import GroupRole
from app.schemas.ledger import LedgerBrief
from app.schemas.user import UserBrief


class GroupCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None


class GroupUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None


class GroupJoinRequest(BaseModel):
    invite_code: str = Field(..., min_length=1, max_length=20)


class GroupTransferRequest(BaseModel):
    new_owner_id: str


class MemberRoleUpdate(BaseModel):
    role: GroupRole


class GroupResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    member_count: int
    my_role: GroupRole
    created_at: datetime


class GroupCreateResponse(BaseModel):
    id: str
    name: str
    invite_code: str


class GroupMemberResponse(BaseModel):
    user_id: str
    nickname: Optional[str] = None
    avatar: Optional[str] = None
    role: GroupRole
    joined_at: datetime


class GroupDetailResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    owner: UserBrief
    members: List[GroupMemberResponse]
    ledgers: List[LedgerBrief]
    invite_code: Optional[str] = None  # Only visible to owner/admin


class GroupListResponse(BaseModel):
    items: List[GroupResponse]


class InviteCodeResponse(BaseModel):
    invite_code: str
