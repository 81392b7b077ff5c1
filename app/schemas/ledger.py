from datetime import datetime
from typing import Optional, List

from pydantic import AliasChoices, BaseModel, Field

from app.models.enums import LedgerType


class LedgerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    group_id: Optional[str] = Field(None, description="Create a group ledger for this group")


class LedgerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None


class LedgerResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    type: LedgerType = Field(validation_alias=AliasChoices("ledger_type", "type"))
    group_id: Optional[str] = None
    currency: str
    created_at: datetime

    class Config:
        from_attributes = True


class LedgerBrief(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True


class LedgerListResponse(BaseModel):
    items: List[LedgerResponse]
