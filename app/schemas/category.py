from typing import Optional, List

from pydantic import AliasChoices, BaseModel, Field

from app.models.enums import BillType


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    icon: Optional[str] = None
    type: BillType
    parent_id: Optional[str] = None
    ledger_id: str = Field(..., description="Ledger owning this custom category")
    sort_order: Optional[int] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    icon: Optional[str] = None
    sort_order: Optional[int] = None


class CategoryResponse(BaseModel):
    id: str
    name: str
    icon: Optional[str] = None
    type: BillType = Field(validation_alias=AliasChoices("category_type", "type"))
    parent_id: Optional[str] = None
    ledger_id: Optional[str] = None
    sort_order: int = 0
    children: List["CategoryResponse"] = []

    class Config:
        from_attributes = True


class CategoryBrief(BaseModel):
    id: str
    name: str
    icon: Optional[str] = None


class CategoryListResponse(BaseModel):
    items: List[CategoryResponse]
