import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional, List

from sqlalchemy import String, DateTime, ForeignKey, CheckConstraint, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.db.base import Base
from app.models.enums import LedgerType

if TYPE_CHECKING:
    from app.models.user import User
    from app.models.group import Group
    from app.models.bill import Bill
    from app.models.category import Category


class Ledger(Base):
    __tablename__ = "ledgers"

    id: Mapped[str] = mapped_column(
        String, primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    ledger_type: Mapped[LedgerType] = mapped_column(
        "type",
        SAEnum(LedgerType, native_enum=False, length=20,
               values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )

    # Exactly one owner reference is set: user_id for personal, group_id for group ledgers
    user_id: Mapped[Optional[str]] = mapped_column(
        String, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True
    )
    group_id: Mapped[Optional[str]] = mapped_column(
        String, ForeignKey("groups.id", ondelete="CASCADE"), nullable=True, index=True
    )
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="CNY")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    # Relationships
    user: Mapped[Optional["User"]] = relationship("User", back_populates="ledgers")
    group: Mapped[Optional["Group"]] = relationship("Group", back_populates="ledgers")
    bills: Mapped[List["Bill"]] = relationship(
        "Bill", back_populates="ledger", cascade="all, delete-orphan", passive_deletes=True
    )
    categories: Mapped[List["Category"]] = relationship(
        "Category", back_populates="ledger", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        CheckConstraint(
            "(user_id IS NOT NULL AND group_id IS NULL) OR (user_id IS NULL AND group_id IS NOT NULL)",
            name="ck_ledgers_single_owner",
        ),
    )
