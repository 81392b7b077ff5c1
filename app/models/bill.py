import uuid
from datetime import datetime
from datetime import date as date_type
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, DateTime, Float, ForeignKey, Date, Index, Text, CheckConstraint, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.db.base import Base
from app.models.enums import BillType

if TYPE_CHECKING:
    from app.models.ledger import Ledger


class Bill(Base):
    __tablename__ = "bills"

    id: Mapped[str] = mapped_column(
        String, primary_key=True, default=lambda: str(uuid.uuid4())
    )
    ledger_id: Mapped[str] = mapped_column(
        String, ForeignKey("ledgers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Not a foreign key: categories can be deleted while their bills remain
    category_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    # Last-known category name, shown when the category no longer exists
    category_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    # Creator of the bill
    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.id"), nullable=False, index=True
    )

    bill_type: Mapped[BillType] = mapped_column(
        "type",
        SAEnum(BillType, native_enum=False, length=20,
               values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Calendar date of the bill, independent of created_at
    bill_date: Mapped[date_type] = mapped_column(Date, nullable=False, index=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    # Relationships
    ledger: Mapped["Ledger"] = relationship("Ledger", back_populates="bills")

    __table_args__ = (
        Index("ix_bills_ledger_date", "ledger_id", "bill_date"),
        Index("ix_bills_ledger_category", "ledger_id", "category_id"),
        CheckConstraint("amount > 0", name="ck_bills_amount_positive"),
    )
