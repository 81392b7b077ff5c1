import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, DateTime, Integer, ForeignKey, Index, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.db.base import Base
from app.models.enums import BillType

if TYPE_CHECKING:
    from app.models.ledger import Ledger


# System-wide defaults: (name, icon, sort_order)
DEFAULT_EXPENSE_CATEGORIES = [
    ("Food", "food", 1),
    ("Transport", "transport", 2),
    ("Shopping", "shopping", 3),
    ("Entertainment", "entertainment", 4),
    ("Housing", "housing", 5),
    ("Medical", "medical", 6),
    ("Education", "education", 7),
    ("Communication", "communication", 8),
    ("Other", "other", 99),
]

DEFAULT_INCOME_CATEGORIES = [
    ("Salary", "salary", 1),
    ("Bonus", "bonus", 2),
    ("Investment", "investment", 3),
    ("Part-time", "part-time", 4),
    ("Gift", "red-packet", 5),
    ("Other", "other", 99),
]


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(
        String, primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    icon: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    category_type: Mapped[BillType] = mapped_column(
        "type",
        SAEnum(BillType, native_enum=False, length=20,
               values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    parent_id: Mapped[Optional[str]] = mapped_column(
        String, ForeignKey("categories.id", ondelete="CASCADE"), nullable=True
    )
    # NULL = system default visible to every ledger
    ledger_id: Mapped[Optional[str]] = mapped_column(
        String, ForeignKey("ledgers.id", ondelete="CASCADE"), nullable=True, index=True
    )
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationships
    ledger: Mapped[Optional["Ledger"]] = relationship("Ledger", back_populates="categories")

    __table_args__ = (
        Index("ix_categories_ledger_type", "ledger_id", "type"),
    )

    @property
    def is_system(self) -> bool:
        return self.ledger_id is None
