"""Expense ORM model - shared or personal costs with per-apartment debt fields."""

from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.models import Base, BaseModel


class Expense(Base, BaseModel):
    """Model representing one cost fronted by an apartment.

    The debt-bearing fields are computed once, at creation, by the expense
    splitter:
    - owed_by_apartments: apartments that owe a share (empty for no-split)
    - per_apartment_share: amount / len(owed_by_apartments), or 0
    - paid_by_apartments: apartments whose share is settled (payer pre-settled)

    JSON list columns are replaced, never mutated in place, so that changes are
    flushed.

    category_id may name a category that no longer exists (legacy no-split
    names such as "cleaning"); deleting a category still in use is refused by
    ApartmentService.delete_category.
    """

    __tablename__ = "expenses"

    description: Mapped[str] = mapped_column(Text(), nullable=False, default="")
    amount: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        comment="Expense amount in currency units",
    )
    date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    category_id: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
        comment="Category id, possibly a legacy id without a category row",
    )
    paid_by_apartment: Mapped[str] = mapped_column(
        ForeignKey("apartments.id"),
        nullable=False,
        index=True,
        comment="Apartment that fronted the money",
    )
    owed_by_apartments: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    per_apartment_share: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    paid_by_apartments: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    receipt: Mapped[str | None] = mapped_column(String(500), nullable=True)

    __table_args__ = (Index("idx_expense_payer_date", "paid_by_apartment", "date"),)

    def __repr__(self) -> str:
        return (
            f"<Expense(id={self.id}, amount={self.amount}, "
            f"paid_by_apartment={self.paid_by_apartment!r}, "
            f"per_apartment_share={self.per_apartment_share})>"
        )


__all__ = ["Expense"]
