"""Payment ORM model for income and expense payment events."""

from enum import Enum

from sqlalchemy import Float, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.models import Base, BaseModel


class PaymentStatus(str, Enum):
    """Payment lifecycle status."""

    PENDING = "pending"
    PAID = "paid"
    APPROVED = "approved"
    """Only approved payments are reflected in the monthly balance sheets."""
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class PaymentCategory(str, Enum):
    """Which side of the balance sheet a payment affects."""

    INCOME = "income"
    EXPENSE = "expense"


class Payment(Base, BaseModel):
    """Model representing a payment event for an apartment in a month.

    Status transitions into and out of APPROVED (and edits of amount,
    apartment or month while approved) are translated into balance-sheet
    deltas by the payment delta reconciler.
    """

    __tablename__ = "payments"

    payer_id: Mapped[str] = mapped_column(String(100), nullable=False, comment="Paying user")
    payee_id: Mapped[str] = mapped_column(String(100), nullable=False, comment="Receiving user")
    apartment_id: Mapped[str] = mapped_column(
        ForeignKey("apartments.id"),
        nullable=False,
        index=True,
    )
    category: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PaymentCategory.INCOME.value,
        comment="'income' or 'expense'",
    )
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PaymentStatus.PENDING.value,
        index=True,
    )
    month_year: Mapped[str] = mapped_column(
        String(7),
        nullable=False,
        index=True,
        comment="Ledger month in YYYY-MM format",
    )
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    expense_id: Mapped[int | None] = mapped_column(
        ForeignKey("expenses.id"),
        nullable=True,
        comment="Expense this payment settles, if any",
    )

    __table_args__ = (Index("idx_payment_apartment_month", "apartment_id", "month_year"),)

    def __repr__(self) -> str:
        return (
            f"<Payment(id={self.id}, apartment_id={self.apartment_id!r}, "
            f"category={self.category!r}, amount={self.amount}, status={self.status!r}, "
            f"month_year={self.month_year!r})>"
        )


__all__ = ["Payment", "PaymentStatus", "PaymentCategory"]
