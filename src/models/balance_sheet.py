"""Balance sheet ORM model - per-apartment, per-month ledger bucket."""

from sqlalchemy import Float, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.models import Base, BaseModel


class BalanceSheet(Base, BaseModel):
    """Monthly aggregate of income and expenses for one apartment.

    Maintained incrementally via deltas rather than recomputed from scratch.
    Invariant: closing_balance = opening_balance + total_income - total_expenses.
    """

    __tablename__ = "balance_sheets"

    apartment_id: Mapped[str] = mapped_column(
        ForeignKey("apartments.id"),
        nullable=False,
        index=True,
    )
    month_year: Mapped[str] = mapped_column(String(7), nullable=False, index=True)
    opening_balance: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total_income: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    total_expenses: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    closing_balance: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    __table_args__ = (
        UniqueConstraint("apartment_id", "month_year", name="uq_balance_sheet_apartment_month"),
    )

    def __repr__(self) -> str:
        return (
            f"<BalanceSheet(apartment_id={self.apartment_id!r}, month_year={self.month_year!r}, "
            f"income={self.total_income}, expenses={self.total_expenses}, "
            f"closing={self.closing_balance})>"
        )


__all__ = ["BalanceSheet"]
