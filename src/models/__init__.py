"""SQLAlchemy base model with common fields and model exports."""

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, declarative_base, mapped_column

# Base class for all models
Base = declarative_base()


class TimestampMixin:
    """Common created/updated timestamp fields."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )


class BaseModel(TimestampMixin):
    """Base model with integer primary key and timestamp fields."""

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)


# Import models to register them with Base (after Base is defined)
# This must be after Base declaration to avoid circular imports
from src.models.apartment import Apartment  # noqa: E402
from src.models.balance_sheet import BalanceSheet  # noqa: E402
from src.models.category import Category  # noqa: E402
from src.models.expense import Expense  # noqa: E402
from src.models.payment import Payment, PaymentCategory, PaymentStatus  # noqa: E402

__all__ = [
    "Base",
    "BaseModel",
    "TimestampMixin",
    "Apartment",
    "BalanceSheet",
    "Category",
    "Expense",
    "Payment",
    "PaymentCategory",
    "PaymentStatus",
]
