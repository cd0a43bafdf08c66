"""Category ORM model for classifying expenses."""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from src.models import Base, TimestampMixin


class Category(Base, TimestampMixin):
    """Model representing an expense category.

    The no_split flag is a per-category policy: expenses in a no-split category
    are borne entirely by the paying apartment instead of being divided among
    all apartments.
    """

    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(
        String(50),
        primary_key=True,
        comment="Category identifier (e.g., 'utilities')",
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    icon: Mapped[str | None] = mapped_column(String(20), nullable=True)
    no_split: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        comment="When true, expenses are not split among apartments",
    )

    def __repr__(self) -> str:
        return f"<Category(id={self.id!r}, name={self.name!r}, no_split={self.no_split})>"


__all__ = ["Category"]
