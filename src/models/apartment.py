"""Apartment ORM model - the unit of financial accounting in the building."""

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from src.models import Base, TimestampMixin


class Apartment(Base, TimestampMixin):
    """Model representing an apartment (unit) in the managed property.

    Debts and credits are always between apartments, never individual users.
    The roster is created by administrative action (seeding) and is treated as
    immutable while balances are computed.
    """

    __tablename__ = "apartments"

    id: Mapped[str] = mapped_column(
        String(20),
        primary_key=True,
        comment="Apartment identifier (e.g., 'G1', 'T2')",
    )
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Display name (e.g., 'Apartment G1')",
    )
    members: Mapped[list[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="User identifiers living in the apartment",
    )

    def __repr__(self) -> str:
        return f"<Apartment(id={self.id!r}, name={self.name!r})>"


__all__ = ["Apartment"]
