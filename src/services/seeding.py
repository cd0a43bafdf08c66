"""Seeding of the apartment roster and default expense categories.

Seeding is idempotent: existing apartments and categories are left untouched
and only missing rows are inserted.
"""

import logging
from dataclasses import dataclass
from typing import NamedTuple

from sqlalchemy.orm import Session

from src.models import Apartment, Base, Category


class CategorySeed(NamedTuple):
    id: str
    name: str
    icon: str
    no_split: bool = False


DEFAULT_CATEGORIES = [
    CategorySeed("utilities", "Utilities", "🏠"),
    CategorySeed("cleaning", "Cleaning", "🧹", no_split=True),
    CategorySeed("maintenance", "Maintenance", "🔧"),
    CategorySeed("cctv", "CCTV", "📹"),
    CategorySeed("electricity", "Electricity", "⚡"),
    CategorySeed("supplies", "Supplies", "📦"),
    CategorySeed("repairs", "Repairs", "🔧"),
    CategorySeed("water-tank", "Water Tank", "💧"),
    CategorySeed("security", "Security", "🔒"),
    CategorySeed("other", "Other", "❓"),
]


@dataclass
class SeedResult:
    """Result of a seeding operation."""

    success: bool
    """Whether seeding completed successfully"""

    apartments_created: int = 0
    """Number of apartments inserted"""

    categories_created: int = 0
    """Number of categories inserted"""

    error_message: str | None = None
    """Error message if success=False"""

    def __str__(self) -> str:
        """Format result as human-readable string."""
        if self.success:
            return (
                f"✓ Seed successful\n"
                f"  Apartments: {self.apartments_created}\n"
                f"  Categories: {self.categories_created}"
            )
        return f"✗ Seed failed: {self.error_message}"


class SeedService:
    """Create tables and insert the default roster and categories."""

    def __init__(self, session: Session, logger: logging.Logger = None):
        """
        Initialize seeding service.

        Args:
            session: SQLAlchemy database session
            logger: Optional logger instance (creates if not provided)
        """
        self.session = session
        self.logger = logger or logging.getLogger("ledger.seeding")

    def seed_apartments(self, apartment_ids: list[str]) -> int:
        """Insert apartments that do not exist yet; returns how many were added."""
        existing = {apartment_id for (apartment_id,) in self.session.query(Apartment.id).all()}
        created = 0
        for apartment_id in apartment_ids:
            if apartment_id in existing:
                self.logger.info(f"Apartment {apartment_id} already exists. Skipping.")
                continue
            self.session.add(Apartment(id=apartment_id, name=f"Apartment {apartment_id}", members=[]))
            created += 1
        return created

    def seed_categories(self, categories: list[CategorySeed] = DEFAULT_CATEGORIES) -> int:
        """Insert categories that do not exist yet; returns how many were added."""
        existing = {category_id for (category_id,) in self.session.query(Category.id).all()}
        created = 0
        for seed in categories:
            if seed.id in existing:
                continue
            self.session.add(Category(id=seed.id, name=seed.name, icon=seed.icon, no_split=seed.no_split))
            created += 1
        return created

    def execute_seed(self, apartment_ids: list[str]) -> SeedResult:
        """
        Create tables and seed roster and categories in one transaction.

        Args:
            apartment_ids: Apartment roster to ensure

        Returns:
            SeedResult; on failure the transaction is rolled back
        """
        try:
            Base.metadata.create_all(bind=self.session.get_bind())
            apartments_created = self.seed_apartments(apartment_ids)
            categories_created = self.seed_categories()
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            self.logger.error(f"Seeding failed, transaction rolled back: {e}", exc_info=True)
            return SeedResult(success=False, error_message=str(e))

        result = SeedResult(
            success=True,
            apartments_created=apartments_created,
            categories_created=categories_created,
        )
        self.logger.info(str(result))
        return result
