"""Apartment roster lookup and expense category management."""

import logging
import re
from typing import List, Optional

from sqlalchemy.orm import Session

from src.models import Apartment, Category, Expense
from src.services.errors import NotFoundError

logger = logging.getLogger(__name__)


def _slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


class ApartmentService:
    """Apartment roster lookup and category management."""

    def __init__(self, db: Session):
        self.db = db

    def list_apartments(self) -> List[Apartment]:
        """List the apartment roster ordered by id."""
        return self.db.query(Apartment).order_by(Apartment.id).all()

    def get_apartment(self, apartment_id: str) -> Optional[Apartment]:
        return self.db.get(Apartment, apartment_id)

    def require_apartment(self, apartment_id: str) -> Apartment:
        """Get apartment by id.

        Raises:
            NotFoundError: If the apartment does not exist
        """
        apartment = self.get_apartment(apartment_id)
        if apartment is None:
            logger.warning(f"Apartment {apartment_id} not found")
            raise NotFoundError(f"Apartment {apartment_id} not found")
        return apartment

    def list_categories(self) -> List[Category]:
        """List expense categories ordered by name."""
        return self.db.query(Category).order_by(Category.name).all()

    def get_category(self, category_id: str) -> Category:
        """Get category by id.

        Raises:
            NotFoundError: If the category does not exist
        """
        category = self.db.get(Category, category_id)
        if category is None:
            raise NotFoundError(f"Category {category_id} not found")
        return category

    def create_category(
        self,
        name: str,
        icon: Optional[str] = None,
        no_split: bool = False,
        category_id: Optional[str] = None,
    ) -> Category:
        """Add an expense category.

        Args:
            name: Display name
            icon: Optional emoji or icon name
            no_split: When true, expenses in this category are borne by the payer
            category_id: Identifier (default: slug of the name, e.g. "Water Tank" -> "water-tank")

        Returns:
            Created Category object

        Raises:
            ValueError: If the name is blank or the id is already taken
        """
        name = (name or "").strip()
        if not name:
            raise ValueError("Category name is required")
        category_id = (category_id or _slugify(name)).strip().lower()
        if not category_id:
            raise ValueError(f"Cannot derive a category id from '{name}'")
        if self.db.get(Category, category_id) is not None:
            raise ValueError(f"Category {category_id} already exists")

        category = Category(id=category_id, name=name, icon=icon, no_split=bool(no_split))
        self.db.add(category)
        self.db.commit()
        self.db.refresh(category)

        logger.info(f"Created category {category_id} (no_split={category.no_split})")
        return category

    def update_category(
        self,
        category_id: str,
        name: Optional[str] = None,
        icon: Optional[str] = None,
        no_split: Optional[bool] = None,
    ) -> Category:
        """Edit a category; only the values given are changed.

        Changing no_split affects expenses added afterwards, existing splits
        are kept.

        Raises:
            NotFoundError: If the category does not exist
            ValueError: If the new name is blank
        """
        category = self.get_category(category_id)
        if name is not None:
            if not name.strip():
                raise ValueError("Category name is required")
            category.name = name.strip()
        if icon is not None:
            category.icon = icon
        if no_split is not None:
            category.no_split = bool(no_split)
        self.db.commit()
        self.db.refresh(category)

        logger.info(f"Updated category {category_id} (no_split={category.no_split})")
        return category

    def delete_category(self, category_id: str) -> None:
        """Delete a category that no expense uses.

        Raises:
            NotFoundError: If the category does not exist
            ValueError: If expenses still reference the category
        """
        category = self.get_category(category_id)
        used = self.db.query(Expense).filter(Expense.category_id == category_id).count()
        if used:
            raise ValueError(f"Category {category_id} is used by {used} expenses")
        self.db.delete(category)
        self.db.commit()

        logger.info(f"Deleted category {category_id}")
