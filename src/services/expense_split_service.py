"""Expense splitting service for dividing a new expense across apartments.

Decides whether an expense is split among all apartments or borne solely by
the paying apartment, and produces the debt-bearing fields stored with the
expense:

- SPLIT: every apartment (payer included) owes amount / N; the payer's own
  share is pre-marked as settled
- NO_SPLIT: category flagged no_split (or a legacy no-split category);
  nobody owes anything
"""

import logging
from typing import Iterable, NamedTuple, Sequence

from src.services.config import DEFAULT_NO_SPLIT_LEGACY_CATEGORIES
from src.services.errors import DataNotReadyError

logger = logging.getLogger(__name__)


class ExpenseDebtFields(NamedTuple):
    """Debt-bearing fields to attach to a new expense record."""

    paid_by_apartment: str
    owed_by_apartments: list[str]
    per_apartment_share: float
    paid_by_apartments: list[str]

    @classmethod
    def from_expense(cls, expense) -> "ExpenseDebtFields":
        return cls(
            paid_by_apartment=expense.paid_by_apartment,
            owed_by_apartments=list(expense.owed_by_apartments or []),
            per_apartment_share=float(expense.per_apartment_share or 0),
            paid_by_apartments=list(expense.paid_by_apartments or []),
        )

    @property
    def is_split(self) -> bool:
        """True when the expense is divided among apartments."""
        return bool(self.owed_by_apartments)

    @property
    def total_owed_by_others(self) -> float:
        """Amount the payer is owed right after creation."""
        unsettled = [
            apartment_id
            for apartment_id in self.owed_by_apartments
            if apartment_id not in self.paid_by_apartments
            and apartment_id != self.paid_by_apartment
        ]
        return len(unsettled) * self.per_apartment_share


class ExpenseSplitService:
    """Split new expenses across the apartment roster by category policy."""

    def __init__(self, no_split_legacy_categories: Iterable[str] | None = None):
        """Initialize split service.

        Args:
            no_split_legacy_categories: Lowercase category ids/names that are
                treated as no-split when the category record cannot be found
        """
        if no_split_legacy_categories is None:
            no_split_legacy_categories = DEFAULT_NO_SPLIT_LEGACY_CATEGORIES
        self.no_split_legacy_categories = frozenset(
            name.lower() for name in no_split_legacy_categories
        )

    def is_no_split_category(self, category_id: str, categories: Sequence) -> bool:
        """Check whether expenses in a category are borne by the payer only.

        Args:
            category_id: Category identifier from the expense
            categories: Known categories (objects with id, name, no_split)

        Returns:
            True if the category is flagged no_split, or is unknown and
            matches a legacy no-split category
        """
        category = next((c for c in categories if c.id == category_id), None)
        if category is not None:
            return bool(category.no_split)

        is_legacy = (category_id or "").lower() in self.no_split_legacy_categories
        if is_legacy:
            logger.debug(f"Category {category_id} not found; applying legacy no-split rule")
        return is_legacy

    def split_expense(
        self,
        amount: float,
        category_id: str,
        paying_apartment_id: str,
        apartments: Sequence,
        categories: Sequence,
    ) -> ExpenseDebtFields:
        """Compute the debt fields for a new expense.

        Args:
            amount: Expense amount (must be positive)
            category_id: Category of the expense
            paying_apartment_id: Apartment that fronted the money
            apartments: Current apartment roster (objects with id)
            categories: Known categories (objects with id, name, no_split)

        Returns:
            ExpenseDebtFields for the expense record

        Raises:
            DataNotReadyError: If the apartment roster is empty (retry later)
            ValueError: If amount is not positive or the payer is not in the roster
        """
        if not apartments:
            logger.warning("split_expense called with empty apartment roster")
            raise DataNotReadyError()

        if amount <= 0:
            raise ValueError("Expense amount must be positive")

        apartment_ids = [apartment.id for apartment in apartments]
        if paying_apartment_id not in apartment_ids:
            raise ValueError(f"Paying apartment {paying_apartment_id} is not in the roster")

        if self.is_no_split_category(category_id, categories):
            return ExpenseDebtFields(
                paid_by_apartment=paying_apartment_id,
                owed_by_apartments=[],
                per_apartment_share=0.0,
                paid_by_apartments=[],
            )

        per_apartment_share = amount / len(apartment_ids)
        return ExpenseDebtFields(
            paid_by_apartment=paying_apartment_id,
            owed_by_apartments=list(apartment_ids),
            per_apartment_share=per_apartment_share,
            paid_by_apartments=[paying_apartment_id],
        )

    def describe_split(self, amount: float, fields: ExpenseDebtFields, category_name: str = "expense") -> str:
        """Build a short confirmation message for a split result.

        Args:
            amount: Expense amount
            fields: Result of split_expense
            category_name: Category display name

        Returns:
            Human-readable summary of who bears the cost
        """
        if not fields.is_split:
            return f"{amount:.2f} {category_name} added. Only your apartment will bear this cost."
        return (
            f"{amount:.2f} expense split among {len(fields.owed_by_apartments)} apartments. "
            f"Your share of {fields.per_apartment_share:.2f} is marked as paid. "
            f"You are owed {fields.total_owed_by_others:.2f} from others."
        )
