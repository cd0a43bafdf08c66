"""Expense delta calculation for the monthly balance-sheet ledger.

Each expense contributes to the balance sheets of the month it is dated in:
- every owing apartment that has not settled (payer excluded) gets
  total_expenses += per_apartment_share
- the paying apartment gets total_income += the sum of those shares

Calculation is pluggable: strategies are registered with a registry and the
most recently registered strategy that can handle an expense is used.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, NamedTuple, Optional

from src.services.parsers import month_year_from_date
from src.services.payment_delta_service import LedgerDelta

logger = logging.getLogger(__name__)

DeltaMap = Dict[str, LedgerDelta]


class ExpenseState(NamedTuple):
    """Immutable snapshot of the ledger-relevant fields of an expense."""

    id: Optional[int]
    date: object
    paid_by_apartment: str
    owed_by_apartments: tuple[str, ...]
    per_apartment_share: float
    paid_by_apartments: tuple[str, ...]

    @classmethod
    def from_expense(cls, expense) -> "ExpenseState":
        """Snapshot an expense record before it is mutated in place."""
        return cls(
            id=getattr(expense, "id", None),
            date=expense.date,
            paid_by_apartment=expense.paid_by_apartment,
            owed_by_apartments=tuple(expense.owed_by_apartments or ()),
            per_apartment_share=float(expense.per_apartment_share or 0),
            paid_by_apartments=tuple(expense.paid_by_apartments or ()),
        )


class ExpenseDeltas(NamedTuple):
    """Per-apartment deltas of one expense for its ledger month."""

    month_year: str
    deltas: DeltaMap


class DeltaChanges(NamedTuple):
    """Ledger changes needed when an expense is edited."""

    old_month: str
    new_month: str
    old_deltas: DeltaMap
    new_deltas: DeltaMap
    neg_old_deltas: DeltaMap
    merged_deltas: DeltaMap  # only populated when old_month == new_month


def _add(deltas: DeltaMap, apartment_id: str, month_year: str, income: float = 0.0, expenses: float = 0.0) -> None:
    current = deltas.get(apartment_id) or LedgerDelta(apartment_id, month_year)
    deltas[apartment_id] = current._replace(
        total_income_delta=current.total_income_delta + income,
        total_expenses_delta=current.total_expenses_delta + expenses,
    )


def negate_deltas(deltas: DeltaMap) -> DeltaMap:
    """Flip the sign of every delta (used to remove an expense's effect)."""
    return {
        apartment_id: delta._replace(
            total_income_delta=-delta.total_income_delta,
            total_expenses_delta=-delta.total_expenses_delta,
        )
        for apartment_id, delta in deltas.items()
    }


class ExpenseDeltaStrategy(ABC):
    """Interface for expense delta calculation strategies."""

    @abstractmethod
    def can_handle(self, expense) -> bool:
        """Return True if this strategy applies to the expense."""

    @abstractmethod
    def calculate_deltas(self, expense) -> ExpenseDeltas:
        """Calculate the ledger deltas of the expense."""


class StandardExpenseDeltaStrategy(ExpenseDeltaStrategy):
    """Default strategy: one apartment pays, unsettled apartments owe shares."""

    def can_handle(self, expense) -> bool:
        return True

    def calculate_deltas(self, expense) -> ExpenseDeltas:
        month_year = month_year_from_date(expense.date)
        payer = expense.paid_by_apartment
        share = float(expense.per_apartment_share or 0)
        settled = set(expense.paid_by_apartments or [])

        owing = [
            apartment_id
            for apartment_id in dict.fromkeys(expense.owed_by_apartments or [])
            if apartment_id not in settled and apartment_id != payer
        ]

        deltas: DeltaMap = {}
        for apartment_id in owing:
            _add(deltas, apartment_id, month_year, expenses=share)
        _add(deltas, payer, month_year, income=share * len(owing))

        return ExpenseDeltas(month_year=month_year, deltas=deltas)


class ExpenseDeltaStrategyRegistry:
    """Registry of expense delta strategies, open for extension."""

    def __init__(self):
        self._strategies: list[ExpenseDeltaStrategy] = []
        self.register(StandardExpenseDeltaStrategy())

    def register(self, strategy: ExpenseDeltaStrategy) -> None:
        """Register a strategy; later registrations take precedence."""
        self._strategies.append(strategy)

    def get_strategy(self, expense) -> ExpenseDeltaStrategy:
        """Find the strategy for an expense.

        Raises:
            LookupError: If no registered strategy can handle the expense
        """
        for strategy in reversed(self._strategies):
            if strategy.can_handle(expense):
                return strategy
        raise LookupError(f"No delta strategy found for expense {getattr(expense, 'id', None)}")

    @property
    def strategies(self) -> list[ExpenseDeltaStrategy]:
        return list(self._strategies)


# Global registry instance
expense_delta_registry = ExpenseDeltaStrategyRegistry()


def register_expense_delta_strategy(strategy: ExpenseDeltaStrategy) -> None:
    """Register a strategy with the global registry."""
    expense_delta_registry.register(strategy)


def compute_expense_deltas(expense, registry: ExpenseDeltaStrategyRegistry | None = None) -> ExpenseDeltas:
    """Compute the ledger deltas of an expense using the matching strategy."""
    registry = registry or expense_delta_registry
    strategy = registry.get_strategy(expense)
    logger.debug(f"Computing deltas for expense {getattr(expense, 'id', None)} with {type(strategy).__name__}")
    return strategy.calculate_deltas(expense)


def calculate_delta_changes(
    old_expense,
    new_expense,
    registry: ExpenseDeltaStrategyRegistry | None = None,
) -> DeltaChanges:
    """Compute the ledger changes for an edited expense.

    When the ledger month is unchanged, merged_deltas holds the net change per
    apartment. Otherwise the caller applies neg_old_deltas to old_month and
    new_deltas to new_month.
    """
    old_month, old_deltas = compute_expense_deltas(old_expense, registry)
    new_month, new_deltas = compute_expense_deltas(new_expense, registry)
    neg_old = negate_deltas(old_deltas)

    merged: DeltaMap = {}
    if old_month == new_month:
        for source in (neg_old, new_deltas):
            for apartment_id, delta in source.items():
                _add(
                    merged,
                    apartment_id,
                    new_month,
                    income=delta.total_income_delta,
                    expenses=delta.total_expenses_delta,
                )

    return DeltaChanges(
        old_month=old_month,
        new_month=new_month,
        old_deltas=old_deltas,
        new_deltas=new_deltas,
        neg_old_deltas=neg_old,
        merged_deltas=merged,
    )
