"""Balance calculation service for apartment-to-apartment debts.

Aggregates the expense history into a net "who owes whom" sheet:

    balance = sum(is_owed) - sum(owes)

Positive balance means the apartment is a net creditor. For each expense, an
apartment listed in owed_by_apartments owes per_apartment_share to the paying
apartment unless it has already settled (paid_by_apartments) or it is the
payer itself. Debts between the same pair of apartments are summed across
expenses before being written into the owes/is_owed maps.

Two implementations are provided:
- calculate_apartment_balances: reference version, apartment x apartment x expense
- calculate_apartment_balances_optimized: two passes (pair totals, then maps)

Both must agree to 2-decimal precision.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Sequence

from src.services.parsers import parse_datetime

logger = logging.getLogger(__name__)


@dataclass
class ApartmentBalance:
    """Net position of one apartment against every other apartment."""

    name: str
    balance: float = 0.0
    owes: Dict[str, float] = field(default_factory=dict)  # creditor_id -> amount
    is_owed: Dict[str, float] = field(default_factory=dict)  # debtor_id -> amount


def _unsettled_debtors(expense) -> list[str]:
    """Apartments that still owe their share of an expense (payer excluded)."""
    payer = expense.paid_by_apartment
    settled = set(expense.paid_by_apartments or [])
    return [
        apartment_id
        for apartment_id in dict.fromkeys(expense.owed_by_apartments or [])
        if apartment_id != payer and apartment_id not in settled
    ]


class BalanceService:
    """Calculate apartment balances from expense records."""

    @staticmethod
    def _init_balances(apartments: Sequence) -> Dict[str, ApartmentBalance]:
        return {apartment.id: ApartmentBalance(name=apartment.name) for apartment in apartments}

    @staticmethod
    def _finalize(balances: Dict[str, ApartmentBalance]) -> Dict[str, ApartmentBalance]:
        for balance in balances.values():
            balance.balance = sum(balance.is_owed.values()) - sum(balance.owes.values())
        return balances

    def calculate_apartment_balances(
        self,
        expenses: Sequence,
        apartments: Sequence,
    ) -> Dict[str, ApartmentBalance]:
        """Calculate balances by checking every (debtor, creditor) pair.

        Reference implementation: for each ordered pair of distinct apartments,
        scans all expenses paid by the creditor for an unsettled share owed by
        the debtor.

        Args:
            expenses: Expense records (paid_by_apartment, owed_by_apartments,
                per_apartment_share, paid_by_apartments)
            apartments: Apartment roster (id, name)

        Returns:
            Dict mapping apartment_id to ApartmentBalance
        """
        balances = self._init_balances(apartments)

        for debtor in apartments:
            for creditor in apartments:
                if debtor.id == creditor.id:
                    continue

                total = 0.0
                has_debt = False
                for expense in expenses:
                    if expense.paid_by_apartment != creditor.id:
                        continue
                    if debtor.id in _unsettled_debtors(expense):
                        total += expense.per_apartment_share
                        has_debt = True

                if has_debt:
                    balances[debtor.id].owes[creditor.id] = total
                    balances[creditor.id].is_owed[debtor.id] = total

        return self._finalize(balances)

    def calculate_apartment_balances_optimized(
        self,
        expenses: Sequence,
        apartments: Sequence,
    ) -> Dict[str, ApartmentBalance]:
        """Calculate balances in a single pass over expenses.

        Pass 1 accumulates (debtor, creditor) totals; pass 2 writes the
        owes/is_owed maps. Apartments outside the roster are ignored.

        Args:
            expenses: Expense records
            apartments: Apartment roster (id, name)

        Returns:
            Dict mapping apartment_id to ApartmentBalance
        """
        balances = self._init_balances(apartments)
        pair_totals: Dict[tuple[str, str], float] = {}

        for expense in expenses:
            creditor = expense.paid_by_apartment
            if creditor not in balances:
                continue
            share = expense.per_apartment_share
            for debtor in _unsettled_debtors(expense):
                if debtor not in balances:
                    continue
                key = (debtor, creditor)
                pair_totals[key] = pair_totals.get(key, 0.0) + share

        for (debtor, creditor), amount in pair_totals.items():
            balances[debtor].owes[creditor] = amount
            balances[creditor].is_owed[debtor] = amount

        logger.debug(
            f"Computed balances for {len(balances)} apartments from {len(expenses)} expenses "
            f"({len(pair_totals)} debt pairs)"
        )
        return self._finalize(balances)

    def calculate_unpaid_bills_count(self, expenses: Iterable) -> int:
        """Count unsettled (expense, owing apartment) pairs.

        The payer and apartments listed in paid_by_apartments are not counted.

        Args:
            expenses: Expense records

        Returns:
            Number of unpaid apartment shares
        """
        return sum(len(_unsettled_debtors(expense)) for expense in expenses)

    def calculate_monthly_expenses(self, expenses: Iterable, month: int, year: int) -> float:
        """Total amount of expenses dated in a calendar month.

        Args:
            expenses: Expense records (amount, date)
            month: Month (1-12)
            year: Year

        Returns:
            Sum of expense amounts in that month
        """
        total = 0.0
        for expense in expenses:
            expense_date = parse_datetime(expense.date)
            if expense_date and expense_date.month == month and expense_date.year == year:
                total += float(expense.amount or 0)
        return total
