"""Monthly balance-sheet ledger.

One row per (apartment_id, month_year) with

    closing_balance = opening_balance + total_income - total_expenses

Rows are maintained incrementally: each payment or expense change produces
signed deltas that are applied as atomic SQL increments. A row created for a
new month opens with the closing balance of the apartment's latest earlier
month. aggregate_balance_sheets rebuilds the same figures from scratch and is
used to verify the incremental ledger.
"""

import logging
from typing import Iterable, Mapping, NamedTuple, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from src.models import BalanceSheet
from src.services.parsers import month_range
from src.services.payment_delta_service import (
    LedgerDelta,
    group_deltas_by_month,
    is_expense_payment,
    is_in_ledger,
    is_income_payment,
)

logger = logging.getLogger(__name__)

CONTINUITY_TOLERANCE = 0.01


class AggregatedSheet(NamedTuple):
    """Balance figures of one month."""

    month_year: str
    opening: float
    income: float
    expenses: float
    closing: float


class ContinuityResult(NamedTuple):
    """Outcome of a balance-sheet continuity check."""

    is_valid: bool
    errors: list[str]


def aggregate_balance_sheets(payments: Iterable) -> list[AggregatedSheet]:
    """Rebuild monthly balance sheets from a payment history.

    Only payments that are in the ledger (approved, with month and apartment)
    are counted. Months between the first and last month with activity are
    filled so the opening of each month is the closing of the one before.

    Args:
        payments: Payment records (status, category, amount, month_year,
            apartment_id/payer_id, expense_id)

    Returns:
        Sheets sorted by month; empty list when nothing is counted
    """
    income: dict[str, float] = {}
    expenses: dict[str, float] = {}

    for payment in payments:
        if not is_in_ledger(payment):
            continue
        amount = float(payment.amount or 0)
        if is_expense_payment(payment):
            expenses[payment.month_year] = expenses.get(payment.month_year, 0.0) + amount
        elif is_income_payment(payment):
            income[payment.month_year] = income.get(payment.month_year, 0.0) + amount

    months = sorted(set(income) | set(expenses))
    if not months:
        return []

    sheets = []
    opening = 0.0
    for month_year in month_range(months[0], months[-1]):
        month_income = income.get(month_year, 0.0)
        month_expenses = expenses.get(month_year, 0.0)
        closing = opening + month_income - month_expenses
        sheets.append(AggregatedSheet(month_year, opening, month_income, month_expenses, closing))
        opening = closing

    return sheets


def validate_balance_sheet_continuity(sheets: Iterable) -> ContinuityResult:
    """Check that each month opens with the previous month's closing balance.

    Args:
        sheets: Objects with month_year, opening and closing

    Returns:
        ContinuityResult listing every break in the chain
    """
    ordered = sorted(sheets, key=lambda sheet: sheet.month_year)
    errors = []

    for prev_sheet, sheet in zip(ordered, ordered[1:]):
        if abs(sheet.opening - prev_sheet.closing) > CONTINUITY_TOLERANCE:
            errors.append(
                f"Continuity error: {sheet.month_year} opening balance ({sheet.opening}) "
                f"does not match {prev_sheet.month_year} closing balance ({prev_sheet.closing})"
            )

    return ContinuityResult(is_valid=not errors, errors=errors)


class BalanceSheetService:
    """Apply ledger deltas to stored balance sheets."""

    def __init__(self, db: Session):
        self.db = db

    def _opening_balance(self, apartment_id: str, month_year: str) -> float:
        latest = (
            self.db.query(BalanceSheet)
            .filter(
                BalanceSheet.apartment_id == apartment_id,
                BalanceSheet.month_year < month_year,
            )
            .order_by(BalanceSheet.month_year.desc())
            .first()
        )
        return float(latest.closing_balance) if latest else 0.0

    def _apply_delta(self, apartment_id: str, month_year: str, income: float, expenses: float) -> None:
        stmt = (
            update(BalanceSheet)
            .where(
                BalanceSheet.apartment_id == apartment_id,
                BalanceSheet.month_year == month_year,
            )
            .values(
                total_income=BalanceSheet.total_income + income,
                total_expenses=BalanceSheet.total_expenses + expenses,
                closing_balance=BalanceSheet.closing_balance + income - expenses,
            )
            .execution_options(synchronize_session="fetch")
        )
        result = self.db.execute(stmt)
        if result.rowcount:
            return

        opening = self._opening_balance(apartment_id, month_year)
        self.db.add(
            BalanceSheet(
                apartment_id=apartment_id,
                month_year=month_year,
                opening_balance=opening,
                total_income=income,
                total_expenses=expenses,
                closing_balance=opening + income - expenses,
            )
        )
        self.db.flush()
        logger.info(f"Created balance sheet {apartment_id} {month_year} (opening={opening:.2f})")

    def apply_deltas(self, month_year: str, deltas: Mapping[str, LedgerDelta]) -> int:
        """Apply per-apartment deltas to one month.

        Changes are flushed, not committed; the caller owns the transaction.

        Args:
            month_year: Ledger month (YYYY-MM)
            deltas: apartment_id -> delta with total_income_delta and
                total_expenses_delta

        Returns:
            Number of buckets touched
        """
        self.db.flush()
        touched = 0
        for apartment_id, delta in deltas.items():
            income = float(delta.total_income_delta)
            expenses = float(delta.total_expenses_delta)
            if income == 0 and expenses == 0:
                continue
            self._apply_delta(apartment_id, month_year, income, expenses)
            touched += 1
        logger.debug(f"Applied {touched} balance-sheet deltas for {month_year}")
        return touched

    def apply_payment_deltas(self, deltas: list[LedgerDelta]) -> int:
        """Apply reconciler output, grouping deltas by month first."""
        touched = 0
        for month_year, month_deltas in group_deltas_by_month(deltas).items():
            touched += self.apply_deltas(month_year, month_deltas)
        return touched

    def get_balance_sheets(
        self,
        apartment_id: Optional[str] = None,
        month_year: Optional[str] = None,
    ) -> list[BalanceSheet]:
        """List stored balance sheets ordered by month then apartment."""
        query = self.db.query(BalanceSheet)
        if apartment_id:
            query = query.filter(BalanceSheet.apartment_id == apartment_id)
        if month_year:
            query = query.filter(BalanceSheet.month_year == month_year)
        return query.order_by(BalanceSheet.month_year, BalanceSheet.apartment_id).all()
