"""Expense service for recording shared costs and settling apartment shares.

Provides methods for:
- Adding expenses (split across the roster by category policy)
- Marking an apartment's share as settled
- Editing and deleting expenses
- Apartment balances and unpaid share counts

Every change to an expense is mirrored into the monthly balance sheets as
incremental deltas within the same transaction.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from src.models import Expense, Payment
from src.services.apartment_service import ApartmentService
from src.services.balance_service import ApartmentBalance, BalanceService
from src.services.balance_sheet_service import BalanceSheetService
from src.services.errors import NotFoundError
from src.services.expense_delta_service import (
    ExpenseState,
    calculate_delta_changes,
    compute_expense_deltas,
    negate_deltas,
)
from src.services.expense_split_service import ExpenseSplitService
from src.services.parsers import DateLike, parse_datetime

logger = logging.getLogger(__name__)


class ExpenseService:
    """Expense recording and settlement operations."""

    def __init__(self, db: Session, split_service: Optional[ExpenseSplitService] = None):
        """Initialize expense service.

        Args:
            db: SQLAlchemy database session
            split_service: Splitter to use (default: ExpenseSplitService())
        """
        self.db = db
        self.split_service = split_service or ExpenseSplitService()
        self.apartments = ApartmentService(db)
        self.ledger = BalanceSheetService(db)
        self.balance_service = BalanceService()

    def _apply_changes(self, old_state: ExpenseState, expense: Expense) -> None:
        changes = calculate_delta_changes(old_state, ExpenseState.from_expense(expense))
        if changes.old_month == changes.new_month:
            self.ledger.apply_deltas(changes.new_month, changes.merged_deltas)
        else:
            self.ledger.apply_deltas(changes.old_month, changes.neg_old_deltas)
            self.ledger.apply_deltas(changes.new_month, changes.new_deltas)

    def add_expense(
        self,
        description: str,
        amount: float,
        category_id: str,
        paying_apartment_id: str,
        date: Optional[DateLike] = None,
        receipt: Optional[str] = None,
    ) -> Expense:
        """Record a new expense fronted by an apartment.

        Args:
            description: What the money was spent on
            amount: Expense amount (must be positive)
            category_id: Expense category
            paying_apartment_id: Apartment that paid
            date: Expense date (default: now)
            receipt: Optional receipt reference

        Returns:
            Created Expense object

        Raises:
            DataNotReadyError: If the apartment roster is empty
            ValueError: If amount is not positive or the payer is unknown
        """
        fields = self.split_service.split_expense(
            amount=amount,
            category_id=category_id,
            paying_apartment_id=paying_apartment_id,
            apartments=self.apartments.list_apartments(),
            categories=self.apartments.list_categories(),
        )

        expense = Expense(
            description=description,
            amount=amount,
            category_id=category_id,
            paid_by_apartment=fields.paid_by_apartment,
            owed_by_apartments=fields.owed_by_apartments,
            per_apartment_share=fields.per_apartment_share,
            paid_by_apartments=fields.paid_by_apartments,
            receipt=receipt,
        )
        if date is not None:
            expense.date = parse_datetime(date)
        self.db.add(expense)
        self.db.flush()

        month_year, deltas = compute_expense_deltas(expense)
        self.ledger.apply_deltas(month_year, deltas)
        self.db.commit()
        self.db.refresh(expense)

        logger.info(
            f"Added expense {expense.id}: {amount:.2f} paid by {paying_apartment_id}, "
            f"owed by {len(fields.owed_by_apartments)} apartments"
        )
        return expense

    def get_expense(self, expense_id: int) -> Expense:
        """Get expense by ID.

        Raises:
            NotFoundError: If the expense does not exist
        """
        expense = self.db.get(Expense, expense_id)
        if expense is None:
            raise NotFoundError(f"Expense {expense_id} not found")
        return expense

    def get_expenses(self, apartment_id: Optional[str] = None) -> List[Expense]:
        """List expenses, newest first.

        Args:
            apartment_id: If given, only expenses paid by or owed by this apartment

        Returns:
            List of Expense objects
        """
        expenses = self.db.query(Expense).order_by(Expense.date.desc(), Expense.id.desc()).all()
        if apartment_id is None:
            return expenses
        return [
            expense
            for expense in expenses
            if expense.paid_by_apartment == apartment_id
            or apartment_id in (expense.owed_by_apartments or [])
        ]

    def mark_apartment_paid(self, expense_id: int, apartment_id: str) -> Expense:
        """Mark an apartment's share of an expense as settled.

        Settling an already settled share is a no-op.

        Raises:
            NotFoundError: If the expense does not exist
            ValueError: If the apartment does not owe a share of the expense
        """
        expense = self.get_expense(expense_id)
        if apartment_id not in (expense.owed_by_apartments or []):
            raise ValueError(f"Apartment {apartment_id} does not owe a share of expense {expense_id}")
        if apartment_id in (expense.paid_by_apartments or []):
            logger.debug(f"Apartment {apartment_id} already settled expense {expense_id}")
            return expense

        old_state = ExpenseState.from_expense(expense)
        # Reassign so the JSON column is flagged dirty
        expense.paid_by_apartments = [*expense.paid_by_apartments, apartment_id]
        self._apply_changes(old_state, expense)
        self.db.commit()
        self.db.refresh(expense)

        logger.info(f"Apartment {apartment_id} settled {expense.per_apartment_share:.2f} of expense {expense_id}")
        return expense

    def update_expense(
        self,
        expense_id: int,
        description: Optional[str] = None,
        amount: Optional[float] = None,
        category_id: Optional[str] = None,
        date: Optional[DateLike] = None,
        receipt: Optional[str] = None,
    ) -> Expense:
        """Edit an expense.

        A change of amount or category re-splits the expense over the current
        roster; apartments that had settled keep their settled status.

        Raises:
            NotFoundError: If the expense does not exist
            DataNotReadyError: If a re-split is needed and the roster is empty
            ValueError: If the new amount is not positive
        """
        expense = self.get_expense(expense_id)
        old_state = ExpenseState.from_expense(expense)

        if description is not None:
            expense.description = description
        if receipt is not None:
            expense.receipt = receipt
        if date is not None:
            expense.date = parse_datetime(date)

        resplit = (amount is not None and amount != expense.amount) or (
            category_id is not None and category_id != expense.category_id
        )
        if resplit:
            fields = self.split_service.split_expense(
                amount=amount if amount is not None else expense.amount,
                category_id=category_id or expense.category_id,
                paying_apartment_id=expense.paid_by_apartment,
                apartments=self.apartments.list_apartments(),
                categories=self.apartments.list_categories(),
            )
            settled = [
                apartment_id
                for apartment_id in old_state.paid_by_apartments
                if apartment_id in fields.owed_by_apartments
            ]
            for apartment_id in fields.paid_by_apartments:
                if apartment_id not in settled:
                    settled.append(apartment_id)

            expense.amount = amount if amount is not None else expense.amount
            expense.category_id = category_id or expense.category_id
            expense.owed_by_apartments = fields.owed_by_apartments
            expense.per_apartment_share = fields.per_apartment_share
            expense.paid_by_apartments = settled

        self._apply_changes(old_state, expense)
        self.db.commit()
        self.db.refresh(expense)

        logger.info(f"Updated expense {expense_id} (resplit={resplit})")
        return expense

    def delete_expense(self, expense_id: int) -> None:
        """Delete an expense and remove its effect from the balance sheets.

        Raises:
            NotFoundError: If the expense does not exist
            ValueError: If payments are linked to the expense
        """
        expense = self.get_expense(expense_id)
        linked = self.db.query(Payment).filter(Payment.expense_id == expense_id).count()
        if linked:
            raise ValueError(f"Expense {expense_id} has {linked} linked payments")

        month_year, deltas = compute_expense_deltas(expense)
        self.ledger.apply_deltas(month_year, negate_deltas(deltas))
        self.db.delete(expense)
        self.db.commit()

        logger.info(f"Deleted expense {expense_id}")

    def get_balances(self) -> dict[str, ApartmentBalance]:
        """Net who-owes-whom balances over all stored expenses."""
        return self.balance_service.calculate_apartment_balances_optimized(
            self.db.query(Expense).all(),
            self.apartments.list_apartments(),
        )

    def get_unpaid_bills_count(self) -> int:
        """Number of unsettled apartment shares over all stored expenses."""
        return self.balance_service.calculate_unpaid_bills_count(self.db.query(Expense).all())

    def get_monthly_expenses(self, month: Optional[int] = None, year: Optional[int] = None) -> float:
        """Total expense amount of a calendar month (default: current month)."""
        now = datetime.now()
        return self.balance_service.calculate_monthly_expenses(
            self.db.query(Expense).all(),
            month or now.month,
            year or now.year,
        )
