"""Payment service for recording payment events and keeping the ledger in sync.

Provides methods for:
- Recording income and expense payments for an apartment and month
- Editing payments (status, amount, apartment, month, category)
- Deleting payments
- Payment history

Every write runs the payment delta reconciler on the before/after state and
applies the resulting deltas to the monthly balance sheets in the same
transaction.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from src.models import Expense, Payment, PaymentCategory, PaymentStatus
from src.services.apartment_service import ApartmentService
from src.services.balance_sheet_service import BalanceSheetService
from src.services.errors import InvalidStatusError, NotFoundError
from src.services.parsers import month_year_from_date, parse_month_year
from src.services.payment_delta_service import PaymentState, compute_approved_payment_deltas

logger = logging.getLogger(__name__)

VALID_STATUSES = {status.value for status in PaymentStatus}
VALID_CATEGORIES = {category.value for category in PaymentCategory}

# Fields that may be changed by update_payment
UPDATABLE_FIELDS = (
    "payer_id",
    "payee_id",
    "apartment_id",
    "category",
    "amount",
    "status",
    "month_year",
    "reason",
    "expense_id",
)

# Fields that must keep a value
REQUIRED_FIELDS = ("payer_id", "payee_id", "apartment_id", "category", "amount", "status", "month_year")


def normalize_status(status) -> str:
    """Lowercase a payment status and check it is known.

    Raises:
        InvalidStatusError: If the status is not one of the payment statuses
    """
    value = str(getattr(status, "value", status) or "").lower()
    if value not in VALID_STATUSES:
        raise InvalidStatusError(f"Invalid payment status '{status}'. Expected one of: {sorted(VALID_STATUSES)}")
    return value


def normalize_category(category) -> str:
    """Lowercase a payment category and check it is known.

    Raises:
        ValueError: If the category is neither income nor expense
    """
    value = str(getattr(category, "value", category) or "").lower()
    if value not in VALID_CATEGORIES:
        raise ValueError(f"Invalid payment category '{category}'. Expected 'income' or 'expense'")
    return value


class PaymentService:
    """Payment recording operations."""

    def __init__(self, db: Session):
        """Initialize payment service.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db
        self.apartments = ApartmentService(db)
        self.ledger = BalanceSheetService(db)

    def _validate(self, payment: Payment) -> None:
        if payment.amount is None or payment.amount <= 0:
            raise ValueError("Payment amount must be positive")
        parse_month_year(payment.month_year)
        self.apartments.require_apartment(payment.apartment_id)
        if payment.expense_id is not None and self.db.get(Expense, payment.expense_id) is None:
            raise NotFoundError(f"Expense {payment.expense_id} not found")

    def _sync_ledger(self, previous, updated) -> int:
        deltas = compute_approved_payment_deltas(previous, updated)
        if deltas:
            logger.debug(f"Payment ledger deltas: {deltas}")
        return self.ledger.apply_payment_deltas(deltas)

    def add_payment(
        self,
        payer_id: str,
        payee_id: str,
        apartment_id: str,
        amount: float,
        month_year: Optional[str] = None,
        category: str = PaymentCategory.INCOME.value,
        status: str = PaymentStatus.PENDING.value,
        reason: Optional[str] = None,
        expense_id: Optional[int] = None,
    ) -> Payment:
        """Record a payment.

        Args:
            payer_id: Paying user
            payee_id: Receiving user
            apartment_id: Apartment the payment is booked against
            amount: Payment amount (must be positive)
            month_year: Ledger month YYYY-MM (default: current month)
            category: 'income' or 'expense'
            status: Initial status (default: pending)
            reason: Optional note
            expense_id: Expense this payment settles, if any

        Returns:
            Created Payment object

        Raises:
            ValueError: If amount, month or category is invalid
            InvalidStatusError: If status is unknown
            NotFoundError: If the apartment or expense does not exist
        """
        payment = Payment(
            payer_id=payer_id,
            payee_id=payee_id,
            apartment_id=apartment_id,
            amount=amount,
            month_year=month_year or month_year_from_date(),
            category=normalize_category(category),
            status=normalize_status(status),
            reason=reason,
            expense_id=expense_id,
        )
        self._validate(payment)

        self.db.add(payment)
        self.db.flush()
        self._sync_ledger(None, payment)
        self.db.commit()
        self.db.refresh(payment)

        logger.info(
            f"Recorded {payment.category} payment {payment.id}: {amount:.2f} "
            f"for {apartment_id} in {payment.month_year} ({payment.status})"
        )
        return payment

    def get_payment(self, payment_id: int) -> Payment:
        """Get payment by ID.

        Raises:
            NotFoundError: If the payment does not exist
        """
        payment = self.db.get(Payment, payment_id)
        if payment is None:
            raise NotFoundError(f"Payment {payment_id} not found")
        return payment

    def get_payments(
        self,
        apartment_id: Optional[str] = None,
        month_year: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Payment]:
        """List payments, newest month first.

        Args:
            apartment_id: Filter by apartment
            month_year: Filter by ledger month
            status: Filter by status

        Returns:
            List of Payment objects
        """
        query = self.db.query(Payment)
        if apartment_id:
            query = query.filter(Payment.apartment_id == apartment_id)
        if month_year:
            query = query.filter(Payment.month_year == month_year)
        if status:
            query = query.filter(Payment.status == normalize_status(status))
        return query.order_by(Payment.month_year.desc(), Payment.id.desc()).all()

    def update_payment(self, payment_id: int, **changes) -> Payment:
        """Edit a payment and reconcile the balance sheets.

        Args:
            payment_id: Payment to edit
            **changes: New values for any of UPDATABLE_FIELDS

        Returns:
            Updated Payment object

        Raises:
            NotFoundError: If the payment, apartment or expense does not exist
            ValueError: If a field is unknown, a required field is set to None,
                or a new value is invalid
            InvalidStatusError: If the new status is unknown
        """
        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update payment fields: {sorted(unknown)}")
        nulls = sorted(name for name in REQUIRED_FIELDS if name in changes and changes[name] is None)
        if nulls:
            raise ValueError(f"Payment fields cannot be null: {nulls}")

        if "status" in changes:
            changes["status"] = normalize_status(changes["status"])
        if "category" in changes:
            changes["category"] = normalize_category(changes["category"])

        payment = self.get_payment(payment_id)
        previous = PaymentState.from_payment(payment)
        for field_name, value in changes.items():
            setattr(payment, field_name, value)

        try:
            self._validate(payment)
        except (ValueError, NotFoundError):
            self.db.rollback()
            raise

        touched = self._sync_ledger(previous, payment)
        self.db.commit()
        self.db.refresh(payment)

        logger.info(f"Updated payment {payment_id}: {sorted(changes)} ({touched} ledger buckets changed)")
        return payment

    def delete_payment(self, payment_id: int) -> None:
        """Delete a payment and remove its effect from the balance sheets.

        Raises:
            NotFoundError: If the payment does not exist
        """
        payment = self.get_payment(payment_id)
        self._sync_ledger(PaymentState.from_payment(payment), None)
        self.db.delete(payment)
        self.db.commit()

        logger.info(f"Deleted payment {payment_id}")
