"""Payment delta reconciler for the monthly balance-sheet ledger.

Translates a payment's transition (previous state -> updated state) into the
minimal set of signed deltas to apply to the (apartment_id, month_year)
balance-sheet buckets, instead of rebuilding the ledger from all payments.

A payment is reflected in the ledger only while its status is APPROVED:

    pending|rejected|cancelled -> approved   +updated.amount at updated key
    approved -> pending|rejected|cancelled   -previous.amount at previous key
    approved -> approved, same key           one net delta (updated - previous)
    approved -> approved, key changed        -previous at old key, +updated at new key

Zero-effect results are dropped. The reconciler never reads or writes the
ledger; callers apply each delta once as an atomic increment.
"""

from typing import NamedTuple, Optional

from src.models.payment import PaymentCategory, PaymentStatus


class LedgerDelta(NamedTuple):
    """Signed adjustment for one balance-sheet bucket."""

    apartment_id: str
    month_year: str
    total_income_delta: float = 0.0
    total_expenses_delta: float = 0.0

    @property
    def key(self) -> tuple[str, str]:
        return (self.apartment_id, self.month_year)

    @property
    def is_zero(self) -> bool:
        return abs(self.total_income_delta) + abs(self.total_expenses_delta) == 0


class PaymentState(NamedTuple):
    """Immutable snapshot of the ledger-relevant fields of a payment."""

    status: Optional[str] = None
    category: Optional[str] = None
    amount: float = 0.0
    apartment_id: Optional[str] = None
    month_year: Optional[str] = None
    payer_id: Optional[str] = None
    expense_id: Optional[int] = None

    @classmethod
    def from_payment(cls, payment) -> "PaymentState":
        """Snapshot a payment record before it is mutated in place."""
        return cls(
            status=getattr(payment, "status", None),
            category=getattr(payment, "category", None),
            amount=float(getattr(payment, "amount", 0) or 0),
            apartment_id=getattr(payment, "apartment_id", None),
            month_year=getattr(payment, "month_year", None),
            payer_id=getattr(payment, "payer_id", None),
            expense_id=getattr(payment, "expense_id", None),
        )


def _lower(value) -> str:
    if value is None:
        return ""
    # str-based enums compare by value
    return str(getattr(value, "value", value)).lower()


def _apartment_of(payment) -> Optional[str]:
    return getattr(payment, "apartment_id", None) or getattr(payment, "payer_id", None)


def is_in_ledger(payment) -> bool:
    """True when the payment currently contributes to the balance sheets."""
    return (
        payment is not None
        and _lower(getattr(payment, "status", None)) == PaymentStatus.APPROVED.value
        and bool(getattr(payment, "month_year", None))
        and bool(_apartment_of(payment))
    )


def is_expense_payment(payment) -> bool:
    return payment is not None and (
        _lower(getattr(payment, "category", None)) == PaymentCategory.EXPENSE.value
        or bool(getattr(payment, "expense_id", None))
    )


def is_income_payment(payment) -> bool:
    return (
        payment is not None
        and _lower(getattr(payment, "category", None)) == PaymentCategory.INCOME.value
        and not getattr(payment, "expense_id", None)
    )


def _make_delta(payment, sign: int, include_income: bool, include_expenses: bool) -> LedgerDelta:
    amount = float(getattr(payment, "amount", 0) or 0) * sign
    return LedgerDelta(
        apartment_id=_apartment_of(payment),
        month_year=payment.month_year,
        total_income_delta=amount if include_income and is_income_payment(payment) else 0.0,
        total_expenses_delta=amount if include_expenses and is_expense_payment(payment) else 0.0,
    )


def _compute_deltas(
    previous,
    updated,
    include_income: bool,
    include_expenses: bool,
) -> list[LedgerDelta]:
    deltas: list[LedgerDelta] = []

    if is_in_ledger(previous):
        deltas.append(_make_delta(previous, -1, include_income, include_expenses))
    if is_in_ledger(updated):
        deltas.append(_make_delta(updated, 1, include_income, include_expenses))

    # Same bucket on both sides: collapse into one net delta
    if len(deltas) == 2 and deltas[0].key == deltas[1].key:
        merged = LedgerDelta(
            apartment_id=deltas[0].apartment_id,
            month_year=deltas[0].month_year,
            total_income_delta=deltas[0].total_income_delta + deltas[1].total_income_delta,
            total_expenses_delta=deltas[0].total_expenses_delta + deltas[1].total_expenses_delta,
        )
        return [] if merged.is_zero else [merged]

    return [delta for delta in deltas if not delta.is_zero]


def compute_approved_expense_payment_deltas(previous=None, updated=None) -> list[LedgerDelta]:
    """Compute expense-side ledger deltas for a payment transition.

    Args:
        previous: Payment state before the change (None on creation)
        updated: Payment state after the change (None on deletion)

    Returns:
        Deltas with total_expenses_delta set; empty when nothing changes
    """
    return _compute_deltas(previous, updated, include_income=False, include_expenses=True)


def compute_approved_income_payment_deltas(previous=None, updated=None) -> list[LedgerDelta]:
    """Compute income-side ledger deltas for a payment transition.

    Mirrors compute_approved_expense_payment_deltas for income payments.
    """
    return _compute_deltas(previous, updated, include_income=True, include_expenses=False)


def compute_approved_payment_deltas(previous=None, updated=None) -> list[LedgerDelta]:
    """Compute both income and expense ledger deltas for a payment transition."""
    return _compute_deltas(previous, updated, include_income=True, include_expenses=True)


def group_deltas_by_month(
    deltas: list[LedgerDelta],
) -> dict[str, dict[str, LedgerDelta]]:
    """Sum deltas per (month_year, apartment_id) bucket.

    Returns:
        Dict mapping month_year to {apartment_id: LedgerDelta}
    """
    by_month: dict[str, dict[str, LedgerDelta]] = {}
    for delta in deltas:
        month = by_month.setdefault(delta.month_year, {})
        current = month.get(delta.apartment_id)
        if current is None:
            month[delta.apartment_id] = delta
        else:
            month[delta.apartment_id] = current._replace(
                total_income_delta=current.total_income_delta + delta.total_income_delta,
                total_expenses_delta=current.total_expenses_delta + delta.total_expenses_delta,
            )
    return by_month
