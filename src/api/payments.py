"""Payment and balance-sheet API endpoints."""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field

from src.api.dependencies import get_balance_sheet_service, get_payment_service
from src.api.errors import success_response
from src.services.balance_sheet_service import BalanceSheetService
from src.services.payment_service import PaymentService

router = APIRouter(prefix="/api", tags=["payments"])


class PaymentResponse(BaseModel):
    """Payment event."""

    id: int
    payer_id: str
    payee_id: str
    apartment_id: str
    category: str
    amount: float
    status: str
    month_year: str
    reason: str | None = None
    expense_id: int | None = None

    model_config = ConfigDict(from_attributes=True)


class BalanceSheetResponse(BaseModel):
    """Monthly balance sheet of one apartment."""

    apartment_id: str
    month_year: str
    opening_balance: float
    total_income: float
    total_expenses: float
    closing_balance: float

    model_config = ConfigDict(from_attributes=True)


class PaymentCreateRequest(BaseModel):
    """Request body for a new payment."""

    payer_id: str = Field(..., min_length=1)
    payee_id: str = Field(..., min_length=1)
    apartment_id: str = Field(..., min_length=1)
    amount: float
    month_year: str | None = None
    category: str = "income"
    status: str = "pending"
    reason: str | None = None
    expense_id: int | None = None


class PaymentUpdateRequest(BaseModel):
    """Request body for editing a payment; only the fields sent are changed."""

    payer_id: str | None = None
    payee_id: str | None = None
    apartment_id: str | None = None
    amount: float | None = None
    month_year: str | None = None
    category: str | None = None
    status: str | None = None
    reason: str | None = None
    expense_id: int | None = None


def _payment_payload(payment) -> dict:
    return PaymentResponse.model_validate(payment).model_dump()


@router.post("/payments", status_code=201)
def create_payment(
    request: PaymentCreateRequest,
    service: PaymentService = Depends(get_payment_service),  # noqa: B008
) -> dict:
    payment = service.add_payment(**request.model_dump())
    return success_response(payment=_payment_payload(payment))


@router.get("/payments")
def list_payments(
    apartment_id: str | None = Query(None),  # noqa: B008
    month_year: str | None = Query(None),  # noqa: B008
    status: str | None = Query(None),  # noqa: B008
    service: PaymentService = Depends(get_payment_service),  # noqa: B008
) -> dict:
    payments = service.get_payments(apartment_id=apartment_id, month_year=month_year, status=status)
    return success_response(payments=[_payment_payload(p) for p in payments])


@router.put("/payments/{payment_id}")
def update_payment(
    payment_id: int,
    request: PaymentUpdateRequest,
    service: PaymentService = Depends(get_payment_service),  # noqa: B008
) -> dict:
    """Edit a payment; approved transitions are reflected in the balance sheets."""
    payment = service.update_payment(payment_id, **request.model_dump(exclude_unset=True))
    return success_response(payment=_payment_payload(payment))


@router.delete("/payments/{payment_id}")
def delete_payment(
    payment_id: int,
    service: PaymentService = Depends(get_payment_service),  # noqa: B008
) -> dict:
    service.delete_payment(payment_id)
    return success_response(deleted=payment_id)


@router.get("/balance-sheets")
def list_balance_sheets(
    apartment_id: str | None = Query(None),  # noqa: B008
    month_year: str | None = Query(None),  # noqa: B008
    service: BalanceSheetService = Depends(get_balance_sheet_service),  # noqa: B008
) -> dict:
    sheets = service.get_balance_sheets(apartment_id=apartment_id, month_year=month_year)
    return success_response(
        balance_sheets=[BalanceSheetResponse.model_validate(s).model_dump() for s in sheets]
    )
