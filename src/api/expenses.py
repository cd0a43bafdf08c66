"""Expense, apartment and balance API endpoints."""

from dataclasses import asdict
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field

from src.api.dependencies import get_apartment_service, get_expense_service
from src.api.errors import success_response
from src.services.apartment_service import ApartmentService
from src.services.expense_service import ExpenseService
from src.services.expense_split_service import ExpenseDebtFields

router = APIRouter(prefix="/api", tags=["expenses"])


# Response schemas
class ApartmentResponse(BaseModel):
    """Apartment in the roster."""

    id: str
    name: str
    members: list[str] = []

    model_config = ConfigDict(from_attributes=True)


class CategoryResponse(BaseModel):
    """Expense category."""

    id: str
    name: str
    icon: str | None = None
    no_split: bool = False

    model_config = ConfigDict(from_attributes=True)


class ExpenseResponse(BaseModel):
    """Expense with its debt-bearing fields."""

    id: int
    description: str
    amount: float
    date: datetime
    category_id: str
    paid_by_apartment: str
    owed_by_apartments: list[str]
    per_apartment_share: float
    paid_by_apartments: list[str]
    receipt: str | None = None

    model_config = ConfigDict(from_attributes=True)


# Request schemas
class ExpenseCreateRequest(BaseModel):
    """Request body for a new expense."""

    description: str = ""
    amount: float
    category_id: str
    paid_by_apartment: str
    date: datetime | None = None
    receipt: str | None = None


class ExpenseUpdateRequest(BaseModel):
    """Request body for editing an expense."""

    description: str | None = None
    amount: float | None = None
    category_id: str | None = None
    date: datetime | None = None
    receipt: str | None = None


class CategoryCreateRequest(BaseModel):
    """Request body for a new category."""

    name: str = Field(..., min_length=1)
    id: str | None = None
    icon: str | None = None
    no_split: bool = False


class CategoryUpdateRequest(BaseModel):
    """Request body for editing a category; omitted fields are unchanged."""

    name: str | None = None
    icon: str | None = None
    no_split: bool | None = None


class MarkPaidRequest(BaseModel):
    """Request body for settling an apartment's share."""

    apartment_id: str = Field(..., min_length=1)


def _expense_payload(expense) -> dict:
    return ExpenseResponse.model_validate(expense).model_dump(mode="json")


@router.get("/apartments")
def list_apartments(
    service: ApartmentService = Depends(get_apartment_service),  # noqa: B008
) -> dict:
    apartments = service.list_apartments()
    return success_response(
        apartments=[ApartmentResponse.model_validate(a).model_dump() for a in apartments]
    )


@router.get("/categories")
def list_categories(
    service: ApartmentService = Depends(get_apartment_service),  # noqa: B008
) -> dict:
    categories = service.list_categories()
    return success_response(
        categories=[CategoryResponse.model_validate(c).model_dump() for c in categories]
    )


@router.post("/categories", status_code=201)
def create_category(
    request: CategoryCreateRequest,
    service: ApartmentService = Depends(get_apartment_service),  # noqa: B008
) -> dict:
    """Add a category; no_split decides whether its expenses are shared."""
    category = service.create_category(
        name=request.name,
        icon=request.icon,
        no_split=request.no_split,
        category_id=request.id,
    )
    return success_response(category=CategoryResponse.model_validate(category).model_dump())


@router.put("/categories/{category_id}")
def update_category(
    category_id: str,
    request: CategoryUpdateRequest,
    service: ApartmentService = Depends(get_apartment_service),  # noqa: B008
) -> dict:
    category = service.update_category(category_id, **request.model_dump(exclude_unset=True))
    return success_response(category=CategoryResponse.model_validate(category).model_dump())


@router.delete("/categories/{category_id}")
def delete_category(
    category_id: str,
    service: ApartmentService = Depends(get_apartment_service),  # noqa: B008
) -> dict:
    service.delete_category(category_id)
    return success_response(deleted=category_id)


@router.post("/expenses", status_code=201)
def create_expense(
    request: ExpenseCreateRequest,
    service: ExpenseService = Depends(get_expense_service),  # noqa: B008
) -> dict:
    """Add an expense and split it across the apartment roster."""
    expense = service.add_expense(
        description=request.description,
        amount=request.amount,
        category_id=request.category_id,
        paying_apartment_id=request.paid_by_apartment,
        date=request.date,
        receipt=request.receipt,
    )
    return success_response(
        expense=_expense_payload(expense),
        message=service.split_service.describe_split(
            request.amount, ExpenseDebtFields.from_expense(expense)
        ),
    )


@router.get("/expenses")
def list_expenses(
    apartment_id: str | None = Query(None),  # noqa: B008
    service: ExpenseService = Depends(get_expense_service),  # noqa: B008
) -> dict:
    """List expenses, optionally those paid or owed by one apartment."""
    expenses = service.get_expenses(apartment_id=apartment_id)
    return success_response(expenses=[_expense_payload(e) for e in expenses])


@router.put("/expenses/{expense_id}")
def update_expense(
    expense_id: int,
    request: ExpenseUpdateRequest,
    service: ExpenseService = Depends(get_expense_service),  # noqa: B008
) -> dict:
    expense = service.update_expense(expense_id, **request.model_dump(exclude_unset=True))
    return success_response(expense=_expense_payload(expense))


@router.put("/expenses/{expense_id}/paid")
def mark_expense_paid(
    expense_id: int,
    request: MarkPaidRequest,
    service: ExpenseService = Depends(get_expense_service),  # noqa: B008
) -> dict:
    """Mark one apartment's share of an expense as settled."""
    expense = service.mark_apartment_paid(expense_id, request.apartment_id)
    return success_response(expense=_expense_payload(expense))


@router.delete("/expenses/{expense_id}")
def delete_expense(
    expense_id: int,
    service: ExpenseService = Depends(get_expense_service),  # noqa: B008
) -> dict:
    service.delete_expense(expense_id)
    return success_response(deleted=expense_id)


@router.get("/balances")
def get_balances(
    service: ExpenseService = Depends(get_expense_service),  # noqa: B008
) -> dict:
    """Net who-owes-whom balances and the number of unpaid shares."""
    balances = service.get_balances()
    return success_response(
        balances={apartment_id: asdict(balance) for apartment_id, balance in balances.items()},
        unpaid_bills_count=service.get_unpaid_bills_count(),
    )
