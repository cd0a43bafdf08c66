"""FastAPI dependencies wiring sessions into services."""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from src.services import get_db
from src.services.apartment_service import ApartmentService
from src.services.balance_sheet_service import BalanceSheetService
from src.services.config import LedgerConfig, load_config
from src.services.expense_service import ExpenseService
from src.services.expense_split_service import ExpenseSplitService
from src.services.payment_service import PaymentService


@lru_cache(maxsize=1)
def get_config() -> LedgerConfig:
    """Load the configuration once per process."""
    return load_config()


def get_expense_service(db: Session = Depends(get_db)) -> ExpenseService:  # noqa: B008
    config = get_config()
    return ExpenseService(db, ExpenseSplitService(config.no_split_legacy_categories))


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:  # noqa: B008
    return PaymentService(db)


def get_apartment_service(db: Session = Depends(get_db)) -> ApartmentService:  # noqa: B008
    return ApartmentService(db)


def get_balance_sheet_service(db: Session = Depends(get_db)) -> BalanceSheetService:  # noqa: B008
    return BalanceSheetService(db)
