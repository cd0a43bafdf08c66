"""Pytest configuration for tests - in-memory database and API client."""

import os
from types import SimpleNamespace

# Set test database URL BEFORE any imports from src
# This ensures the SessionLocal and engine use an in-memory database
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from src.api.app import app  # noqa: E402
from src.models import Base  # noqa: E402
from src.services import create_db_engine, get_db  # noqa: E402
from src.services.seeding import SeedService  # noqa: E402

TEST_APARTMENT_IDS = ["G1", "F1", "F2"]


@pytest.fixture
def db_session():
    """Create test database session on a fresh in-memory database."""
    engine = create_db_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False)
    session = SessionLocal()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def seeded_session(db_session):
    """Session with a three-apartment roster and the default categories."""
    seeder = SeedService(db_session)
    seeder.seed_apartments(TEST_APARTMENT_IDS)
    seeder.seed_categories()
    db_session.commit()
    return db_session


@pytest.fixture
def client(seeded_session):
    """FastAPI test client bound to the seeded test session."""

    def override_get_db():
        yield seeded_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def empty_client(db_session):
    """FastAPI test client bound to a database without apartments."""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _apartment(apartment_id: str, name: str | None = None):
    """Lightweight apartment record for pure-function tests."""
    return SimpleNamespace(id=apartment_id, name=name or f"Apartment {apartment_id}")


def _category(category_id: str, no_split: bool = False, name: str | None = None):
    """Lightweight category record for pure-function tests."""
    return SimpleNamespace(id=category_id, name=name or category_id.title(), no_split=no_split)


def _expense(
    paid_by: str,
    owed: list[str],
    share: float,
    paid: list[str] | None = None,
    amount: float | None = None,
    date: str = "2025-08-15T10:00:00Z",
    expense_id: int | None = None,
):
    """Lightweight expense record for pure-function tests."""
    return SimpleNamespace(
        id=expense_id,
        paid_by_apartment=paid_by,
        owed_by_apartments=list(owed),
        per_apartment_share=share,
        paid_by_apartments=list(paid if paid is not None else [paid_by]),
        amount=amount if amount is not None else share * max(len(owed), 1),
        date=date,
    )


def _payment(
    amount: float,
    status: str = "approved",
    category: str = "income",
    month_year: str = "2025-08",
    apartment_id: str | None = "G1",
    payer_id: str = "user-1",
    expense_id: int | None = None,
):
    """Lightweight payment record for pure-function tests."""
    return SimpleNamespace(
        amount=amount,
        status=status,
        category=category,
        month_year=month_year,
        apartment_id=apartment_id,
        payer_id=payer_id,
        expense_id=expense_id,
    )


@pytest.fixture
def make_apartment():
    return _apartment


@pytest.fixture
def make_category():
    return _category


@pytest.fixture
def make_expense():
    return _expense


@pytest.fixture
def make_payment():
    return _payment
