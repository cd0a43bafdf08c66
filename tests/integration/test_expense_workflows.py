"""Integration tests for expense recording, settlement and ledger updates."""

import pytest
from sqlalchemy import event, text
from sqlalchemy.orm import sessionmaker

from src.models import Apartment, Base, BalanceSheet, Category, Expense, Payment
from src.services import create_db_engine
from src.services.apartment_service import ApartmentService
from src.services.balance_sheet_service import BalanceSheetService
from src.services.errors import DataNotReadyError, NotFoundError
from src.services.expense_service import ExpenseService
from src.services.expense_split_service import ExpenseSplitService
from src.services.seeding import SeedService


@pytest.fixture
def service(seeded_session):
    return ExpenseService(seeded_session)


@pytest.fixture
def fk_session():
    """Seeded session on a SQLite database that enforces foreign keys."""
    engine = create_db_engine("sqlite:///:memory:")

    @event.listens_for(engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, autoflush=False)()
    SeedService(session).seed_apartments(["G1", "F1", "F2"])
    session.commit()
    yield session
    session.close()
    engine.dispose()


def _sheets(session, month_year="2025-08"):
    return {
        sheet.apartment_id: sheet
        for sheet in BalanceSheetService(session).get_balance_sheets(month_year=month_year)
    }


class TestAddExpense:
    """Tests for add_expense."""

    def test_split_expense_is_persisted(self, service, seeded_session):
        expense = service.add_expense("Water bill", 300.0, "utilities", "G1", date="2025-08-10")

        stored = seeded_session.get(Expense, expense.id)
        assert stored.owed_by_apartments == ["F1", "F2", "G1"]
        assert stored.per_apartment_share == 100.0
        assert stored.paid_by_apartments == ["G1"]

    def test_split_expense_updates_balance_sheets(self, service, seeded_session):
        service.add_expense("Water bill", 300.0, "utilities", "G1", date="2025-08-10")

        sheets = _sheets(seeded_session)
        assert sheets["G1"].total_income == 200.0
        assert sheets["F1"].total_expenses == 100.0
        assert sheets["F2"].closing_balance == -100.0

    def test_no_split_category_touches_no_sheets(self, service, seeded_session):
        expense = service.add_expense("Deep clean", 80.0, "cleaning", "F1", date="2025-08-10")

        assert expense.owed_by_apartments == []
        assert expense.per_apartment_share == 0
        assert _sheets(seeded_session) == {}

    def test_empty_roster_raises_data_not_ready(self, db_session):
        with pytest.raises(DataNotReadyError):
            ExpenseService(db_session).add_expense("Bill", 10.0, "utilities", "G1")

        assert db_session.query(Expense).count() == 0

    def test_unknown_payer_raises(self, service):
        with pytest.raises(ValueError, match="not in the roster"):
            service.add_expense("Bill", 10.0, "utilities", "Z9")

    def test_custom_legacy_categories(self, seeded_session):
        service = ExpenseService(seeded_session, ExpenseSplitService(["garden"]))

        expense = service.add_expense("Plants", 45.0, "garden", "G1")

        assert expense.owed_by_apartments == []


class TestSettlement:
    """Tests for mark_apartment_paid."""

    def test_mark_paid_reduces_debt_and_ledger(self, service, seeded_session):
        expense = service.add_expense("Water bill", 300.0, "utilities", "G1", date="2025-08-10")

        updated = service.mark_apartment_paid(expense.id, "F1")

        assert updated.paid_by_apartments == ["G1", "F1"]
        balances = service.get_balances()
        assert balances["F1"].owes == {}
        assert balances["G1"].is_owed == {"F2": 100.0}
        sheets = _sheets(seeded_session)
        assert sheets["G1"].total_income == 100.0
        assert sheets["F1"].total_expenses == 0.0

    def test_mark_paid_twice_is_noop(self, service, seeded_session):
        expense = service.add_expense("Water bill", 300.0, "utilities", "G1", date="2025-08-10")
        service.mark_apartment_paid(expense.id, "F1")

        service.mark_apartment_paid(expense.id, "F1")

        assert seeded_session.get(Expense, expense.id).paid_by_apartments == ["G1", "F1"]
        assert _sheets(seeded_session)["G1"].total_income == 100.0

    def test_apartment_not_owing_raises(self, service):
        expense = service.add_expense("Deep clean", 80.0, "cleaning", "F1")

        with pytest.raises(ValueError, match="does not owe"):
            service.mark_apartment_paid(expense.id, "G1")

    def test_missing_expense_raises(self, service):
        with pytest.raises(NotFoundError):
            service.mark_apartment_paid(999, "G1")


class TestEditAndDelete:
    """Tests for update_expense and delete_expense."""

    def test_amount_change_resplits_and_keeps_settlements(self, service, seeded_session):
        expense = service.add_expense("Water bill", 300.0, "utilities", "G1", date="2025-08-10")
        service.mark_apartment_paid(expense.id, "F2")

        updated = service.update_expense(expense.id, amount=600.0)

        assert updated.per_apartment_share == 200.0
        assert set(updated.paid_by_apartments) == {"G1", "F2"}
        sheets = _sheets(seeded_session)
        assert sheets["G1"].total_income == 200.0
        assert sheets["F1"].total_expenses == 200.0
        assert sheets["F2"].total_expenses == 0.0

    def test_date_change_moves_ledger_month(self, service, seeded_session):
        expense = service.add_expense("Water bill", 300.0, "utilities", "G1", date="2025-08-10")

        service.update_expense(expense.id, date="2025-09-02")

        august = _sheets(seeded_session, "2025-08")
        september = _sheets(seeded_session, "2025-09")
        assert august["G1"].total_income == 0.0
        assert september["G1"].total_income == 200.0
        assert september["F1"].total_expenses == 100.0

    def test_description_only_change_keeps_ledger(self, service, seeded_session):
        expense = service.add_expense("Water bill", 300.0, "utilities", "G1", date="2025-08-10")

        updated = service.update_expense(expense.id, description="Water bill (July)")

        assert updated.description == "Water bill (July)"
        assert _sheets(seeded_session)["G1"].total_income == 200.0

    def test_delete_reverses_ledger(self, service, seeded_session):
        expense = service.add_expense("Water bill", 300.0, "utilities", "G1", date="2025-08-10")

        service.delete_expense(expense.id)

        assert seeded_session.get(Expense, expense.id) is None
        sheets = _sheets(seeded_session)
        assert all(sheet.closing_balance == 0 for sheet in sheets.values())

    def test_delete_with_linked_payment_raises(self, service, seeded_session):
        expense = service.add_expense("Water bill", 300.0, "utilities", "G1", date="2025-08-10")
        seeded_session.add(
            Payment(
                payer_id="u1",
                payee_id="u2",
                apartment_id="F1",
                category="expense",
                amount=100.0,
                status="pending",
                month_year="2025-08",
                expense_id=expense.id,
            )
        )
        seeded_session.commit()

        with pytest.raises(ValueError, match="linked payments"):
            service.delete_expense(expense.id)


class TestQueries:
    """Tests for listing and balance queries."""

    def test_get_expenses_filters_by_apartment(self, service, seeded_session):
        shared = service.add_expense("Water bill", 300.0, "utilities", "G1")
        personal = service.add_expense("Deep clean", 80.0, "cleaning", "F1")

        assert {e.id for e in service.get_expenses()} == {shared.id, personal.id}
        assert {e.id for e in service.get_expenses("F2")} == {shared.id}
        assert {e.id for e in service.get_expenses("F1")} == {shared.id, personal.id}

    def test_balances_and_unpaid_count(self, service, seeded_session):
        service.add_expense("Water bill", 300.0, "utilities", "G1")
        service.add_expense("CCTV", 90.0, "cctv", "F1")

        balances = service.get_balances()

        # G1 is owed 100 by F1 and F2, owes F1 30; F1 is owed 30 by G1 and F2
        assert balances["G1"].balance == pytest.approx(170.0)
        assert balances["F1"].balance == pytest.approx(-40.0)
        assert balances["F2"].balance == pytest.approx(-130.0)
        assert sum(b.balance for b in balances.values()) == pytest.approx(0)
        assert service.get_unpaid_bills_count() == 4

    def test_monthly_expenses(self, service):
        service.add_expense("Water bill", 300.0, "utilities", "G1", date="2025-08-10")
        service.add_expense("Repairs", 50.0, "repairs", "F1", date="2025-09-01")

        assert service.get_monthly_expenses(8, 2025) == pytest.approx(300.0)

    def test_roster_is_seeded(self, seeded_session):
        assert seeded_session.query(Apartment).count() == 3
        assert seeded_session.query(BalanceSheet).count() == 0


class TestExpenseDates:
    """Ledger months follow the UTC date of an expense."""

    def test_offset_date_books_into_utc_month(self, service, seeded_session):
        expense = service.add_expense("Water bill", 300.0, "utilities", "G1", date="2025-08-31T23:30:00-02:00")

        assert _sheets(seeded_session, "2025-08") == {}
        assert _sheets(seeded_session, "2025-09")["G1"].total_income == 200.0

        service.delete_expense(expense.id)

        assert all(sheet.closing_balance == 0 for sheet in _sheets(seeded_session, "2025-09").values())
        assert _sheets(seeded_session, "2025-08") == {}


class TestLegacyCategoriesWithForeignKeys:
    """Legacy category ids are storable when foreign keys are enforced."""

    def test_foreign_keys_are_enforced(self, fk_session):
        assert fk_session.execute(text("PRAGMA foreign_keys")).scalar() == 1

    def test_unknown_legacy_category_is_stored(self, fk_session):
        service = ExpenseService(fk_session, ExpenseSplitService(["garden"]))

        expense = service.add_expense("Plants", 45.0, "garden", "G1", date="2025-08-10")

        assert fk_session.get(Expense, expense.id).category_id == "garden"
        assert expense.owed_by_apartments == []


class TestCategoryManagement:
    """Category policy changes drive later splits."""

    def test_toggling_no_split_changes_next_split(self, service, seeded_session):
        categories = ApartmentService(seeded_session)

        categories.update_category("utilities", no_split=True)
        personal = service.add_expense("Own meter", 90.0, "utilities", "G1")
        categories.update_category("utilities", no_split=False)
        shared = service.add_expense("Water bill", 90.0, "utilities", "G1")

        assert personal.owed_by_apartments == []
        assert shared.per_apartment_share == 30.0

    def test_existing_splits_are_kept(self, service, seeded_session):
        expense = service.add_expense("Water bill", 300.0, "utilities", "G1")

        ApartmentService(seeded_session).update_category("utilities", no_split=True)

        assert seeded_session.get(Expense, expense.id).per_apartment_share == 100.0

    def test_new_no_split_category(self, service, seeded_session):
        category = ApartmentService(seeded_session).create_category("Garden Tools", icon="🌱", no_split=True)

        expense = service.add_expense("Shears", 25.0, category.id, "F1")

        assert category.id == "garden-tools"
        assert expense.owed_by_apartments == []

    def test_duplicate_category_raises(self, seeded_session):
        with pytest.raises(ValueError, match="already exists"):
            ApartmentService(seeded_session).create_category("Utilities")

    def test_blank_name_raises(self, seeded_session):
        with pytest.raises(ValueError, match="name is required"):
            ApartmentService(seeded_session).create_category("  ")

    def test_delete_unused_category(self, seeded_session):
        ApartmentService(seeded_session).delete_category("security")

        assert seeded_session.get(Category, "security") is None

    def test_delete_category_in_use_raises(self, service, seeded_session):
        service.add_expense("CCTV", 90.0, "cctv", "F1")

        with pytest.raises(ValueError, match="used by 1 expenses"):
            ApartmentService(seeded_session).delete_category("cctv")

    def test_missing_category_raises(self, seeded_session):
        with pytest.raises(NotFoundError):
            ApartmentService(seeded_session).update_category("nope", no_split=True)
