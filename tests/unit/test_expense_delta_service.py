"""Unit tests for expense ledger deltas and the strategy registry."""

import pytest

from src.services.expense_delta_service import (
    ExpenseDeltas,
    ExpenseDeltaStrategy,
    ExpenseDeltaStrategyRegistry,
    ExpenseState,
    StandardExpenseDeltaStrategy,
    calculate_delta_changes,
    compute_expense_deltas,
    negate_deltas,
)
from src.services.payment_delta_service import LedgerDelta


class TestStandardStrategy:
    """Tests for the default expense delta strategy."""

    def test_split_expense_deltas(self, make_expense):
        expense = make_expense("G1", ["G1", "F1", "F2"], 100.0, date="2025-08-15T10:00:00Z")

        month_year, deltas = compute_expense_deltas(expense)

        assert month_year == "2025-08"
        assert deltas == {
            "F1": LedgerDelta("F1", "2025-08", 0.0, 100.0),
            "F2": LedgerDelta("F2", "2025-08", 0.0, 100.0),
            "G1": LedgerDelta("G1", "2025-08", 200.0, 0.0),
        }

    def test_settled_apartments_are_excluded(self, make_expense):
        expense = make_expense("G1", ["G1", "F1", "F2"], 100.0, paid=["G1", "F2"])

        _, deltas = compute_expense_deltas(expense)

        assert set(deltas) == {"F1", "G1"}
        assert deltas["G1"].total_income_delta == 100.0

    def test_no_split_expense_has_no_effect(self, make_expense):
        expense = make_expense("G1", [], 0.0, paid=[], amount=50.0)

        _, deltas = compute_expense_deltas(expense)

        assert all(delta.is_zero for delta in deltas.values())

    def test_duplicate_owed_entries_count_once(self, make_expense):
        expense = make_expense("G1", ["G1", "F1", "F1"], 10.0)

        _, deltas = compute_expense_deltas(expense)

        assert deltas["F1"].total_expenses_delta == 10.0
        assert deltas["G1"].total_income_delta == 10.0

    def test_deltas_balance_out(self, make_expense):
        expense = make_expense("S1", ["G1", "F1", "S1", "T1"], 12.5, paid=["S1", "T1"])

        _, deltas = compute_expense_deltas(expense)

        income = sum(delta.total_income_delta for delta in deltas.values())
        expenses = sum(delta.total_expenses_delta for delta in deltas.values())
        assert income == expenses == 25.0


class TestRegistry:
    """Tests for strategy registration."""

    class FixedStrategy(ExpenseDeltaStrategy):
        def __init__(self, handles: bool):
            self.handles = handles

        def can_handle(self, expense) -> bool:
            return self.handles

        def calculate_deltas(self, expense) -> ExpenseDeltas:
            return ExpenseDeltas("2000-01", {})

    def test_standard_strategy_is_registered_by_default(self):
        registry = ExpenseDeltaStrategyRegistry()

        assert len(registry.strategies) == 1
        assert isinstance(registry.strategies[0], StandardExpenseDeltaStrategy)

    def test_last_registered_strategy_wins(self, make_expense):
        registry = ExpenseDeltaStrategyRegistry()
        custom = self.FixedStrategy(handles=True)
        registry.register(custom)

        assert registry.get_strategy(make_expense("G1", ["G1"], 1.0)) is custom
        assert compute_expense_deltas(make_expense("G1", ["G1"], 1.0), registry).month_year == "2000-01"

    def test_strategy_that_cannot_handle_is_skipped(self, make_expense):
        registry = ExpenseDeltaStrategyRegistry()
        registry.register(self.FixedStrategy(handles=False))

        strategy = registry.get_strategy(make_expense("G1", ["G1"], 1.0))

        assert isinstance(strategy, StandardExpenseDeltaStrategy)

    def test_no_matching_strategy_raises(self, make_expense):
        registry = ExpenseDeltaStrategyRegistry()
        registry._strategies.clear()

        with pytest.raises(LookupError, match="No delta strategy"):
            registry.get_strategy(make_expense("G1", ["G1"], 1.0))


class TestDeltaChanges:
    """Tests for edits of an existing expense."""

    def test_settlement_in_same_month_merges(self, make_expense):
        expense = make_expense("G1", ["G1", "F1", "F2"], 100.0)
        old_state = ExpenseState.from_expense(expense)
        expense.paid_by_apartments = ["G1", "F1"]

        changes = calculate_delta_changes(old_state, ExpenseState.from_expense(expense))

        assert changes.old_month == changes.new_month == "2025-08"
        assert changes.merged_deltas["F1"].total_expenses_delta == -100.0
        assert changes.merged_deltas["G1"].total_income_delta == -100.0
        assert changes.merged_deltas["F2"].is_zero

    def test_month_change_keeps_separate_deltas(self, make_expense):
        old = make_expense("G1", ["G1", "F1"], 50.0, date="2025-08-31T12:00:00Z")
        new = make_expense("G1", ["G1", "F1"], 50.0, date="2025-09-01T12:00:00Z")

        changes = calculate_delta_changes(old, new)

        assert (changes.old_month, changes.new_month) == ("2025-08", "2025-09")
        assert changes.merged_deltas == {}
        assert changes.neg_old_deltas["F1"].total_expenses_delta == -50.0
        assert changes.new_deltas["F1"].total_expenses_delta == 50.0

    def test_negate_deltas(self):
        deltas = {"G1": LedgerDelta("G1", "2025-08", 20.0, -5.0)}

        assert negate_deltas(deltas) == {"G1": LedgerDelta("G1", "2025-08", -20.0, 5.0)}

    def test_state_snapshot_is_immutable_copy(self, make_expense):
        expense = make_expense("G1", ["G1", "F1"], 50.0)

        state = ExpenseState.from_expense(expense)
        expense.paid_by_apartments.append("F1")

        assert state.paid_by_apartments == ("G1",)
