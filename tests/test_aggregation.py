"""Tests for transaction grouping, summation and category matching."""

from datetime import datetime

import pytest

from family_budget.aggregation import (
    CategoryMatcher,
    average_amount,
    group_by_category,
    group_by_user,
    latest_transaction_date,
    sum_expenses,
    top_categories,
)
from family_budget.models import Budget, Transaction


def tx(tx_id, category, amount, tx_type="expense", user_id="u1", category_id=None, when=None):
    return Transaction.model_validate({
        "id": tx_id,
        "userId": user_id,
        "category": category,
        "categoryId": category_id,
        "type": tx_type,
        "amount": amount,
        "date": when,
    })


def budget(category, category_id=None):
    return Budget(
        id="b1",
        family_id="fam-1",
        name=category,
        category=category,
        category_id=category_id,
        allocated_amount=100,
        start_date=datetime(2025, 3, 1),
    )


class TestGrouping:
    """Tests for group_by_category and group_by_user."""

    def test_group_by_category_keeps_labels_verbatim(self):
        """Test differently cased labels are separate groups."""
        groups = group_by_category([
            tx("t1", "Food", 10),
            tx("t2", "food", 20),
            tx("t3", "Food", 30),
        ])
        assert set(groups) == {"Food", "food"}
        assert [t.id for t in groups["Food"]] == ["t1", "t3"]

    def test_group_by_category_keeps_surrounding_whitespace(self):
        groups = group_by_category([
            tx("t1", "Food ", 10),
            tx("t2", "Food", 20),
            tx("t3", " Food", 30),
        ])
        assert set(groups) == {"Food ", "Food", " Food"}

    def test_grouping_keeps_income(self):
        """Test type is not filtered at grouping time."""
        groups = group_by_category([tx("t1", "Salary", 100, tx_type="income")])
        assert len(groups["Salary"]) == 1

    def test_group_by_user(self):
        groups = group_by_user([
            tx("t1", "Food", 10, user_id="a"),
            tx("t2", "Food", 20, user_id="b"),
            tx("t3", "Fuel", 30, user_id="a"),
        ])
        assert [t.id for t in groups["a"]] == ["t1", "t3"]
        assert [t.id for t in groups["b"]] == ["t2"]


class TestSummation:
    """Tests for the expense fold."""

    def test_sum_expenses_ignores_income(self):
        total = sum_expenses([
            tx("t1", "Food", 300_000),
            tx("t2", "Food", 1_000_000, tx_type="income"),
            tx("t3", "Food", 250_000),
        ])
        assert total == 550_000

    def test_sum_expenses_empty(self):
        assert sum_expenses([]) == 0

    def test_average_amount(self):
        assert average_amount([tx("t1", "Food", 10), tx("t2", "Food", 30)]) == 20
        assert average_amount([tx("t1", "Pay", 10, tx_type="income")]) == 0

    def test_latest_transaction_date(self):
        latest = latest_transaction_date([
            tx("t1", "Food", 1, when=datetime(2025, 3, 2)),
            tx("t2", "Food", 1, when=datetime(2025, 3, 9)),
            tx("t3", "Food", 1, when=None),
        ])
        assert latest == datetime(2025, 3, 9)
        assert latest_transaction_date([]) is None


class TestCategoryMatcher:
    """Tests for dual-key (id, then name) matching."""

    def test_match_by_name(self):
        selected = CategoryMatcher.select(budget("Ăn uống"), [
            tx("t1", "Ăn uống", 10),
            tx("t2", "Đi lại", 10),
        ])
        assert [t.id for t in selected] == ["t1"]

    def test_match_by_numeric_id(self):
        """Test a numeric categoryId matches the budget's string id."""
        selected = CategoryMatcher.select(budget("Food", category_id="7"), [
            tx("t1", "Groceries", 10, category_id=7),
            tx("t2", "Other", 10, category_id="8"),
        ])
        assert [t.id for t in selected] == ["t1"]

    def test_match_by_id_or_name_without_duplicates(self):
        selected = CategoryMatcher.select(budget("Food", category_id="7"), [
            tx("t1", "Food", 10, category_id="7"),
            tx("t2", "Food", 10),
            tx("t3", None, 10, category_id="7"),
            tx("t4", "Fuel", 10, category_id="9"),
        ])
        assert [t.id for t in selected] == ["t1", "t2", "t3"]

    def test_budget_without_id_matches_by_name_only(self):
        target = budget("Food")
        assert not CategoryMatcher.match_by_id(target, tx("t1", "Other", 1, category_id="7"))
        assert CategoryMatcher.match_by_name(target, tx("t2", "Food", 1))

    def test_name_match_is_exact(self):
        assert not CategoryMatcher.matches(budget("Food"), tx("t1", " food", 1))

    def test_name_match_does_not_strip_whitespace(self):
        """Test padded labels read from storage are not silently matched."""
        assert not CategoryMatcher.matches(budget("Food"), tx("t1", " Food ", 1))
        assert not CategoryMatcher.matches(budget(" Food "), tx("t2", "Food", 1))
        assert CategoryMatcher.matches(budget(" Food "), tx("t3", " Food ", 1))


class TestTopCategories:
    """Tests for per-member top categories."""

    def test_sorted_descending_and_limited(self):
        transactions = [tx(f"t{i}", f"C{i}", amount) for i, amount in enumerate([5, 50, 20, 40, 10, 30])]
        ranked = top_categories(transactions, limit=5)
        assert [amount for _, amount in ranked] == [50, 40, 30, 20, 10]

    def test_income_only_categories_are_left_out(self):
        ranked = top_categories([
            tx("t1", "Salary", 1000, tx_type="income"),
            tx("t2", "Food", 10),
            tx("t3", "Food", 15),
        ])
        assert ranked == [("Food", 25)]

    @pytest.mark.parametrize("limit", [1, 2])
    def test_limit(self, limit):
        ranked = top_categories([tx("t1", "A", 1), tx("t2", "B", 2), tx("t3", "C", 3)], limit=limit)
        assert len(ranked) == limit
