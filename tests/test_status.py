"""Tests for the budget status calculator and spending limit evaluator."""

import math

import pytest

from family_budget.models import BudgetStatus
from family_budget.status import (
    calculate_budget_status,
    classify_status,
    evaluate_spending_limit,
    is_alert_due,
)


class TestClassifyStatus:
    """Tier boundaries are inclusive on the lower bound."""

    @pytest.mark.parametrize("raw, expected", [
        (0, BudgetStatus.SAFE),
        (49.999, BudgetStatus.SAFE),
        (50, BudgetStatus.WARNING),
        (79.999, BudgetStatus.WARNING),
        (80, BudgetStatus.CRITICAL),
        (250, BudgetStatus.CRITICAL),
    ])
    def test_boundaries(self, raw, expected):
        assert classify_status(raw) == expected


class TestCalculateBudgetStatus:
    """Tests for calculate_budget_status."""

    def test_warning_scenario(self):
        result = calculate_budget_status(1_000_000, 550_000)
        assert result.percentage_used == pytest.approx(55)
        assert result.status == BudgetStatus.WARNING
        assert result.remaining_amount == 450_000
        assert result.percentage_remaining == pytest.approx(45)

    def test_overspent_is_clamped_but_critical(self):
        """Test the clamped display value does not hide overspend."""
        result = calculate_budget_status(1_000_000, 1_200_000)
        assert result.percentage_used == 100
        assert result.raw_percentage_used == pytest.approx(120)
        assert result.status == BudgetStatus.CRITICAL
        assert result.remaining_amount == 0
        assert result.percentage_remaining == 0

    def test_zero_allocation_is_zero_percent(self):
        """Test no NaN or infinity for a zero allocation."""
        result = calculate_budget_status(0, 500)
        assert result.percentage_used == 0
        assert result.raw_percentage_used == 0
        assert not math.isnan(result.percentage_used)
        assert result.status == BudgetStatus.SAFE
        assert result.remaining_amount == 0

    @pytest.mark.parametrize("allocated, spent", [(100, 0), (100, 100), (100, 130), (0, 0), (50, 20)])
    def test_remaining_is_never_negative(self, allocated, spent):
        result = calculate_budget_status(allocated, spent)
        assert result.remaining_amount == max(0, allocated - spent)
        assert 0 <= result.percentage_used <= 100


class TestSpendingLimit:
    """Tests for evaluate_spending_limit."""

    def test_over_limit(self):
        result = evaluate_spending_limit(2_000_000, 2_500_000)
        assert result.is_over_limit
        assert result.percentage_used == 100
        assert result.status == BudgetStatus.CRITICAL

    def test_critical_without_being_over(self):
        """Test tier and over-limit are separate facts."""
        result = evaluate_spending_limit(2_000_000, 1_800_000)
        assert result.status == BudgetStatus.CRITICAL
        assert not result.is_over_limit

    def test_exactly_at_limit_is_not_over(self):
        result = evaluate_spending_limit(1000, 1000)
        assert not result.is_over_limit
        assert result.percentage_used == 100


class TestAlertThreshold:
    def test_default_threshold_applies_when_unset(self):
        assert is_alert_due(80, None)
        assert not is_alert_due(79, None)

    def test_custom_threshold(self):
        assert is_alert_due(60, 60)
        assert not is_alert_due(59, 60)
