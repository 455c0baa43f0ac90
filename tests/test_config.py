"""Tests for settings loading."""

import pytest
from pydantic import ValidationError

from family_budget.config import BudgetSettings, get_settings, validate_all_settings
from family_budget.reports import format_currency


class TestBudgetSettings:
    """Tests for budget defaults and their environment overrides."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("BUDGET_DEFAULT_CURRENCY", raising=False)
        settings = BudgetSettings()
        assert settings.default_currency == "VND"
        assert settings.currency_symbol == "₫"
        assert settings.default_alert_threshold == 80
        assert settings.top_categories_limit == 5

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("BUDGET_DEFAULT_CURRENCY", "USD")
        assert BudgetSettings().default_currency == "USD"
        assert format_currency(12.5) == "12.50 USD"

    def test_invalid_threshold(self, monkeypatch):
        monkeypatch.setenv("BUDGET_DEFAULT_ALERT_THRESHOLD", "150")
        with pytest.raises(ValidationError):
            BudgetSettings()


class TestValidateAllSettings:
    def test_missing_sheets_configuration_is_reported(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)

        results = validate_all_settings()

        assert results["budget"] is True
        assert results["app"] is True
        assert results["google_sheets"] is False
        assert "google_sheets_error" in results

    def test_settings_are_cached(self):
        assert get_settings() is get_settings()
