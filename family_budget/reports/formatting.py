"""Currency formatting for alert messages."""

from typing import Optional

from family_budget.config import get_settings


def format_currency(amount: float, currency: Optional[str] = None) -> str:
    """
    Format an amount for display.

    VND has no minor unit and groups thousands with dots: 1.200.000 ₫.
    Other currencies get two decimals and the currency code.
    """
    settings = get_settings().budget
    currency = currency or settings.default_currency
    if currency.upper() == "VND":
        grouped = f"{round(amount):,.0f}".replace(",", ".")
        return f"{grouped} {settings.currency_symbol}"
    return f"{amount:,.2f} {currency.upper()}"
