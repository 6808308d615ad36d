"""Display formatting for money values."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union


CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "INR": "₹",
    "CAD": "C$",
    "AUD": "A$",
}

_CENTS = Decimal("0.01")


def currency_symbol(currency: str) -> str:
    """Symbol for a currency code; unknown codes are shown as the code itself."""
    return CURRENCY_SYMBOLS.get(currency.upper(), currency.upper())


def format_money(value: Union[Decimal, int, float, str], currency: str = "USD") -> str:
    """
    Render an amount with its currency symbol and two decimal places.

    This is the only place amounts are rounded. Negative values keep
    their sign in front of the symbol: -$12.50.
    """
    amount = Decimal(str(value)).quantize(_CENTS, rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    return f"{sign}{currency_symbol(currency)}{abs(amount):,.2f}"
