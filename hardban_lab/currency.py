"""Money helpers: decimal conversion, rounding, formatting and conversion through USD."""
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

import numpy as np
import pandas as pd

from hardban_lab.exceptions import ValidationFailed

# code -> (symbol, decimals)
SUPPORTED_CURRENCIES = {
    "USD": ("$", 2),
    "EUR": ("€", 2),
    "GBP": ("£", 2),
    "JPY": ("¥", 0),
    "CAD": ("C$", 2),
    "AUD": ("A$", 2),
    "SEK": ("kr", 2),
    "NOK": ("kr", 2),
    "DKK": ("kr", 2),
    "CHF": ("CHF", 2),
    "BRL": ("R$", 2),
    "MXN": ("MX$", 2),
    "INR": ("₹", 2),
    "KRW": ("₩", 0),
    "CNY": ("¥", 2),
    "PLN": ("zł", 2),
}

# units per 1 USD
EXCHANGE_RATES = {
    "USD": Decimal("1.0"),
    "EUR": Decimal("0.85"),
    "GBP": Decimal("0.73"),
    "JPY": Decimal("110.0"),
    "CAD": Decimal("1.25"),
    "AUD": Decimal("1.35"),
    "SEK": Decimal("8.5"),
    "NOK": Decimal("8.8"),
    "DKK": Decimal("6.3"),
    "CHF": Decimal("0.92"),
    "BRL": Decimal("5.2"),
    "MXN": Decimal("20.0"),
    "INR": Decimal("74.0"),
    "KRW": Decimal("1180.0"),
    "CNY": Decimal("6.4"),
    "PLN": Decimal("3.8"),
}

MINIMUM_PAYOUTS = {
    "USD": Decimal("10"),
    "EUR": Decimal("10"),
    "GBP": Decimal("8"),
    "CAD": Decimal("13"),
    "AUD": Decimal("15"),
    "PLN": Decimal("40"),
}
DEFAULT_MINIMUM_PAYOUT = Decimal("10")


def to_decimal(value) -> Decimal:
    """Safe conversion to Decimal, taking the first element of lists and arrays."""
    if isinstance(value, (list, tuple, np.ndarray)):
        value = value[0] if len(value) > 0 else 0
    if value is None or isinstance(value, bool):
        return Decimal("0")
    if isinstance(value, Decimal):
        return value if value.is_finite() else Decimal("0")
    try:
        if pd.isna(value):
            return Decimal("0")
    except (TypeError, ValueError):
        return Decimal("0")
    if isinstance(value, str):
        value = value.strip().replace(",", "")
        if not value:
            return Decimal("0")
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")
    return result if result.is_finite() else Decimal("0")


def decimals_for(currency: str) -> int:
    return SUPPORTED_CURRENCIES.get((currency or "").upper(), (None, 2))[1]


def round_money(value, currency: str = "USD") -> Decimal:
    exponent = Decimal(1).scaleb(-decimals_for(currency))
    return to_decimal(value).quantize(exponent, rounding=ROUND_HALF_UP)


def format_currency(amount, currency: str = "USD") -> str:
    code = (currency or "").upper()
    rounded = round_money(amount, code)
    places = decimals_for(code)
    body = f"{abs(rounded):,.{places}f}"
    sign = "-" if rounded < 0 else ""
    if code not in SUPPORTED_CURRENCIES:
        return f"{sign}{body} {code}"
    symbol = SUPPORTED_CURRENCIES[code][0]
    return f"{sign}{symbol}{body}"


def convert(amount, from_currency: str, to_currency: str) -> Decimal:
    source = (from_currency or "").upper()
    target = (to_currency or "").upper()
    for code in (source, target):
        if code not in EXCHANGE_RATES:
            raise ValidationFailed(f"Unsupported currency: {code}")
    usd = to_decimal(amount) / EXCHANGE_RATES[source]
    return round_money(usd * EXCHANGE_RATES[target], target)


def minimum_payout(currency: str) -> Decimal:
    return MINIMUM_PAYOUTS.get((currency or "").upper(), DEFAULT_MINIMUM_PAYOUT)
