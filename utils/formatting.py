"""
Formatting utilities for report and API display values.
"""


def format_currency(amount: float, currency: str = "USD") -> str:
    """
    Format an amount as whole-unit currency.

    Args:
        amount: The amount in whole units (e.g., dollars, not cents).
        currency: Currency code (default USD).

    Returns:
        Formatted currency string, e.g. "$750,000" or "-$2,744".
    """
    symbols = {
        "USD": "$",
        "CAD": "$",
        "GBP": "£",
        "EUR": "€",
    }
    symbol = symbols.get(currency, currency + " ")
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(round(amount)):,}"


def format_percent(value: float, decimals: int = 1) -> str:
    """
    Format a number as a percentage.

    Args:
        value: The percentage value.
        decimals: Number of decimal places.

    Returns:
        Formatted percentage string.
    """
    return f"{value:.{decimals}f}%"


def format_quantity(value: float) -> str:
    """Render a count or measurement without a trailing '.0'."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)
