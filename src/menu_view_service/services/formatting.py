"""Price and schedule formatting helpers."""

CURRENCY_SYMBOLS: dict[str, str] = {
    "COP": "$",
    "USD": "USD",
    "EUR": "€",
}

DAY_NAMES: dict[str, str] = {
    "monday": "Lunes",
    "tuesday": "Martes",
    "wednesday": "Miércoles",
    "thursday": "Jueves",
    "friday": "Viernes",
    "saturday": "Sábado",
    "sunday": "Domingo",
}

DAY_ORDER: dict[str, int] = {day: index for index, day in enumerate(DAY_NAMES, start=1)}

# Unknown weekday keys sort after sunday
UNKNOWN_DAY_ORDER = 999


def format_price(price: int, currency: str) -> str:
    """Format a price with its currency symbol and thousands separators.

    USD places the code after the amount; every other currency prefixes its
    symbol, falling back to the currency code itself.

    Args:
        price: Price in whole currency units
        currency: ISO currency code (COP, USD, EUR, ...)

    Returns:
        str: Formatted price, e.g. "$ 3,500" or "12 USD"
    """
    symbol = CURRENCY_SYMBOLS.get(currency, currency)
    amount = f"{price:,}"
    if currency == "USD":
        return f"{amount} {symbol}"
    return f"{symbol} {amount}"


def capitalize(text: str) -> str:
    """Uppercase the first character, leaving the rest untouched."""
    return text[:1].upper() + text[1:]


def format_day_name(day: str) -> str:
    """Return the display name of a weekday key."""
    return DAY_NAMES.get(day.lower(), capitalize(day))


def sort_schedule_days(schedule: dict[str, str]) -> list[tuple[str, str]]:
    """Sort schedule entries Monday to Sunday.

    Args:
        schedule: Weekday key to opening hours

    Returns:
        list: (day, hours) tuples in weekday order, unknown keys last in stored order
    """
    return sorted(
        schedule.items(),
        key=lambda entry: DAY_ORDER.get(entry[0].lower(), UNKNOWN_DAY_ORDER),
    )
