"""Formatting helpers for amounts stored in minor currency units."""


def format_amount(cents: int) -> str:
    """Render an amount in cents as a dollar string.

    Whole-dollar amounts omit the fractional part.

    Examples:
        >>> format_amount(49900)
        '$499'
        >>> format_amount(149900)
        '$1,499'
        >>> format_amount(1050)
        '$10.50'
    """
    sign = "-" if cents < 0 else ""
    dollars, remainder = divmod(abs(cents), 100)
    if remainder:
        return f"{sign}${dollars:,}.{remainder:02d}"
    return f"{sign}${dollars:,}"
