"""Integer minor-unit money helpers."""


def format_cents(amount_cents: int, symbol: str = "$") -> str:
    """
    Render an integer amount of cents for human audit notes.

    >>> format_cents(123456)
    '$1,234.56'
    >>> format_cents(-5)
    '-$0.05'
    """
    if isinstance(amount_cents, bool) or not isinstance(amount_cents, int):
        raise TypeError(f"amount_cents must be int, got {type(amount_cents).__name__}")
    sign = "-" if amount_cents < 0 else ""
    whole, cents = divmod(abs(amount_cents), 100)
    return f"{sign}{symbol}{whole:,}.{cents:02d}"
