import re

_CURRENCY_JUNK = re.compile(r'[$,\s]')


def format_currency(amount: float) -> str:
    """``1234.5`` -> ``'$1,234.50'``; negatives as ``'-$12.00'``."""
    sign = '-' if amount < 0 else ''
    return f"{sign}${abs(amount):,.2f}"


def format_number(num: float, decimals: int = 2) -> str:
    return f"{num:.{decimals}f}"


def format_quantity(num: float) -> str:
    """Plain decimal, no exponent and no trailing ``.0``: ``1234567.0`` -> ``'1234567'``."""
    num = float(num)
    if num.is_integer():
        return str(int(num))
    return repr(num)


def parse_formatted_currency(formatted: str) -> float:
    """Inverse of :func:`format_currency`; unparseable input gives 0."""
    cleaned = _CURRENCY_JUNK.sub('', formatted or '')
    try:
        return float(cleaned)
    except ValueError:
        return 0.0
