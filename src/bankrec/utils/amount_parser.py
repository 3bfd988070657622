"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles the formats found in bank statement exports:
    - "123.45"
    - "-123.45"
    - "+123.45"
    - "-45,00" (comma as decimal separator)
    - "1,234.56" / "1.234,56" (thousands separators)
    - "R$ 123.45" (currency symbols)
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount, signed

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    # Remove currency symbols and inner whitespace
    amount_str = re.sub(r"(R\$|[$€£¥]|\s)", "", amount_str)

    # Decide which separator is the decimal point: the right-most one wins
    last_comma = amount_str.rfind(",")
    last_dot = amount_str.rfind(".")
    if last_comma > last_dot:
        amount_str = amount_str.replace(".", "").replace(",", ".")
    else:
        amount_str = amount_str.replace(",", "")

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}'") from e

    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if is_negative:
        amount = -amount
    return amount
