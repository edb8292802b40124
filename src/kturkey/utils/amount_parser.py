"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "₺123.45", "€123.45", "$123.45"
    - "1,234.56"
    - "1.234,56" (Turkish grouping with decimal comma)
    - "1234,56"
    - "-123.45" or "(123.45)" (negative)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    # Remove whitespace
    amount_str = amount_str.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    # Remove currency symbols and trailing codes like "TL"
    amount_str = re.sub(r"[$€£¥₺₽]", "", amount_str)
    amount_str = re.sub(r"\s*(TL|TRY|EUR|USD|GBP)$", "", amount_str, flags=re.IGNORECASE)
    amount_str = amount_str.replace(" ", "")

    if "," in amount_str and "." in amount_str:
        if amount_str.rfind(",") > amount_str.rfind("."):
            # 1.234,56
            amount_str = amount_str.replace(".", "").replace(",", ".")
        else:
            # 1,234.56
            amount_str = amount_str.replace(",", "")
    elif "," in amount_str:
        head, _, tail = amount_str.rpartition(",")
        if len(tail) == 3 and head:
            # 1,234
            amount_str = amount_str.replace(",", "")
        else:
            amount_str = amount_str.replace(",", ".")

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if is_negative:
        amount = -amount
    return amount


def parse_rate(rate_str: str) -> Decimal:
    """Parse an exchange rate, which must be greater than zero.

    Raises:
        ValueError: If the rate cannot be parsed or is not positive
    """
    rate = parse_amount(rate_str)
    if rate <= 0:
        raise ValueError(f"Exchange rate must be greater than zero, got {rate}")
    return rate
