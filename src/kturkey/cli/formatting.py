"""Display formatting for CLI output."""

from decimal import Decimal
from typing import Optional

from kturkey.domain.currency import quantize_money


def format_money(amount: Optional[Decimal], currency: str = "") -> str:
    """Format an amount with grouping and two decimals, e.g. ``1,234.50 TRY``."""
    if amount is None:
        return "-"
    text = f"{quantize_money(amount):,.2f}"
    return f"{text} {currency}" if currency else text


def truncate(text: Optional[str], width: int) -> str:
    """Cut text to ``width`` characters, marking the cut with '...'."""
    text = text or ""
    if len(text) <= width:
        return text
    return text[: width - 3] + "..."
