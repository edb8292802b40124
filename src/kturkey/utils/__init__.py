"""Utility functions for kturkey."""

from kturkey.utils.date_parser import parse_date
from kturkey.utils.amount_parser import parse_amount, parse_rate
from kturkey.utils.account_resolver import resolve_account

__all__ = ["parse_date", "parse_amount", "parse_rate", "resolve_account"]
