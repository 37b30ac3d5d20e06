"""Utility functions for ledgercheck."""

from ledgercheck.utils.date_parser import parse_date, parse_effective_from
from ledgercheck.utils.amount_parser import parse_amount, format_currency, format_percentage

__all__ = [
    "parse_date",
    "parse_effective_from",
    "parse_amount",
    "format_currency",
    "format_percentage",
]
