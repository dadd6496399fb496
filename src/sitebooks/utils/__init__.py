"""Utility functions for sitebooks."""

from sitebooks.utils.date_parser import parse_date, format_date
from sitebooks.utils.amount_parser import parse_amount, round_cents

__all__ = ["parse_date", "format_date", "parse_amount", "round_cents"]
