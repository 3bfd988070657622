"""Utility functions for bankrec."""

from bankrec.utils.date_parser import parse_date, parse_statement_date, month_bucket
from bankrec.utils.amount_parser import parse_amount

__all__ = ["parse_date", "parse_statement_date", "month_bucket", "parse_amount"]
