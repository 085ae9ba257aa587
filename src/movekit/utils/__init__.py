"""Utility functions for movekit."""

from movekit.utils.date_parser import parse_date
from movekit.utils.amount_parser import parse_amount

__all__ = ["parse_date", "parse_amount"]
