"""Transaction batches and cohorts."""
from .models import Cohort, CustomerBatch, Transaction, parse_date
from .reader import TransactionReader, validate_records
from .discovery import discover_cohorts

__all__ = [
    "Cohort",
    "CustomerBatch",
    "Transaction",
    "parse_date",
    "TransactionReader",
    "validate_records",
    "discover_cohorts"
]
