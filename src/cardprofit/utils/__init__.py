"""Utility modules."""
from .logger import get_logger, configure_logging, set_scope_context, reset_scope_context
from .exceptions import (
    CardProfitError,
    ConfigError,
    CatalogError,
    TransactionDataError,
    NetworkError,
    ClassificationError,
    RetryableError,
    RetryableNetworkError
)
from .retry import retry_with_backoff
from .fields import first_present, has_any_field, to_decimal

__all__ = [
    "get_logger",
    "configure_logging",
    "set_scope_context",
    "reset_scope_context",
    "CardProfitError",
    "ConfigError",
    "CatalogError",
    "TransactionDataError",
    "NetworkError",
    "ClassificationError",
    "RetryableError",
    "RetryableNetworkError",
    "retry_with_backoff",
    "first_present",
    "has_any_field",
    "to_decimal"
]
