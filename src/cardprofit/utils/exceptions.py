"""Custom exception classes for CardProfit."""


class CardProfitError(Exception):
    """Base exception for CardProfit."""
    pass


class ConfigError(CardProfitError):
    """Configuration-related errors."""
    pass


class CatalogError(CardProfitError):
    """Card product / benefit data errors."""
    pass


class TransactionDataError(CardProfitError):
    """Unreadable or malformed transaction batch."""
    pass


class NetworkError(CardProfitError):
    """Network and API-related errors."""
    pass


class ClassificationError(CardProfitError):
    """Merchant classification errors."""
    pass


# Retryable errors
class RetryableError(CardProfitError):
    """Base class for errors that should trigger retry."""
    pass


class RetryableNetworkError(RetryableError, NetworkError):
    """Network errors that can be retried."""
    pass
