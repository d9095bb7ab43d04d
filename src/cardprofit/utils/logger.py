"""Logging infrastructure with cohort/customer scope context."""
import logging
import os
import sys
from contextvars import ContextVar
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional

_scope: ContextVar[Optional[str]] = ContextVar("cardprofit_scope", default=None)


class ScopeContextFilter(logging.Filter):
    """Add the current analysis scope to log records."""

    def filter(self, record):
        """Add scope to record."""
        record.scope = _scope.get() or "system"
        return True


def get_home_dir() -> Path:
    """Base directory for service-owned files (logs, caches)."""
    return Path(os.getenv("CARDPROFIT_HOME", str(Path.home() / ".cardprofit")))


class CardProfitLogger:
    """Centralized logging manager."""

    def __init__(
        self,
        log_level: str = "INFO",
        max_file_size_mb: int = 10,
        backup_count: int = 30
    ):
        self.log_dir = get_home_dir() / "logs"
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.log_file = self.log_dir / "service.log"
        self.scope_filter = ScopeContextFilter()

        self.logger = logging.getLogger("cardprofit")
        self.logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
        self.logger.handlers.clear()

        file_handler = RotatingFileHandler(
            self.log_file,
            maxBytes=max_file_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)

        # stdout carries the report, so console logging goes to stderr
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.INFO)

        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] [scope:%(scope)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

        file_handler.setFormatter(formatter)
        console_handler.setFormatter(formatter)

        file_handler.addFilter(self.scope_filter)
        console_handler.addFilter(self.scope_filter)

        self.logger.addHandler(file_handler)
        self.logger.addHandler(console_handler)

    def get_logger(self) -> logging.Logger:
        """Get the configured logger."""
        return self.logger


# Global logger instance
_logger_instance: Optional[CardProfitLogger] = None


def get_logger(log_level: str = "INFO") -> logging.Logger:
    """Get or create global logger instance."""
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = CardProfitLogger(os.getenv("LOG_LEVEL", log_level))
    return _logger_instance.get_logger()


def configure_logging(log_level: str, max_file_size_mb: int, backup_count: int) -> logging.Logger:
    """Rebuild the global logger from application settings."""
    global _logger_instance
    _logger_instance = CardProfitLogger(log_level, max_file_size_mb, backup_count)
    return _logger_instance.get_logger()


def set_scope_context(scope: Optional[str]):
    """Set the cohort/customer scope for log records in the current task."""
    return _scope.set(scope)


def reset_scope_context(token) -> None:
    """Restore the scope that was active before set_scope_context."""
    _scope.reset(token)
