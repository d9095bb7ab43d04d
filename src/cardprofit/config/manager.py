"""Run configuration read from the environment."""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional


@dataclass
class RunConfig:
    """Directory locations and service endpoints for one analysis run."""
    card_data_dir: Optional[str] = None
    mydata_dir: Optional[str] = None
    merchant_fee_path: Optional[str] = None
    mcc_code_path: Optional[str] = None
    log_dir: Optional[str] = None
    industry_bot_endpoint: Optional[str] = None
    industry_bot_api_key: Optional[str] = None
    industry_bot_timeout: Optional[int] = None
    gemini_api_key: Optional[str] = None


class ConfigManager:
    """Builds and validates the run configuration."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self.environ = environ if environ is not None else os.environ

    def load_config(self) -> RunConfig:
        """Load configuration from environment variables."""
        timeout = self._get("INDUSTRY_BOT_TIMEOUT")
        try:
            timeout_seconds = int(timeout) if timeout else None
        except ValueError:
            timeout_seconds = None

        return RunConfig(
            card_data_dir=self._get("CARD_DATA_DIR"),
            mydata_dir=self._get("MYDATA_DIR"),
            merchant_fee_path=self._get("MERCHANT_FEE_PATH"),
            mcc_code_path=self._get("MCC_CODE_PATH"),
            log_dir=self._get("PROFITABILITY_LOG_DIR"),
            industry_bot_endpoint=self._get("INDUSTRY_BOT_ENDPOINT"),
            industry_bot_api_key=self._get("INDUSTRY_BOT_API_KEY"),
            industry_bot_timeout=timeout_seconds,
            gemini_api_key=self._get("GEMINI_API_KEY")
        )

    def validate_config(self, config: RunConfig) -> tuple[bool, str]:
        """Validate configuration values."""
        if not config.card_data_dir:
            return False, "Environment variable CARD_DATA_DIR is not set"

        if not config.mydata_dir:
            return False, "Environment variable MYDATA_DIR is not set"

        if not Path(config.card_data_dir).is_dir():
            return False, f"Card data directory not found: {config.card_data_dir}"

        if not Path(config.mydata_dir).is_dir():
            return False, f"Transaction data directory not found: {config.mydata_dir}"

        if config.merchant_fee_path and not Path(config.merchant_fee_path).is_file():
            return False, f"Merchant fee table not found: {config.merchant_fee_path}"

        return True, "Configuration is valid"

    def _get(self, name: str) -> Optional[str]:
        value = self.environ.get(name)
        if value is None:
            return None
        value = value.strip()
        return value or None
