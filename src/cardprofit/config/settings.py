"""Application settings loader from YAML configuration."""
import os
import yaml
from pathlib import Path
from typing import Any, Dict, Optional
from dataclasses import dataclass


DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent.parent / "config.yaml"


@dataclass
class AppSettings:
    """Application-wide settings loaded from config.yaml."""

    # App info
    app_name: str = "CardProfit"
    app_version: str = "1.0.0"

    # Logging
    log_level: str = "INFO"
    log_max_file_size_mb: int = 10
    log_backup_count: int = 30

    # Analysis
    max_groups: int = 50
    max_concurrent_customers: int = 32

    # Sustainability thresholds (percent, except monthly_limit_max)
    cost_rate_warn: float = 1.0
    avg_cost_rate_min: float = 0.3
    avg_cost_rate_max: float = 0.6
    group_cost_rate_max: float = 0.9
    monthly_limit_max: float = 70000

    # Merchant classification
    classifier_provider: str = "industry_bot"
    classifier_batch_size: int = 30
    classifier_poll_interval_seconds: float = 3.0
    classifier_timeout_seconds: int = 60
    classifier_model_name: str = "gemini-2.5-flash-lite"

    # Merchant code cache
    code_cache_fuzzy_threshold: int = 1

    # Retry
    retry_max_retries: int = 3
    retry_initial_delay_seconds: int = 2
    retry_backoff_factor: int = 2

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "AppSettings":
        """Load settings from YAML file, falling back to defaults when none exists."""
        explicit = config_path is not None or bool(os.getenv("CARDPROFIT_CONFIG"))
        if config_path is None:
            config_path = Path(os.getenv("CARDPROFIT_CONFIG", str(DEFAULT_CONFIG_PATH)))

        if not config_path.exists():
            if explicit:
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return cls()

        with open(config_path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}

        return cls.from_dict(config)

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "AppSettings":
        """Build settings from the nested YAML structure; absent keys keep defaults."""
        defaults = cls()

        def section(name: str) -> Dict[str, Any]:
            return config.get(name) or {}

        app = section("app")
        logging_cfg = section("logging")
        analysis = section("analysis")
        thresholds = section("thresholds")
        classifier = section("classifier")
        code_cache = section("code_cache")
        retry = section("retry")

        return cls(
            app_name=app.get("name", defaults.app_name),
            app_version=str(app.get("version", defaults.app_version)),
            log_level=logging_cfg.get("level", defaults.log_level),
            log_max_file_size_mb=logging_cfg.get("max_file_size_mb", defaults.log_max_file_size_mb),
            log_backup_count=logging_cfg.get("backup_count", defaults.log_backup_count),
            max_groups=analysis.get("max_groups", defaults.max_groups),
            max_concurrent_customers=analysis.get("max_concurrent_customers", defaults.max_concurrent_customers),
            cost_rate_warn=thresholds.get("cost_rate_warn", defaults.cost_rate_warn),
            avg_cost_rate_min=thresholds.get("avg_cost_rate_min", defaults.avg_cost_rate_min),
            avg_cost_rate_max=thresholds.get("avg_cost_rate_max", defaults.avg_cost_rate_max),
            group_cost_rate_max=thresholds.get("group_cost_rate_max", defaults.group_cost_rate_max),
            monthly_limit_max=thresholds.get("monthly_limit_max", defaults.monthly_limit_max),
            classifier_provider=classifier.get("provider", defaults.classifier_provider),
            classifier_batch_size=classifier.get("batch_size", defaults.classifier_batch_size),
            classifier_poll_interval_seconds=classifier.get(
                "poll_interval_seconds", defaults.classifier_poll_interval_seconds
            ),
            classifier_timeout_seconds=classifier.get("timeout_seconds", defaults.classifier_timeout_seconds),
            classifier_model_name=classifier.get("model_name", defaults.classifier_model_name),
            code_cache_fuzzy_threshold=code_cache.get("fuzzy_match_threshold", defaults.code_cache_fuzzy_threshold),
            retry_max_retries=retry.get("max_retries", defaults.retry_max_retries),
            retry_initial_delay_seconds=retry.get("initial_delay_seconds", defaults.retry_initial_delay_seconds),
            retry_backoff_factor=retry.get("backoff_factor", defaults.retry_backoff_factor)
        )


# Global settings instance
_settings: Optional[AppSettings] = None


def get_settings() -> AppSettings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = AppSettings.load()
    return _settings
