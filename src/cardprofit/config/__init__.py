"""Configuration module."""
from .settings import AppSettings, get_settings
from .manager import ConfigManager, RunConfig

__all__ = ["AppSettings", "get_settings", "ConfigManager", "RunConfig"]
