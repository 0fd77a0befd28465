"""Configuration module for the dues client."""

from talahum_dues.config.logging import configure_logging, get_logger
from talahum_dues.config.settings import FlatSettings, get_settings

__all__ = ["FlatSettings", "get_settings", "configure_logging", "get_logger"]
