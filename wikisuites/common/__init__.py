"""
================================================================================
Common Utilities
================================================================================

Shared configuration management and logging setup for the UI suites.

Exports:
    - ConfigLoader: Singleton YAML + environment configuration
    - init_logger: Configure loguru sinks from configuration

Usage:
    from wikisuites.common import ConfigLoader, init_logger

    init_logger()
    base_url = ConfigLoader().get("web.base_url", "https://ru.wikipedia.org")

================================================================================
"""

from .config_loader import ConfigLoader, ConfigurationError
from .log_setup import init_logger, reset_logger

__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "init_logger",
    "reset_logger",
]
