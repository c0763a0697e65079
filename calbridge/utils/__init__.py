"""
Utility modules - Shared utilities for the bridge

This package must not import from calbridge.core, calbridge.auth or
calbridge.client to keep the import hierarchy acyclic.
"""

# ============================================
# CONFIGURATION
# ============================================
from .config import BridgeConfig, ConfigDefaults, LoggingConfig, load_config, resolve_config

# ============================================
# LOGGING
# ============================================
from .logger import configure_logging, setup_logger

# ============================================
# RESILIENCE
# ============================================
from .retry import (
    RetryConfig,
    is_retryable_http_error,
    is_rate_limit_error,
    retry_gmail_api,
    retry_poll_api,
)

__all__ = [
    "BridgeConfig",
    "ConfigDefaults",
    "LoggingConfig",
    "load_config",
    "resolve_config",
    "configure_logging",
    "setup_logger",
    "RetryConfig",
    "is_retryable_http_error",
    "is_rate_limit_error",
    "retry_gmail_api",
    "retry_poll_api",
]
