"""
Configuration management
"""
import os
from typing import Any, Dict, List, Mapping, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError, field_validator, model_validator

from ..exceptions import ConfigurationError
from ..protocol.constants import ApiAction, DEFAULT_NAMESPACE
from .logger import LOG_LEVELS


# ============================================
# CONFIGURATION DEFAULTS
# ============================================

class ConfigDefaults:
    """Default configuration values as constants"""

    # OAuth defaults
    CREDENTIALS_PATH = "credentials.json"
    TOKEN_PATH = "token.json"
    OAUTH_REDIRECT_PORT = 3847
    OAUTH_CONSENT_TIMEOUT_SECONDS = 300
    SCOPES = [
        "https://www.googleapis.com/auth/gmail.send",
        "https://www.googleapis.com/auth/gmail.readonly",
        "https://www.googleapis.com/auth/gmail.modify",
    ]

    # Polling defaults
    POLL_INTERVAL_MS = 3000
    REQUEST_TIMEOUT_MS = 180000
    MIN_POLL_INTERVAL_MS = 500
    MIN_REQUEST_TIMEOUT_MS = 5000
    MAX_RESULTS = 35
    SINCE_BUFFER_SECONDS = 60  # tolerate clock skew between hosts

    # Cleanup defaults
    CLEANUP_MODE_TRASH = "trash"
    CLEANUP_MODE_ARCHIVE = "archive"

    # Logging defaults
    LOGGING_LEVEL_INFO = "INFO"

    # Config file defaults
    CONFIG_PATH_DEFAULT = "calbridge.yaml"

    # Environment fallbacks for the addresses
    ENV_SENDER_EMAIL = "CALBRIDGE_SENDER_EMAIL"
    ENV_RECIPIENT_EMAIL = "CALBRIDGE_RECIPIENT_EMAIL"
    ENV_RESPONSE_SENDER_EMAIL = "CALBRIDGE_RESPONSE_SENDER_EMAIL"


# ============================================
# CONFIGURATION MODELS
# ============================================

class LoggingConfig(BaseModel):
    """Logging configuration"""
    level: str = ConfigDefaults.LOGGING_LEVEL_INFO
    file: Optional[str] = None

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"level must be one of {', '.join(LOG_LEVELS)}")
        return level



class BridgeConfig(BaseModel):
    """Main configuration"""
    # Gmail address requests are sent from
    sender_email: str
    # Mailbox watched by the calendar backend
    recipient_email: str
    # Address replies arrive from; defaults to recipient_email
    response_sender_email: Optional[str] = None

    credentials_path: str = ConfigDefaults.CREDENTIALS_PATH
    token_path: str = ConfigDefaults.TOKEN_PATH
    oauth_redirect_port: int = ConfigDefaults.OAUTH_REDIRECT_PORT
    scopes: List[str] = list(ConfigDefaults.SCOPES)

    poll_interval_ms: int = ConfigDefaults.POLL_INTERVAL_MS
    request_timeout_ms: int = ConfigDefaults.REQUEST_TIMEOUT_MS
    max_results: int = ConfigDefaults.MAX_RESULTS
    since_buffer_seconds: int = ConfigDefaults.SINCE_BUFFER_SECONDS

    namespace: str = DEFAULT_NAMESPACE
    supported_actions: List[ApiAction] = list(ApiAction)

    cleanup_enabled: bool = True
    cleanup_mode: str = ConfigDefaults.CLEANUP_MODE_TRASH

    logging: LoggingConfig = LoggingConfig()

    @field_validator("sender_email", "recipient_email")
    @classmethod
    def _require_address(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("address is required")
        return value.strip()

    @field_validator("poll_interval_ms")
    @classmethod
    def _check_poll_interval(cls, value: int) -> int:
        if value < ConfigDefaults.MIN_POLL_INTERVAL_MS:
            raise ValueError(
                f"poll_interval_ms must be at least {ConfigDefaults.MIN_POLL_INTERVAL_MS}ms"
            )
        return value

    @field_validator("request_timeout_ms")
    @classmethod
    def _check_request_timeout(cls, value: int) -> int:
        if value < ConfigDefaults.MIN_REQUEST_TIMEOUT_MS:
            raise ValueError(
                f"request_timeout_ms must be at least {ConfigDefaults.MIN_REQUEST_TIMEOUT_MS}ms"
            )
        return value

    @field_validator("max_results")
    @classmethod
    def _check_max_results(cls, value: int) -> int:
        if value < 1:
            raise ValueError("max_results must be positive")
        return value

    @field_validator("cleanup_mode")
    @classmethod
    def _check_cleanup_mode(cls, value: str) -> str:
        allowed = (ConfigDefaults.CLEANUP_MODE_TRASH, ConfigDefaults.CLEANUP_MODE_ARCHIVE)
        if value not in allowed:
            raise ValueError(f"cleanup_mode must be one of {allowed}")
        return value

    @model_validator(mode="after")
    def _default_response_sender(self) -> "BridgeConfig":
        if not self.response_sender_email:
            self.response_sender_email = self.recipient_email
        return self


def resolve_config(partial: Optional[Mapping[str, Any]] = None) -> BridgeConfig:
    """
    Merge a partial configuration mapping over the defaults and validate it.

    Raises:
        ConfigurationError: If a required field is missing or a value is invalid
    """
    values = dict(partial or {})
    _apply_env_fallbacks(values)

    try:
        return BridgeConfig(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}", cause=e) from e


def load_config(config_path: Optional[str] = None) -> BridgeConfig:
    """
    Load configuration from YAML file and environment variables.

    A missing file is only an error when the path was given explicitly; the
    default path falls back to environment variables alone.
    """
    load_dotenv()

    path = config_path or os.getenv("CALBRIDGE_CONFIG", ConfigDefaults.CONFIG_PATH_DEFAULT)
    config_dict: Dict[str, Any] = {}

    if os.path.exists(path):
        with open(path, 'r') as f:
            config_dict = yaml.safe_load(f) or {}
        if not isinstance(config_dict, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")
    elif config_path:
        raise ConfigurationError(f"Config file not found: {config_path}")

    config_dict = _replace_env_vars(config_dict)

    return resolve_config(config_dict)


def _apply_env_fallbacks(values: Dict[str, Any]) -> None:
    """Fill missing addresses from CALBRIDGE_* environment variables."""
    fallbacks = {
        "sender_email": ConfigDefaults.ENV_SENDER_EMAIL,
        "recipient_email": ConfigDefaults.ENV_RECIPIENT_EMAIL,
        "response_sender_email": ConfigDefaults.ENV_RESPONSE_SENDER_EMAIL,
    }
    for key, env_name in fallbacks.items():
        if not values.get(key) and os.getenv(env_name):
            values[key] = os.getenv(env_name)


def _replace_env_vars(obj: Any) -> Any:
    """
    Recursively replace ${VAR} placeholders with environment variables.
    """
    if isinstance(obj, dict):
        return {k: _replace_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_replace_env_vars(item) for item in obj]
    elif isinstance(obj, str) and obj.startswith("${") and obj.endswith("}"):
        var_name = obj[2:-1]
        env_value = os.getenv(var_name)
        if env_value:
            return env_value
        return obj
    return obj
