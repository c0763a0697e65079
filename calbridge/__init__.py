"""
CalBridge - Calendar API calls over an email request/response bus

Main exports:
- CalendarEmailClient: Async client for list/create/update/delete/health calls
- CorrelatedResponse: The result shape every call returns
- load_config / resolve_config: Configuration loading
"""

from .client import CalendarEmailClient, ConnectionState
from .exceptions import (
    AuthFailedError,
    CalBridgeError,
    ConfigurationError,
    CorrelationTimeoutError,
    ErrorCodes,
    NotConnectedError,
    SendFailedError,
)
from .protocol import (
    ApiAction,
    ApiVerb,
    CalendarEvent,
    CorrelatedResponse,
    CreateEventData,
    ResponseStatus,
    UpdateEventData,
)
from .utils.config import BridgeConfig, ConfigDefaults, load_config, resolve_config

__version__ = "0.1.0"

__all__ = [
    'CalendarEmailClient',
    'ConnectionState',
    'AuthFailedError',
    'CalBridgeError',
    'ConfigurationError',
    'CorrelationTimeoutError',
    'ErrorCodes',
    'NotConnectedError',
    'SendFailedError',
    'ApiAction',
    'ApiVerb',
    'CalendarEvent',
    'CorrelatedResponse',
    'CreateEventData',
    'ResponseStatus',
    'UpdateEventData',
    'BridgeConfig',
    'ConfigDefaults',
    'load_config',
    'resolve_config',
]
