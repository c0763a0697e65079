"""
CalBridge Exceptions

Unified exception hierarchy for the email-bridged calendar API.

Only NotConnectedError, AuthFailedError and ConfigurationError reach callers
as exceptions. SendFailedError and CorrelationTimeoutError are caught at the
call boundary and turned into `status: error` responses.

Usage:
    from calbridge.exceptions import (
        CalBridgeError,
        NotConnectedError,
        SendFailedError,
        CorrelationTimeoutError,
        ErrorCodes,
    )
"""
from typing import Any, Dict, Optional


class ErrorCodes:
    """Machine-readable error codes carried by errors and error responses"""
    AUTH_FAILED = "AUTH_FAILED"
    SEND_FAILED = "SEND_FAILED"
    TIMEOUT = "TIMEOUT"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    INVALID_CONFIG = "INVALID_CONFIG"
    NOT_CONNECTED = "NOT_CONNECTED"
    UNSUPPORTED_ACTION = "UNSUPPORTED_ACTION"
    REMOTE_ERROR = "REMOTE_ERROR"
    UNKNOWN = "UNKNOWN"


class CalBridgeError(Exception):
    """
    Base exception for all CalBridge operations.

    Attributes:
        message: Human readable description
        code: One of ErrorCodes
        correlation_id: Correlation id of the logical call, when one was minted
        details: Optional extra context
        cause: Underlying exception, if any
    """

    code = ErrorCodes.UNKNOWN

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        correlation_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None
    ):
        self.message = message
        if code is not None:
            self.code = code
        self.correlation_id = correlation_id
        self.details = details or {}
        self.cause = cause
        super().__init__(self.message)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(code={self.code}, "
            f"correlation_id={self.correlation_id}, message={self.message})"
        )


class NotConnectedError(CalBridgeError):
    """Raised when an operation is attempted before connect()."""
    code = ErrorCodes.NOT_CONNECTED


class SendFailedError(CalBridgeError):
    """Raised when the outbound request email could not be sent."""
    code = ErrorCodes.SEND_FAILED


class CorrelationTimeoutError(CalBridgeError):
    """Raised when no matching reply arrived before the deadline."""
    code = ErrorCodes.TIMEOUT

    def __init__(
        self,
        message: str,
        correlation_id: Optional[str] = None,
        elapsed_ms: int = 0,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, correlation_id=correlation_id, details=details)
        self.elapsed_ms = elapsed_ms


class AuthFailedError(CalBridgeError):
    """Raised when OAuth credentials cannot be loaded, refreshed or obtained."""
    code = ErrorCodes.AUTH_FAILED


class ConfigurationError(CalBridgeError):
    """Raised for invalid or missing configuration."""
    code = ErrorCodes.INVALID_CONFIG
