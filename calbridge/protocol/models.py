"""
Protocol data model

Records exchanged between the codec, dispatcher, correlator and client, plus
the request models callers use for calendar events.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from ..exceptions import CalBridgeError, ErrorCodes
from .constants import ApiAction, ApiVerb, ResponseStatus, RESERVED_REPLY_KEYS


# ============================================================================
# WIRE RECORDS
# ============================================================================

@dataclass(frozen=True)
class OutboundEnvelope:
    """One logical request before it is encoded"""
    correlation_id: str
    verb: ApiVerb
    action: ApiAction
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class EncodedMessage:
    """Codec output: subject tag and JSON body"""
    tag: str
    body: str


@dataclass(frozen=True)
class InboundCandidate:
    """A fetched inbound message that may or may not answer a pending call"""
    transport_id: str
    thread_id: str
    origin_address: str
    tag_text: str
    body_text: str
    received_at: Optional[datetime] = None


@dataclass(frozen=True)
class SentMeta:
    """Transport-assigned identifiers of a dispatched request"""
    correlation_id: str
    transport_id: str
    thread_id: str
    sent_at: datetime


# ============================================================================
# RESPONSE
# ============================================================================

@dataclass(frozen=True)
class CorrelatedResponse:
    """
    Result of one logical call.

    Every public client operation returns this shape, whatever happened to
    the call, so callers never need exception handling for ordinary failures.
    """
    status: ResponseStatus
    correlation_id: Optional[str] = None
    transport_id: Optional[str] = None
    thread_id: Optional[str] = None
    data: Any = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.status == ResponseStatus.SUCCESS

    @classmethod
    def from_payload(
        cls,
        payload: Dict[str, Any],
        correlation_id: str,
        transport_id: str,
        thread_id: Optional[str] = None,
        duration_ms: int = 0
    ) -> "CorrelatedResponse":
        """
        Build a response from a decoded reply body.

        The reply's `status`, `error` and `code` keys describe the outcome; an
        explicit `data` key is unwrapped, otherwise the remaining keys are the
        data.
        """
        raw_status = payload.get("status")
        error = payload.get("error")

        if raw_status == ResponseStatus.ERROR.value or (raw_status is None and error):
            status = ResponseStatus.ERROR
        elif raw_status == ResponseStatus.SKIPPED.value:
            status = ResponseStatus.SKIPPED
        else:
            status = ResponseStatus.SUCCESS

        if "data" in payload:
            data = payload["data"]
        else:
            data = {k: v for k, v in payload.items() if k not in RESERVED_REPLY_KEYS}

        error_code = None
        if status == ResponseStatus.ERROR:
            error_code = payload.get("code") or ErrorCodes.REMOTE_ERROR

        return cls(
            status=status,
            correlation_id=correlation_id,
            transport_id=transport_id,
            thread_id=thread_id,
            data=data,
            error=str(error) if error is not None else None,
            error_code=error_code,
            duration_ms=duration_ms,
        )

    @classmethod
    def from_error(cls, exc: CalBridgeError, duration_ms: int = 0) -> "CorrelatedResponse":
        """Normalize a protocol-level failure into an error response"""
        return cls(
            status=ResponseStatus.ERROR,
            correlation_id=exc.correlation_id,
            error=exc.message,
            error_code=exc.code,
            duration_ms=duration_ms,
        )

    @classmethod
    def skipped(cls, action: ApiAction, duration_ms: int = 0) -> "CorrelatedResponse":
        """Response for an action the backend does not support"""
        return cls(
            status=ResponseStatus.SKIPPED,
            error=f"Action '{action.value}' is not supported by the backend",
            error_code=ErrorCodes.UNSUPPORTED_ACTION,
            duration_ms=duration_ms,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "correlation_id": self.correlation_id,
            "transport_id": self.transport_id,
            "thread_id": self.thread_id,
            "data": self.data,
            "error": self.error,
            "error_code": self.error_code,
            "duration_ms": self.duration_ms,
        }


# ============================================================================
# CALENDAR REQUEST MODELS
# ============================================================================

class CalendarEvent(BaseModel):
    """A calendar event as returned by the backend"""
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    subject: Optional[str] = None
    start: Optional[str] = None
    end: Optional[str] = None
    location: Optional[str] = None
    body: Optional[str] = None


class CreateEventData(BaseModel):
    """Fields for a new event"""
    model_config = ConfigDict(extra="allow")

    subject: str
    start: str
    end: str
    location: Optional[str] = None
    body: Optional[str] = None


class UpdateEventData(BaseModel):
    """Fields to change on an existing event"""
    model_config = ConfigDict(extra="allow")

    id: str
    subject: Optional[str] = None
    start: Optional[str] = None
    end: Optional[str] = None
    location: Optional[str] = None
    body: Optional[str] = None
