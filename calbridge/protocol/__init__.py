"""
Request/response correlation over an email transport

Main exports:
- encode / decode: Message codec
- Dispatcher: Sends tagged request emails
- ResponseCorrelator: Polls for and matches replies
- CleanupAgent: Archives consumed messages in the background
"""

from .constants import ApiAction, ApiVerb, ResponseStatus, ALL_ACTIONS, DEFAULT_NAMESPACE
from .models import (
    CalendarEvent,
    CorrelatedResponse,
    CreateEventData,
    EncodedMessage,
    InboundCandidate,
    OutboundEnvelope,
    SentMeta,
    UpdateEventData,
)
from .codec import build_tag, decode, encode, encode_envelope
from .transport import Transport
from .dispatcher import Dispatcher, new_correlation_id
from .correlator import ResponseCorrelator
from .cleanup import CleanupAgent

__all__ = [
    'ApiAction',
    'ApiVerb',
    'ResponseStatus',
    'ALL_ACTIONS',
    'DEFAULT_NAMESPACE',
    'CalendarEvent',
    'CorrelatedResponse',
    'CreateEventData',
    'EncodedMessage',
    'InboundCandidate',
    'OutboundEnvelope',
    'SentMeta',
    'UpdateEventData',
    'build_tag',
    'decode',
    'encode',
    'encode_envelope',
    'Transport',
    'Dispatcher',
    'new_correlation_id',
    'ResponseCorrelator',
    'CleanupAgent',
]
