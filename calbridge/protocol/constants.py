"""
Protocol Constants - Verbs, actions and wire-format markers
"""
from enum import Enum


class ApiVerb(str, Enum):
    """HTTP-like methods carried in the request tag"""
    GET = "GET"
    POST = "POST"
    PATCH = "PATCH"
    DELETE = "DELETE"


class ApiAction(str, Enum):
    """Actions understood by the calendar backend"""
    LIST = "list"
    CREATE = "create"
    UPDATE = "update"
    EVENT = "event"
    HEALTH = "health"


class ResponseStatus(str, Enum):
    """Outcome of a logical call"""
    SUCCESS = "success"
    ERROR = "error"
    SKIPPED = "skipped"


DEFAULT_NAMESPACE = "calendarapi"

ALL_ACTIONS = frozenset(ApiAction)

# Everything below the first of these lines is quoted history added by the
# replying mail client (Outlook rule, then the classic forward/reply marker).
REPLY_QUOTE_DELIMITERS = (
    "_" * 40,
    "-----Original Message-----",
)

# Reply keys that describe the envelope rather than the payload
RESERVED_REPLY_KEYS = frozenset({"status", "error", "code", "requestId"})
