"""
Message Codec - Request tagging and tolerant reply decoding

Outbound requests carry their routing information in the subject tag:

    #calendarapi GET list [3f2b...]

and only the JSON payload in the body; the backend validates the body
against a strict schema, so the correlation id never goes there.

Replies are written by a mail client, so the body may carry a signature,
a disclaimer or the quoted original request after the JSON object.
"""
import json
from typing import Any, Dict, Optional

from .constants import ApiAction, ApiVerb, DEFAULT_NAMESPACE, REPLY_QUOTE_DELIMITERS
from .models import EncodedMessage, OutboundEnvelope


def build_tag(
    verb: ApiVerb,
    action: ApiAction,
    correlation_id: str,
    namespace: str = DEFAULT_NAMESPACE
) -> str:
    """Build the subject tag `#<namespace> <VERB> <action> [<id>]`."""
    return f"#{namespace} {ApiVerb(verb).value} {ApiAction(action).value} [{correlation_id}]"


def encode(
    verb: ApiVerb,
    action: ApiAction,
    correlation_id: str,
    payload: Dict[str, Any],
    namespace: str = DEFAULT_NAMESPACE
) -> EncodedMessage:
    """
    Encode a request into its subject tag and body.

    Args:
        verb: HTTP-like method
        action: Backend action
        correlation_id: Identifier the reply must echo in its subject
        payload: JSON-serializable request body
        namespace: Tag namespace the backend listens for

    Returns:
        EncodedMessage with tag and body

    Raises:
        ValueError: If verb or action is not a known member
        TypeError: If payload is not JSON serializable
    """
    tag = build_tag(verb, action, correlation_id, namespace)
    body = json.dumps(payload)
    return EncodedMessage(tag=tag, body=body)


def encode_envelope(envelope: OutboundEnvelope, namespace: str = DEFAULT_NAMESPACE) -> EncodedMessage:
    return encode(
        envelope.verb,
        envelope.action,
        envelope.correlation_id,
        envelope.payload,
        namespace,
    )


def truncate_quoted_reply(body: str) -> str:
    """Cut the body at the earliest reply-quote delimiter, if any."""
    cut = len(body)
    for delimiter in REPLY_QUOTE_DELIMITERS:
        index = body.find(delimiter)
        if index != -1 and index < cut:
            cut = index
    return body[:cut]


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """
    Parse the span between the first '{' and the last '}' as a JSON object.

    Returns None when there is no such span, it does not parse, or it is not
    an object.
    """
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or start >= end:
        return None

    try:
        # strict=False accepts raw line breaks that mail clients wrap into strings
        parsed = json.loads(text[start:end + 1], strict=False)
    except ValueError:
        return None

    if not isinstance(parsed, dict):
        return None
    return parsed


def decode(tag_text: str, body_text: str, correlation_id: str) -> Optional[Dict[str, Any]]:
    """
    Decode a reply addressed to `correlation_id`.

    Never raises: a reply for another call, or one with a garbled body,
    returns None so the poll can move on to the next candidate.
    """
    if not correlation_id or not tag_text or correlation_id not in tag_text:
        return None
    if not body_text:
        return None

    return extract_json_object(truncate_quoted_reply(body_text))
