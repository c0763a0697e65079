"""
Email Utilities - Gmail message parsing and creation helpers
"""
import base64
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ...protocol.models import InboundCandidate
from ...utils.logger import setup_logger

logger = setup_logger(__name__)


# ============================================================================
# MESSAGE EXTRACTION
# ============================================================================

def extract_headers(headers: List[Dict[str, str]]) -> Dict[str, str]:
    """
    Extract headers from Gmail API response into a dictionary.

    Args:
        headers: List of header dictionaries from Gmail API (format: [{'name': '...', 'value': '...'}])

    Returns:
        Dictionary mapping header names to values
    """
    return {h['name']: h['value'] for h in headers if 'name' in h}


def get_header_value(header_dict: Dict[str, str], key: str, default: str = '') -> str:
    """Get header value case-insensitively"""
    if key in header_dict:
        return header_dict[key]

    key_lower = key.lower()
    for k, v in header_dict.items():
        if k.lower() == key_lower:
            return v
    return default


def _decode_part_data(data: str) -> str:
    # Gmail strips base64 padding
    padded = data + '=' * (-len(data) % 4)
    return base64.urlsafe_b64decode(padded).decode('utf-8', errors='replace')


def extract_message_body(payload: Optional[Dict[str, Any]]) -> str:
    """
    Extract the plain text body from a Gmail message payload.

    Direct body data wins; for multipart messages text/plain parts are
    preferred, then nested parts are searched depth-first (Outlook replies
    nest multipart/alternative inside multipart/mixed).

    Args:
        payload: Gmail message payload dictionary

    Returns:
        Extracted body text (empty string if nothing could be decoded)
    """
    if not payload:
        return ""

    try:
        data = payload.get('body', {}).get('data')
        if data:
            return _decode_part_data(data)

        parts = payload.get('parts') or []

        for part in parts:
            if part.get('mimeType') == 'text/plain':
                part_data = part.get('body', {}).get('data')
                if part_data:
                    return _decode_part_data(part_data)

        for part in parts:
            body = extract_message_body(part)
            if body:
                return body

        return ""

    except (ValueError, TypeError, AttributeError) as e:
        logger.warning(f"Failed to extract message body: {e}")
        return ""


def candidate_from_gmail(message: Dict[str, Any]) -> InboundCandidate:
    """
    Convert a `users.messages.get(format='full')` response into an InboundCandidate.
    """
    payload = message.get('payload', {})
    header_dict = extract_headers(payload.get('headers', []))

    received_at = None
    internal_date = message.get('internalDate')
    if internal_date:
        received_at = datetime.fromtimestamp(int(internal_date) / 1000, tz=timezone.utc)

    return InboundCandidate(
        transport_id=message.get('id', ''),
        thread_id=message.get('threadId', ''),
        origin_address=get_header_value(header_dict, 'From'),
        tag_text=get_header_value(header_dict, 'Subject'),
        body_text=extract_message_body(payload),
        received_at=received_at,
    )


# ============================================================================
# MESSAGE CREATION
# ============================================================================

def create_gmail_message(
    to: str,
    subject: str,
    body: str,
    sender: Optional[str] = None
) -> Dict[str, str]:
    """
    Create a Gmail message object in RFC 2822 format.

    Args:
        to: Recipient email address
        subject: Email subject
        body: Email body content
        sender: Optional From address

    Returns:
        Gmail API message dictionary with 'raw' field (base64url-encoded)
    """
    message_lines = []
    if sender:
        message_lines.append(f"From: {sender}")

    message_lines.extend([
        f"To: {to}",
        f"Subject: {subject}",
        "MIME-Version: 1.0",
        "Content-Type: text/plain; charset=utf-8",
        "",  # Empty line separating headers from body
        body
    ])

    message = "\r\n".join(message_lines)

    raw_message = base64.urlsafe_b64encode(message.encode('utf-8')).decode('utf-8')

    return {'raw': raw_message}
