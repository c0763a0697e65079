"""
Google Gmail API Transport
Implements the request/response bus on top of the Gmail API with automatic retry logic
"""
from datetime import datetime
from typing import Any, Dict, List, Sequence

from googleapiclient.discovery import build

from ...protocol.models import InboundCandidate
from ...utils.config import ConfigDefaults
from ...utils.logger import setup_logger
from ...utils.retry import retry_gmail_api, retry_poll_api
from ..base import BaseGoogleAPIClient
from .gmail_constants import (
    GMAIL_BATCH_MODIFY_LIMIT,
    GMAIL_LABELS,
    GMAIL_SCOPES,
    GMAIL_SEARCH_PATTERNS,
    GMAIL_USER_ID,
)
from .utils import candidate_from_gmail, create_gmail_message

logger = setup_logger(__name__)


def build_unread_query(from_address: str, since: datetime) -> str:
    """Gmail search for unread mail from one address after a point in time"""
    return " ".join([
        GMAIL_SEARCH_PATTERNS["from"].format(address=from_address),
        GMAIL_SEARCH_PATTERNS["unread"],
        GMAIL_SEARCH_PATTERNS["after"].format(epoch=int(since.timestamp())),
    ])


class GmailTransport(BaseGoogleAPIClient):
    """
    Gmail API transport

    Provides the primitives the correlation engine needs:
    - Send a tagged request email
    - List unread replies from the backend address
    - Fetch a full message
    - Mark a message read
    - Trash or archive consumed messages in one batch
    """

    def _build_service(self) -> Any:
        """Build Gmail API service"""
        return build('gmail', 'v1', credentials=self.credentials, cache_discovery=False)

    def _get_required_scopes(self) -> List[str]:
        """Get required Gmail scopes"""
        return list(GMAIL_SCOPES)

    def _get_service_name(self) -> str:
        """Get service name"""
        return "Gmail"

    # ========== Retry-Protected API Methods ==========

    @retry_gmail_api()
    def send(self, tag: str, body: str) -> Dict[str, Any]:
        """
        Send a request email from sender_email to recipient_email

        Args:
            tag: Subject line carrying the request tag
            body: JSON payload

        Returns:
            Sent message resource (`id`, `threadId`, `labelIds`)
        """
        message = create_gmail_message(
            to=self.config.recipient_email,
            subject=tag,
            body=body,
            sender=self.config.sender_email
        )
        result = self.service.users().messages().send(
            userId=GMAIL_USER_ID,
            body=message
        ).execute()
        logger.debug(f"[GMAIL] Sent message {result.get('id')}")
        return result

    @retry_poll_api()
    def list_unread_since(
        self,
        from_address: str,
        since: datetime,
        max_results: int
    ) -> List[Dict[str, Any]]:
        """
        List unread messages from an address received after `since`

        Returns:
            Message refs in Gmail order (newest first)
        """
        response = self.service.users().messages().list(
            userId=GMAIL_USER_ID,
            q=build_unread_query(from_address, since),
            maxResults=max_results
        ).execute()
        return response.get('messages', [])

    @retry_poll_api()
    def fetch_full(self, transport_id: str) -> InboundCandidate:
        """Fetch a message and parse its subject and plain-text body"""
        message = self.service.users().messages().get(
            userId=GMAIL_USER_ID,
            id=transport_id,
            format='full'
        ).execute()
        return candidate_from_gmail(message)

    @retry_poll_api()
    def mark_read(self, transport_id: str) -> None:
        """Remove the UNREAD label from a message"""
        self.service.users().messages().modify(
            userId=GMAIL_USER_ID,
            id=transport_id,
            body={'removeLabelIds': [GMAIL_LABELS["unread"]]}
        ).execute()

    @retry_gmail_api()
    def batch_archive(self, transport_ids: Sequence[str]) -> None:
        """
        Move consumed messages out of the inbox

        Depending on config.cleanup_mode the messages go to Trash or just
        lose the INBOX label.
        """
        if self.config.cleanup_mode == ConfigDefaults.CLEANUP_MODE_ARCHIVE:
            body = {'removeLabelIds': [GMAIL_LABELS["inbox"], GMAIL_LABELS["unread"]]}
        else:
            body = {'addLabelIds': [GMAIL_LABELS["trash"]]}

        ids = list(transport_ids)
        for offset in range(0, len(ids), GMAIL_BATCH_MODIFY_LIMIT):
            chunk = ids[offset:offset + GMAIL_BATCH_MODIFY_LIMIT]
            self.service.users().messages().batchModify(
                userId=GMAIL_USER_ID,
                body={'ids': chunk, **body}
            ).execute()
