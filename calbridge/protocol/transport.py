"""
Transport interface

The narrow surface the correlation engine needs from a message store. The
methods are blocking; the dispatcher, correlator and cleanup agent call them
through asyncio.to_thread.
"""
from datetime import datetime
from typing import Any, Dict, List, Protocol, Sequence

from .models import InboundCandidate


class Transport(Protocol):
    """Authenticated message store used as a request/response bus"""

    def send(self, tag: str, body: str) -> Dict[str, Any]:
        """Send a message; returns at least `id` and `threadId`."""
        ...

    def list_unread_since(
        self,
        from_address: str,
        since: datetime,
        max_results: int
    ) -> List[Dict[str, Any]]:
        """List unread message refs (`id`, `threadId`) from an address."""
        ...

    def fetch_full(self, transport_id: str) -> InboundCandidate:
        """Fetch one message with its subject and plain-text body."""
        ...

    def mark_read(self, transport_id: str) -> None:
        ...

    def batch_archive(self, transport_ids: Sequence[str]) -> None:
        """Move consumed messages out of the inbox."""
        ...
