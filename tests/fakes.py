"""
In-memory collaborators for the correlation engine tests
"""
import asyncio
import json
import threading
from typing import Any, Callable, Dict, List, Optional, Sequence

from calbridge.protocol.models import InboundCandidate

BACKEND_ADDRESS = "backend@example.com"


def make_candidate(
    transport_id: str,
    correlation_id: str,
    body: str,
    thread_id: Optional[str] = None,
    verb: str = "GET",
    action: str = "list"
) -> InboundCandidate:
    """A reply whose subject quotes the request tag for `correlation_id`"""
    return InboundCandidate(
        transport_id=transport_id,
        thread_id=thread_id or f"thread-{transport_id}",
        origin_address=BACKEND_ADDRESS,
        tag_text=f"RE: #calendarapi {verb} {action} [{correlation_id}]",
        body_text=body,
    )


class FakeTransport:
    """
    Call-counting transport.

    `list_batches` holds one entry per list call (the last one repeats); an
    entry that is an exception is raised instead. Without batches every
    message not yet marked read is listed, which together with `responder`
    lets a sent request be answered on the next poll.
    """

    def __init__(
        self,
        list_batches: Optional[List[Any]] = None,
        messages: Optional[Dict[str, InboundCandidate]] = None,
        responder: Optional[Callable[[str, Dict[str, Any]], Optional[Dict[str, Any]]]] = None
    ):
        self.list_batches = list_batches
        self.messages: Dict[str, InboundCandidate] = dict(messages or {})
        self.responder = responder

        self.send_error: Optional[Exception] = None
        self.fetch_errors: Dict[str, int] = {}
        self.mark_read_error: Optional[Exception] = None
        self.archive_error: Optional[Exception] = None

        self.sent: List[Dict[str, Any]] = []
        self.list_queries: List[tuple] = []
        self.fetched: List[str] = []
        self.fetch_attempts: List[str] = []
        self.marked_read: List[str] = []
        self.archived: List[List[str]] = []

        self._lock = threading.Lock()

    @property
    def list_calls(self) -> int:
        return len(self.list_queries)

    @property
    def io_calls(self) -> int:
        return (
            len(self.sent) + self.list_calls + len(self.fetch_attempts)
            + len(self.marked_read) + len(self.archived)
        )

    def send(self, tag: str, body: str) -> Dict[str, Any]:
        if self.send_error is not None:
            raise self.send_error

        with self._lock:
            number = len(self.sent) + 1
            sent = {"id": f"sent-{number}", "threadId": f"thread-{number}", "tag": tag, "body": body}
            self.sent.append(sent)

            if self.responder is not None:
                payload = self.responder(tag, json.loads(body))
                if payload is not None:
                    reply_id = f"reply-{number}"
                    self.messages[reply_id] = InboundCandidate(
                        transport_id=reply_id,
                        thread_id=sent["threadId"],
                        origin_address=BACKEND_ADDRESS,
                        tag_text=f"RE: {tag}",
                        body_text=json.dumps(payload),
                    )

        return {"id": sent["id"], "threadId": sent["threadId"], "labelIds": ["SENT"]}

    def list_unread_since(self, from_address, since, max_results) -> List[Dict[str, Any]]:
        with self._lock:
            index = len(self.list_queries)
            self.list_queries.append((from_address, since, max_results))

            if self.list_batches is None:
                return [
                    {"id": message_id, "threadId": message.thread_id}
                    for message_id, message in self.messages.items()
                    if message_id not in self.marked_read
                ]

            batch = self.list_batches[min(index, len(self.list_batches) - 1)]

        if isinstance(batch, Exception):
            raise batch
        return [{"id": message_id} for message_id in batch]

    def fetch_full(self, transport_id: str) -> InboundCandidate:
        with self._lock:
            self.fetch_attempts.append(transport_id)
            if self.fetch_errors.get(transport_id, 0) > 0:
                self.fetch_errors[transport_id] -= 1
                raise ConnectionError(f"fetch of {transport_id} failed")
            self.fetched.append(transport_id)
            return self.messages[transport_id]

    def mark_read(self, transport_id: str) -> None:
        if self.mark_read_error is not None:
            raise self.mark_read_error
        with self._lock:
            self.marked_read.append(transport_id)

    def batch_archive(self, transport_ids: Sequence[str]) -> None:
        if self.archive_error is not None:
            raise self.archive_error
        with self._lock:
            self.archived.append(list(transport_ids))


class FakeClock:
    """Monotonic clock that only moves when the code under test sleeps"""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)
