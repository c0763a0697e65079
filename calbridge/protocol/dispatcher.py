"""
Dispatcher - Sends one tagged request email per logical call
"""
import asyncio
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict

from ..exceptions import SendFailedError
from ..utils.logger import setup_logger
from .codec import encode
from .constants import ApiAction, ApiVerb, DEFAULT_NAMESPACE
from .models import SentMeta
from .transport import Transport

logger = setup_logger(__name__)


def new_correlation_id() -> str:
    """Mint a random 128-bit identifier for one logical call"""
    return str(uuid.uuid4())


class Dispatcher:
    """
    Encodes and sends request emails.

    Usage:
        dispatcher = Dispatcher(transport)
        sent = await dispatcher.send(ApiVerb.GET, ApiAction.LIST, {"start": ..., "end": ...})
    """

    def __init__(
        self,
        transport: Transport,
        namespace: str = DEFAULT_NAMESPACE,
        id_factory: Callable[[], str] = new_correlation_id
    ):
        self.transport = transport
        self.namespace = namespace
        self._id_factory = id_factory

    async def send(self, verb: ApiVerb, action: ApiAction, payload: Dict[str, Any]) -> SentMeta:
        """
        Send a request and return the identifiers needed to await and clean it up.

        Raises:
            SendFailedError: If encoding or transmission fails. The error carries
                the correlation id even though no reply will ever arrive.
        """
        correlation_id = self._id_factory()
        label = f"{getattr(verb, 'value', verb)} {getattr(action, 'value', action)}"

        try:
            message = encode(verb, action, correlation_id, payload, self.namespace)
            result = await asyncio.to_thread(self.transport.send, message.tag, message.body)
        except Exception as e:
            logger.error(f"[DISPATCHER] Failed to send {label} [{correlation_id}]: {e}")
            raise SendFailedError(
                f"Failed to send email: {e}",
                correlation_id=correlation_id,
                details={"request": label},
                cause=e
            ) from e

        result = result or {}
        sent = SentMeta(
            correlation_id=correlation_id,
            transport_id=result.get("id", ""),
            thread_id=result.get("threadId", ""),
            sent_at=datetime.now(timezone.utc),
        )
        logger.debug(
            f"[DISPATCHER] Sent {message.tag} as message {sent.transport_id} "
            f"(thread {sent.thread_id})"
        )
        return sent
