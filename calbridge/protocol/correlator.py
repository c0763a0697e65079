"""
Response Correlator - Polls the inbox for the reply to one request

One correlation attempt per logical call:

    1. List unread messages from the backend address, limited to a recent
       window and a page size
    2. Fetch each candidate not seen before in this attempt
    3. Skip candidates whose subject does not carry the correlation id; they
       stay unread because they may answer another pending call
    4. Decode the body; the first candidate that decodes is the reply and is
       marked read
    5. Otherwise sleep and repeat until the deadline

A failing poll never aborts the wait; it is logged, counted and retried on
the next cycle.
"""
import asyncio
import time
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional, Set

from ..exceptions import CorrelationTimeoutError
from ..utils.config import ConfigDefaults
from ..utils.logger import setup_logger
from .codec import decode
from .models import CorrelatedResponse
from .transport import Transport

logger = setup_logger(__name__)


class ResponseCorrelator:
    """
    Matches inbound replies to outstanding requests.

    One instance can serve many concurrent calls; all per-call state lives in
    await_response().
    """

    def __init__(
        self,
        transport: Transport,
        max_results: int = ConfigDefaults.MAX_RESULTS,
        since_buffer_seconds: int = ConfigDefaults.SINCE_BUFFER_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.transport = transport
        self.max_results = max_results
        self.since_buffer = timedelta(seconds=since_buffer_seconds)
        self._clock = clock
        self._sleep = sleep

        # Observability counters, cumulative over all calls
        self.poll_cycles = 0
        self.transient_errors = 0

    async def await_response(
        self,
        correlation_id: str,
        from_address: str,
        poll_interval_ms: int,
        timeout_ms: int,
        sent_after: Optional[datetime] = None,
        started_at: Optional[float] = None
    ) -> CorrelatedResponse:
        """
        Wait for the reply carrying `correlation_id`.

        Args:
            correlation_id: Identifier embedded in the request tag
            from_address: Address replies are sent from
            poll_interval_ms: Pause between poll cycles
            timeout_ms: Deadline measured from the start of the wait
            sent_after: When the request was sent; bounds the inbox query
            started_at: Clock reading the response duration is measured from

        Returns:
            CorrelatedResponse built from the first matching reply

        Raises:
            CorrelationTimeoutError: If nothing matched before the deadline
        """
        start = self._clock()
        duration_origin = started_at if started_at is not None else start
        since = (sent_after or datetime.now(timezone.utc)) - self.since_buffer
        timeout_s = timeout_ms / 1000.0
        interval_s = poll_interval_ms / 1000.0
        seen: Set[str] = set()

        logger.info(f"[CORRELATOR] Waiting for response to {correlation_id}...")

        while True:
            self.poll_cycles += 1
            try:
                response = await self._poll_once(
                    correlation_id, from_address, since, seen, duration_origin
                )
            except Exception as e:
                self.transient_errors += 1
                logger.warning(
                    f"[CORRELATOR] Error polling for {correlation_id}, will retry: {e}"
                )
                response = None

            if response is not None:
                logger.info(
                    f"[CORRELATOR] Found response for {correlation_id} "
                    f"(message {response.transport_id}, {response.duration_ms}ms)"
                )
                return response

            elapsed = self._clock() - start
            if elapsed >= timeout_s:
                elapsed_ms = int(elapsed * 1000)
                logger.warning(
                    f"[CORRELATOR] Timed out after {elapsed_ms}ms waiting for {correlation_id} "
                    f"({len(seen)} candidates examined)"
                )
                raise CorrelationTimeoutError(
                    f"Request timed out after {timeout_ms}ms",
                    correlation_id=correlation_id,
                    elapsed_ms=elapsed_ms,
                    details={"examined": len(seen)}
                )

            await self._sleep(min(interval_s, timeout_s - elapsed))

    async def _poll_once(
        self,
        correlation_id: str,
        from_address: str,
        since: datetime,
        seen: Set[str],
        duration_origin: float
    ) -> Optional[CorrelatedResponse]:
        """Run one poll cycle; returns the response if a reply matched."""
        refs = await asyncio.to_thread(
            self.transport.list_unread_since, from_address, since, self.max_results
        )
        if not refs:
            return None

        for ref in refs:
            transport_id = ref.get("id")
            if not transport_id or transport_id in seen:
                continue
            seen.add(transport_id)

            try:
                candidate = await asyncio.to_thread(self.transport.fetch_full, transport_id)
            except Exception as e:
                # Not examined; allow a later cycle to try again
                seen.discard(transport_id)
                self.transient_errors += 1
                logger.warning(f"[CORRELATOR] Failed to fetch message {transport_id}: {e}")
                continue

            if correlation_id not in candidate.tag_text:
                continue

            payload = decode(candidate.tag_text, candidate.body_text, correlation_id)
            if payload is None:
                logger.debug(
                    f"[CORRELATOR] Message {transport_id} matches {correlation_id} "
                    "but has no parsable body, skipping"
                )
                continue

            await self._mark_read(transport_id)

            return CorrelatedResponse.from_payload(
                payload,
                correlation_id=correlation_id,
                transport_id=transport_id,
                thread_id=candidate.thread_id or ref.get("threadId"),
                duration_ms=int((self._clock() - duration_origin) * 1000),
            )

        return None

    async def _mark_read(self, transport_id: str) -> None:
        try:
            await asyncio.to_thread(self.transport.mark_read, transport_id)
        except Exception as e:
            logger.warning(f"[CORRELATOR] Could not mark message {transport_id} as read: {e}")
