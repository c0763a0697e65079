"""
CalendarEmailClient - High-level public API

Abstracts the email mechanics behind async calendar methods:

    async with CalendarEmailClient(load_config()) as client:
        response = await client.list_events("2026-02-11T00:00:00Z", "2026-02-12T00:00:00Z")
        if response.ok:
            print(response.data)

Each call sends one tagged request email, waits for the correlated reply and
returns a CorrelatedResponse. Timeouts and send failures come back as
`status: error` responses; only calling an operation before connect() raises.
"""
import asyncio
import time
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Union

from .exceptions import AuthFailedError, CalBridgeError, CorrelationTimeoutError, NotConnectedError
from .protocol import (
    ApiAction,
    ApiVerb,
    CleanupAgent,
    CorrelatedResponse,
    CreateEventData,
    Dispatcher,
    ResponseCorrelator,
    Transport,
    UpdateEventData,
)
from .utils.config import BridgeConfig, load_config
from .utils.logger import setup_logger

logger = setup_logger(__name__)

TransportFactory = Callable[[BridgeConfig], Transport]
DateLike = Union[str, datetime]


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


def gmail_transport_factory(config: BridgeConfig) -> Transport:
    """Authenticate with OAuth and build the Gmail transport"""
    from .auth.oauth import GmailOAuthHandler
    from .core.email.google_client import GmailTransport

    credentials = GmailOAuthHandler(config).get_credentials()
    transport = GmailTransport(config, credentials)
    if not transport.is_available():
        raise AuthFailedError("Gmail service is unavailable with the current credentials")
    return transport


def _iso(value: DateLike) -> str:
    return value.isoformat() if isinstance(value, datetime) else value


class CalendarEmailClient:
    """
    The main public interface of the bridge.

    Args:
        config: Bridge configuration; loaded from calbridge.yaml and the
            environment when omitted
        transport_factory: Builds an authorized transport on connect()
        supported_actions: Actions the backend implements; other actions
            return a skipped response without touching the network
        clock: Monotonic clock in seconds
        sleep: Coroutine used between poll cycles
    """

    def __init__(
        self,
        config: Optional[BridgeConfig] = None,
        transport_factory: Optional[TransportFactory] = None,
        supported_actions: Optional[Iterable[ApiAction]] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.config = config or load_config()
        self._transport_factory = transport_factory or gmail_transport_factory
        actions = supported_actions if supported_actions is not None else self.config.supported_actions
        self.supported_actions = frozenset(ApiAction(a) for a in actions)
        self._clock = clock
        self._sleep = sleep

        self._state = ConnectionState.DISCONNECTED
        self._connect_lock = asyncio.Lock()
        self._transport: Optional[Transport] = None
        self._dispatcher: Optional[Dispatcher] = None
        self._correlator: Optional[ResponseCorrelator] = None
        self._cleanup: Optional[CleanupAgent] = None
        # completion future per in-flight call -> task running it
        self._calls: Dict[asyncio.Future, Optional[asyncio.Task]] = {}

    # ============================================================
    # Connection Lifecycle
    # ============================================================

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED

    @property
    def correlator(self) -> Optional[ResponseCorrelator]:
        return self._correlator

    @property
    def cleanup(self) -> Optional[CleanupAgent]:
        return self._cleanup

    async def connect(self) -> None:
        """
        Authenticate and build the transport. No-op when already connected.

        Raises:
            AuthFailedError: If authentication or service setup fails
        """
        async with self._connect_lock:
            if self._state == ConnectionState.CONNECTED:
                return

            self._state = ConnectionState.CONNECTING
            try:
                transport = await asyncio.to_thread(self._transport_factory, self.config)
            except AuthFailedError:
                self._state = ConnectionState.DISCONNECTED
                raise
            except Exception as e:
                self._state = ConnectionState.DISCONNECTED
                raise AuthFailedError(f"Authentication failed: {e}", cause=e) from e

            self._transport = transport
            self._dispatcher = Dispatcher(transport, namespace=self.config.namespace)
            self._correlator = ResponseCorrelator(
                transport,
                max_results=self.config.max_results,
                since_buffer_seconds=self.config.since_buffer_seconds,
                clock=self._clock,
                sleep=self._sleep,
            )
            self._cleanup = CleanupAgent(transport, enabled=self.config.cleanup_enabled)
            self._state = ConnectionState.CONNECTED

        logger.info("[CLIENT] CalBridge client connected")

    async def disconnect(self) -> None:
        """
        Wait for in-flight calls and pending cleanup, then drop the transport.

        New calls raise NotConnectedError as soon as disconnect starts. Calls
        already running finish against the transport they started with.
        """
        if self._state != ConnectionState.CONNECTED:
            return

        self._state = ConnectionState.DISCONNECTED
        await self._wait_for_calls()
        if self._cleanup is not None:
            await self._cleanup.drain()

        self._transport = None
        self._dispatcher = None
        self._correlator = None
        logger.info("[CLIENT] CalBridge client disconnected")

    async def __aenter__(self) -> "CalendarEmailClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()

    # ============================================================
    # High-Level API Methods
    # ============================================================

    async def list_events(self, start: DateLike, end: DateLike) -> CorrelatedResponse:
        """
        Fetch calendar events within a date range.

        Args:
            start: ISO 8601 start datetime (e.g., '2026-02-11T00:00:00Z') or datetime
            end: ISO 8601 end datetime or datetime
        """
        return await self._send_request(
            ApiVerb.GET, ApiAction.LIST, {"start": _iso(start), "end": _iso(end)}
        )

    async def create_event(
        self, event_data: Union[CreateEventData, Mapping[str, Any]]
    ) -> CorrelatedResponse:
        """
        Create a new calendar event.

        Raises:
            pydantic.ValidationError: If subject, start or end is missing
        """
        event = CreateEventData.model_validate(event_data)
        return await self._send_request(
            ApiVerb.POST, ApiAction.CREATE, event.model_dump(exclude_none=True)
        )

    async def update_event(
        self, event_data: Union[UpdateEventData, Mapping[str, Any]]
    ) -> CorrelatedResponse:
        """
        Update an existing calendar event; `id` is required.

        Raises:
            pydantic.ValidationError: If id is missing
        """
        event = UpdateEventData.model_validate(event_data)
        return await self._send_request(
            ApiVerb.PATCH, ApiAction.UPDATE, event.model_dump(exclude_none=True)
        )

    async def delete_event(self, event_id: str) -> CorrelatedResponse:
        """Delete a calendar event by ID."""
        return await self._send_request(ApiVerb.DELETE, ApiAction.EVENT, {"id": event_id})

    async def health_check(self) -> CorrelatedResponse:
        """Verify the request/response pipeline end to end."""
        return await self._send_request(ApiVerb.GET, ApiAction.HEALTH, {})

    # ============================================================
    # Internal: Request Orchestration
    # ============================================================

    async def _send_request(
        self,
        verb: ApiVerb,
        action: ApiAction,
        payload: Dict[str, Any]
    ) -> CorrelatedResponse:
        """
        Send a request email and wait for the matching response.

        1. Validates connection
        2. Applies the supported-actions gate
        3. Sends the request
        4. Waits for the correlated reply
        5. Schedules cleanup of both emails without awaiting it

        The call keeps the dispatcher, correlator and cleanup agent it started
        with, so a concurrent disconnect() cannot pull them out from under it.
        """
        self._ensure_connected()
        dispatcher, correlator, cleanup = self._dispatcher, self._correlator, self._cleanup
        started = self._clock()

        if action not in self.supported_actions:
            logger.info(f"[CLIENT] Skipping unsupported action '{action.value}'")
            return CorrelatedResponse.skipped(action, duration_ms=self._elapsed_ms(started))

        done = asyncio.get_running_loop().create_future()
        self._calls[done] = asyncio.current_task()
        try:
            return await self._run_call(dispatcher, correlator, cleanup, verb, action, payload, started)
        finally:
            del self._calls[done]
            done.set_result(None)

    async def _run_call(
        self,
        dispatcher: Dispatcher,
        correlator: ResponseCorrelator,
        cleanup: CleanupAgent,
        verb: ApiVerb,
        action: ApiAction,
        payload: Dict[str, Any],
        started: float
    ) -> CorrelatedResponse:
        sent = None
        try:
            sent = await dispatcher.send(verb, action, payload)
            response = await correlator.await_response(
                sent.correlation_id,
                self.config.response_sender_email,
                self.config.poll_interval_ms,
                self.config.request_timeout_ms,
                sent_after=sent.sent_at,
                started_at=started,
            )
        except CalBridgeError as e:
            logger.error(f"[CLIENT] {verb.value} {action.value} failed [{e.code}]: {e.message}")
            if isinstance(e, CorrelationTimeoutError) and sent is not None:
                await self._release(cleanup, [sent.transport_id])
            return CorrelatedResponse.from_error(e, duration_ms=self._elapsed_ms(started))

        await self._release(cleanup, [sent.transport_id, response.transport_id])
        return response

    async def _release(self, cleanup: CleanupAgent, message_ids: List[str]) -> None:
        if not cleanup.enabled:
            return
        if self._state == ConnectionState.CONNECTED:
            cleanup.schedule(message_ids)
        else:
            # disconnect() is under way and drains only tasks scheduled before it
            await cleanup.archive(message_ids)

    async def _wait_for_calls(self) -> None:
        current = asyncio.current_task()
        pending = [done for done, task in self._calls.items() if task is not current]
        if not pending:
            return

        logger.info(f"[CLIENT] Waiting for {len(pending)} in-flight call(s) before disconnecting")
        await asyncio.wait(pending)

    def _ensure_connected(self) -> None:
        if self._state != ConnectionState.CONNECTED or self._transport is None:
            raise NotConnectedError("Client is not connected. Call connect() first.")

    def _elapsed_ms(self, started: float) -> int:
        return int((self._clock() - started) * 1000)
