"""
Cleanup Agent - Best-effort removal of consumed request/reply emails

Runs after the caller already has its result. A message left behind is
harmless, so failures here are logged and counted, never raised.
"""
import asyncio
from typing import Iterable, List, Optional, Set

from ..utils.logger import setup_logger
from .transport import Transport

logger = setup_logger(__name__)


class CleanupAgent:
    """
    Archives messages in background tasks.

    Usage:
        cleanup = CleanupAgent(transport)
        cleanup.schedule([sent.transport_id, response.transport_id])
        ...
        await cleanup.drain()
    """

    def __init__(self, transport: Transport, enabled: bool = True):
        self.transport = transport
        self.enabled = enabled
        self.failures = 0
        self.archived = 0
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def archive(self, transport_ids: Iterable[Optional[str]]) -> None:
        """Archive the given messages; never raises."""
        ids: List[str] = list(dict.fromkeys(i for i in transport_ids if i))
        if not ids:
            return

        try:
            await asyncio.to_thread(self.transport.batch_archive, ids)
        except Exception as e:
            self.failures += 1
            logger.warning(f"[CLEANUP] Error archiving {len(ids)} messages: {e}")
            return

        self.archived += len(ids)
        logger.info(f"[CLEANUP] Archived {len(ids)} messages.")

    def schedule(self, transport_ids: Iterable[Optional[str]]) -> Optional[asyncio.Task]:
        """
        Start archiving in an independent task and return it.

        Returns None when cleanup is disabled.
        """
        if not self.enabled:
            return None

        task = asyncio.create_task(self.archive(list(transport_ids)))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every scheduled cleanup to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
