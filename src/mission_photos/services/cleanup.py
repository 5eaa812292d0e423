"""Best-effort blob deletion in detached tasks."""

import asyncio
import logging
from dataclasses import dataclass, field

from mission_photos.services.storage import ObjectStorage

logger = logging.getLogger(__name__)


@dataclass
class BlobReaper:
    """Schedules blob deletes that callers never wait on.

    Each delete runs in its own task with its own error boundary; failures are
    logged and dropped. ``drain`` waits for outstanding deletes on shutdown.
    """

    storage: ObjectStorage
    _tasks: set[asyncio.Task[None]] = field(default_factory=set, init=False, repr=False)

    def schedule(self, key: str | None) -> None:
        """Start deleting ``key`` in the background."""
        if not key:
            return
        task = asyncio.get_running_loop().create_task(self._delete(key))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @property
    def pending(self) -> int:
        """Number of deletes still running."""
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every scheduled delete to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def _delete(self, key: str) -> None:
        try:
            await self.storage.delete_object(key)
        except Exception:
            logger.warning(
                "Best-effort blob delete failed",
                extra={"object_key": key},
                exc_info=True,
            )
