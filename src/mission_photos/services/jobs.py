"""Re-encode jobs: broker interface and the worker-side processor."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

from mission_photos.domain.jobs import ReencodeJob
from mission_photos.services.images import ImageCodec
from mission_photos.services.storage import CACHE_CONTROL_IMMUTABLE, ObjectStorage

logger = logging.getLogger(__name__)


class JobBroker(Protocol):
    """Interface for publishing jobs to a durable queue."""

    async def enqueue_reencode(self, job: ReencodeJob) -> None:
        """Publish a re-encode job; raise if the broker does not accept it."""


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of a processed re-encode job."""

    key: str
    size: int


@dataclass
class ReencodeProcessor:
    """Rotate, re-encode and store a job payload.

    Payloads the request path already normalized are stored as they are,
    so the blob matches the size recorded for it. The same job always
    produces the same bytes at the same key, so a redelivered job only
    overwrites the blob with identical content.
    """

    codec: ImageCodec
    storage: ObjectStorage
    cache_control: str = CACHE_CONTROL_IMMUTABLE

    def transform(self, job: ReencodeJob) -> tuple[bytes, str]:
        """Return the bytes and content type to store for a job."""
        raw = job.content()
        if job.normalized:
            return raw, job.content_type
        try:
            normalized = self.codec.normalize(raw)
        except Exception:
            logger.warning(
                "Re-encode failed; storing payload bytes unchanged",
                extra={"object_key": job.key},
                exc_info=True,
            )
            return raw, job.content_type
        return normalized.content, normalized.mime_type

    async def process(self, job: ReencodeJob) -> ProcessResult:
        """Transform the payload and write it to object storage."""
        body, content_type = await asyncio.to_thread(self.transform, job)
        await self.storage.put_object(
            job.key, body, content_type, cache_control=self.cache_control
        )
        logger.info(
            "Stored processed image",
            extra={"object_key": job.key, "size": len(body)},
        )
        return ProcessResult(key=job.key, size=len(body))
