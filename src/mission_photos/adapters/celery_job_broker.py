"""Celery job broker for re-encode jobs."""

import asyncio
from dataclasses import dataclass

from celery import Celery

from mission_photos.domain.jobs import ReencodeJob
from mission_photos.services.jobs import JobBroker

REENCODE_TASK_NAME = "mission_photos.reencode_photo"
IMAGE_QUEUE = "image-processing"


def create_celery_app(broker_url: str, connect_timeout: float = 3.0) -> Celery:
    """Create the Celery app shared by the API producer and the worker."""
    app = Celery("mission_photos", broker=broker_url)
    app.conf.update(
        task_serializer="json",
        accept_content=["json"],
        task_default_queue=IMAGE_QUEUE,
        task_acks_late=True,
        task_reject_on_worker_lost=True,
        task_ignore_result=True,
        worker_prefetch_multiplier=1,
        broker_connection_timeout=connect_timeout,
        broker_connection_retry_on_startup=True,
    )
    return app


@dataclass
class CeleryJobBroker(JobBroker):
    """Publishes jobs by task name so the API never imports worker code."""

    app: Celery

    async def enqueue_reencode(self, job: ReencodeJob) -> None:
        """Publish a re-encode job without broker-side retries."""
        await asyncio.to_thread(self._publish, job)

    def _publish(self, job: ReencodeJob) -> None:
        self.app.send_task(REENCODE_TASK_NAME, kwargs=job.model_dump(), retry=False)

    def close(self) -> None:
        """Release broker connections."""
        self.app.close()
