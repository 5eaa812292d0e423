"""Celery worker wiring for re-encode jobs."""

import asyncio
import logging

from celery import Celery, Task

from mission_photos.adapters.celery_job_broker import (
    REENCODE_TASK_NAME,
    create_celery_app,
)
from mission_photos.adapters.pillow_codec import PillowImageCodec
from mission_photos.adapters.s3_object_storage import S3ObjectStorage
from mission_photos.app_logging import configure_logging
from mission_photos.config import Settings
from mission_photos.domain.jobs import ReencodeJob
from mission_photos.services.jobs import ReencodeProcessor

logger = logging.getLogger(__name__)


class ReencodeTask(Task):
    """Task base that reports jobs which exhausted their retries."""

    def on_failure(  # type: ignore[no-untyped-def]  # noqa: PLR0913
        self, exc, task_id, args, kwargs, einfo
    ) -> None:
        logger.error(
            "Re-encode job failed permanently; blob stays missing",
            extra={"task_id": task_id, "object_key": kwargs.get("key")},
        )


def register_tasks(
    app: Celery,
    processor: ReencodeProcessor,
    max_retries: int = 5,
    retry_backoff_max: int = 600,
) -> Task:
    """Register the re-encode task on ``app`` and return it."""

    @app.task(
        name=REENCODE_TASK_NAME,
        base=ReencodeTask,
        bind=True,
        acks_late=True,
        autoretry_for=(Exception,),
        retry_backoff=True,
        retry_backoff_max=retry_backoff_max,
        retry_jitter=True,
        max_retries=max_retries,
    )
    def reencode_photo(
        self: Task,
        key: str,
        content_b64: str,
        content_type: str,
        normalized: bool = False,
    ) -> dict[str, object]:
        job = ReencodeJob(
            key=key,
            content_b64=content_b64,
            content_type=content_type,
            normalized=normalized,
        )
        logger.info(
            "Processing re-encode job",
            extra={"object_key": key, "attempt": self.request.retries + 1},
        )
        result = asyncio.run(processor.process(job))
        return {"key": result.key, "size": result.size}

    return reencode_photo


def create_worker_app(settings: Settings | None = None) -> Celery:
    """Create a Celery app with the re-encode task bound to real adapters."""
    resolved_settings = settings or Settings()
    configure_logging(resolved_settings.log_level)
    app = create_celery_app(resolved_settings.broker_url)
    storage = S3ObjectStorage.create(
        bucket=resolved_settings.s3_bucket,
        region=resolved_settings.aws_region,
        access_key_id=resolved_settings.aws_access_key_id,
        secret_access_key=resolved_settings.aws_secret_access_key,
        endpoint_url=resolved_settings.s3_endpoint_url,
    )
    processor = ReencodeProcessor(
        codec=PillowImageCodec(quality=resolved_settings.jpeg_quality),
        storage=storage,
    )
    register_tasks(
        app,
        processor,
        max_retries=resolved_settings.job_max_retries,
        retry_backoff_max=resolved_settings.job_retry_backoff_max_seconds,
    )
    return app
