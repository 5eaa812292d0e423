"""Upload orchestration: validate, normalize, place the blob, upsert the record."""

import asyncio
import logging
from dataclasses import dataclass
from uuid import UUID

from mission_photos.domain.errors import (
    PayloadTooLargeError,
    PhotoValidationError,
    UploadFailedError,
)
from mission_photos.domain.images import NormalizedImage
from mission_photos.domain.jobs import ReencodeJob
from mission_photos.domain.photos import PhotoContent, ResolvedPhoto
from mission_photos.services.images import (
    ImageCodec,
    extension_for,
    is_image_content_type,
)
from mission_photos.services.jobs import JobBroker, ReencodeProcessor
from mission_photos.services.object_keys import allocate_object_key
from mission_photos.services.photos import PhotoService, validate_comment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadRequest:
    """A single photo upload as received from the caller."""

    user_id: UUID
    mission_id: str | None
    content: bytes
    content_type: str | None
    filename: str | None = None
    comment: str | None = None
    is_public: bool | None = None


@dataclass(frozen=True)
class UploadOutcome:
    """Result returned to the uploader."""

    photo: ResolvedPhoto
    replaced: bool


@dataclass
class UploadService:
    """Synchronous request path for photo uploads.

    The blob is handed to the job broker; if the broker refuses it, the same
    processor the worker runs is executed inline. The record is only written
    after one of those paths accepted the blob.
    """

    codec: ImageCodec
    broker: JobBroker
    processor: ReencodeProcessor
    photo_service: PhotoService
    max_upload_bytes: int = 10 * 1024 * 1024
    timeout_seconds: float = 30.0
    enqueue_timeout_seconds: float = 3.0

    async def upload(self, request: UploadRequest) -> UploadOutcome:
        """Store a user's photo for a mission, replacing any earlier one."""
        mission_id = self._validate(request)
        try:
            async with asyncio.timeout(self.timeout_seconds):
                image, normalized = await self._normalize(request)
                key = allocate_object_key(request.user_id, image.ext)
                job = ReencodeJob.from_bytes(
                    key, image.content, image.mime_type, normalized=normalized
                )
                stored_inline = await self._dispatch(job)
        except TimeoutError as exc:
            logger.warning(
                "Upload timed out before the record was written",
                extra={"user_id": str(request.user_id)},
            )
            raise UploadFailedError(
                "Upload timed out. Please retry.", retryable=True
            ) from exc

        try:
            result = await self.photo_service.upsert_user_mission_photo(
                request.user_id,
                mission_id,
                PhotoContent(
                    object_key=key,
                    file_size=len(image.content),
                    mime_type=image.mime_type,
                    width=image.width,
                    height=image.height,
                    comment=request.comment,
                    is_public=request.is_public,
                ),
            )
        except Exception:
            # A queued job may still land the blob; only an inline write is ours.
            if stored_inline:
                self.photo_service.reaper.schedule(key)
            raise
        logger.info(
            "Photo uploaded",
            extra={
                "photo_id": str(result.photo.id),
                "object_key": key,
                "replaced": result.replaced,
            },
        )
        resolved = await self.photo_service.resolver.resolve(result.photo)
        return UploadOutcome(photo=resolved, replaced=result.replaced)

    def _validate(self, request: UploadRequest) -> UUID:
        if not request.content:
            raise PhotoValidationError("No file was uploaded.")
        if len(request.content) > self.max_upload_bytes:
            raise PayloadTooLargeError(
                f"File exceeds the {self.max_upload_bytes} byte limit."
            )
        if not is_image_content_type(request.content_type):
            raise PhotoValidationError("Only image files can be uploaded.")
        if not request.mission_id:
            raise PhotoValidationError("missionId is required.")
        try:
            mission_id = UUID(request.mission_id)
        except ValueError as exc:
            raise PhotoValidationError("missionId is not a valid id.") from exc
        validate_comment(request.comment)
        return mission_id

    async def _normalize(self, request: UploadRequest) -> tuple[NormalizedImage, bool]:
        try:
            image = await asyncio.to_thread(self.codec.normalize, request.content)
        except Exception:
            logger.warning(
                "Image normalization failed; keeping original bytes",
                extra={
                    "user_id": str(request.user_id),
                    "content_type": request.content_type,
                },
                exc_info=True,
            )
        else:
            return image, True
        fallback = NormalizedImage(
            content=request.content,
            ext=extension_for(request.filename, request.content_type),
            mime_type=request.content_type or "application/octet-stream",
            width=None,
            height=None,
        )
        return fallback, False

    async def _dispatch(self, job: ReencodeJob) -> bool:
        """Queue the job, or store it inline; return True for the inline path."""
        try:
            await asyncio.wait_for(
                self.broker.enqueue_reencode(job), self.enqueue_timeout_seconds
            )
        except Exception:
            logger.warning(
                "Job enqueue failed; storing synchronously",
                extra={"object_key": job.key},
                exc_info=True,
            )
        else:
            return False

        try:
            await self.processor.process(job)
        except Exception as exc:
            logger.exception(
                "Synchronous storage write failed", extra={"object_key": job.key}
            )
            raise UploadFailedError("Failed to store the photo.") from exc
        return True
