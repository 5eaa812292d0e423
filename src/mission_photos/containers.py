"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from mission_photos.adapters.celery_job_broker import (
    CeleryJobBroker,
    create_celery_app,
)
from mission_photos.adapters.pillow_codec import PillowImageCodec
from mission_photos.adapters.s3_object_storage import S3ObjectStorage
from mission_photos.adapters.supabase_photo_repository import SupabasePhotoRepository
from mission_photos.config import Settings
from mission_photos.services.cache import InMemoryCache
from mission_photos.services.cleanup import BlobReaper
from mission_photos.services.jobs import ReencodeProcessor
from mission_photos.services.photo_urls import PhotoUrlResolver
from mission_photos.services.photos import PhotoService
from mission_photos.services.uploads import UploadService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    photo_service: PhotoService
    upload_service: UploadService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    storage = S3ObjectStorage.create(
        bucket=resolved_settings.s3_bucket,
        region=resolved_settings.aws_region,
        access_key_id=resolved_settings.aws_access_key_id,
        secret_access_key=resolved_settings.aws_secret_access_key,
        endpoint_url=resolved_settings.s3_endpoint_url,
        check_exists=resolved_settings.signed_url_check_exists,
    )
    broker = CeleryJobBroker(
        create_celery_app(
            resolved_settings.broker_url,
            connect_timeout=resolved_settings.enqueue_timeout_seconds,
        )
    )
    codec = PillowImageCodec(quality=resolved_settings.jpeg_quality)
    reaper = BlobReaper(storage)
    photo_service = PhotoService(
        repository=SupabasePhotoRepository(supabase_client),
        resolver=PhotoUrlResolver(
            storage, ttl_seconds=resolved_settings.signed_url_ttl_seconds
        ),
        reaper=reaper,
        cache=InMemoryCache(),
        cache_ttl_seconds=resolved_settings.public_cache_ttl_seconds,
        upsert_max_attempts=resolved_settings.upsert_max_attempts,
        upsert_backoff_seconds=resolved_settings.upsert_backoff_seconds,
    )
    upload_service = UploadService(
        codec=codec,
        broker=broker,
        processor=ReencodeProcessor(codec=codec, storage=storage),
        photo_service=photo_service,
        max_upload_bytes=resolved_settings.max_upload_bytes,
        timeout_seconds=resolved_settings.upload_timeout_seconds,
        enqueue_timeout_seconds=resolved_settings.enqueue_timeout_seconds,
    )

    async def close_resources() -> None:
        await reaper.drain()
        broker.close()

    return AppContainer(
        settings=resolved_settings,
        photo_service=photo_service,
        upload_service=upload_service,
        close_resources=close_resources,
    )
