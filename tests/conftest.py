"""Shared test fixtures."""

import asyncio
import io
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest
from jose import jwt
from PIL import Image

from mission_photos.adapters.pillow_codec import PillowImageCodec
from mission_photos.config import Settings
from mission_photos.containers import AppContainer
from mission_photos.domain.errors import DuplicatePhotoError
from mission_photos.domain.jobs import ReencodeJob
from mission_photos.domain.photos import (
    MissionSummary,
    PhotoChanges,
    PhotoContent,
    PhotoOwner,
    PhotoRecord,
)
from mission_photos.services.cache import InMemoryCache
from mission_photos.services.cleanup import BlobReaper
from mission_photos.services.jobs import JobBroker, ReencodeProcessor
from mission_photos.services.photo_urls import PhotoUrlResolver
from mission_photos.services.photos import PhotoRepository, PhotoService
from mission_photos.services.storage import CACHE_CONTROL_IMMUTABLE, ObjectStorage
from mission_photos.services.uploads import UploadService

JWT_SECRET = "jwt-secret"


@dataclass
class InMemoryPhotoRepository(PhotoRepository):
    """In-memory photo repository with a unique (user, mission) index.

    Every read yields to the event loop before returning, so concurrent
    uploads interleave between lookup and write like they would over a
    network.
    """

    photos: dict[UUID, PhotoRecord] = field(default_factory=dict)
    missions: dict[UUID, MissionSummary] = field(default_factory=dict)
    owners: dict[UUID, PhotoOwner] = field(default_factory=dict)
    insert_conflicts: int = 0
    _ticks: int = 0

    def _now(self) -> datetime:
        self._ticks += 1
        return datetime(2025, 1, 1, tzinfo=UTC) + timedelta(seconds=self._ticks)

    def _joined(self, photo: PhotoRecord) -> PhotoRecord:
        return replace(
            photo,
            mission=self.missions.get(photo.mission_id),
            owner=self.owners.get(photo.user_id),
        )

    def add_photo(  # noqa: PLR0913
        self,
        user_id: UUID,
        mission_id: UUID,
        object_key: str,
        is_public: bool = False,
        comment: str | None = None,
    ) -> PhotoRecord:
        now = self._now()
        photo = PhotoRecord(
            id=uuid4(),
            user_id=user_id,
            mission_id=mission_id,
            object_key=object_key,
            comment=comment,
            is_public=is_public,
            is_shared=False,
            file_size=10,
            mime_type="image/jpeg",
            width=1,
            height=1,
            created_at=now,
            updated_at=now,
        )
        self.photos[photo.id] = photo
        return photo

    async def get_by_user_mission(
        self, user_id: UUID, mission_id: UUID
    ) -> PhotoRecord | None:
        found = next(
            (
                photo
                for photo in self.photos.values()
                if photo.user_id == user_id and photo.mission_id == mission_id
            ),
            None,
        )
        await asyncio.sleep(0)
        return found

    async def create_photo(
        self, user_id: UUID, mission_id: UUID, content: PhotoContent
    ) -> PhotoRecord:
        for photo in self.photos.values():
            if photo.user_id == user_id and photo.mission_id == mission_id:
                self.insert_conflicts += 1
                raise DuplicatePhotoError("duplicate key value")
        now = self._now()
        photo = PhotoRecord(
            id=uuid4(),
            user_id=user_id,
            mission_id=mission_id,
            object_key=content.object_key,
            comment=content.comment,
            is_public=bool(content.is_public),
            is_shared=False,
            file_size=content.file_size,
            mime_type=content.mime_type,
            width=content.width,
            height=content.height,
            created_at=now,
            updated_at=now,
        )
        self.photos[photo.id] = photo
        return photo

    async def replace_content(
        self, photo_id: UUID, expected_key: str, content: PhotoContent
    ) -> PhotoRecord | None:
        current = self.photos.get(photo_id)
        if current is None or current.object_key != expected_key:
            return None
        updated = replace(
            current,
            object_key=content.object_key,
            file_size=content.file_size,
            mime_type=content.mime_type,
            width=content.width,
            height=content.height,
            comment=current.comment if content.comment is None else content.comment,
            is_public=(
                current.is_public if content.is_public is None else content.is_public
            ),
            updated_at=self._now(),
        )
        self.photos[photo_id] = updated
        return updated

    async def get_photo(self, photo_id: UUID) -> PhotoRecord | None:
        photo = self.photos.get(photo_id)
        await asyncio.sleep(0)
        return self._joined(photo) if photo else None

    async def list_by_user(
        self, user_id: UUID, limit: int | None = None
    ) -> list[PhotoRecord]:
        photos = sorted(
            (photo for photo in self.photos.values() if photo.user_id == user_id),
            key=lambda photo: photo.created_at,
            reverse=True,
        )
        if limit is not None:
            photos = photos[:limit]
        return [self._joined(photo) for photo in photos]

    async def list_public(self, limit: int, skip: int) -> list[PhotoRecord]:
        photos = sorted(
            (photo for photo in self.photos.values() if photo.is_public),
            key=lambda photo: photo.created_at,
            reverse=True,
        )
        return [self._joined(photo) for photo in photos[skip : skip + limit]]

    async def list_public_by_mission(self, mission_id: UUID) -> list[PhotoRecord]:
        photos = sorted(
            (
                photo
                for photo in self.photos.values()
                if photo.mission_id == mission_id and photo.is_public
            ),
            key=lambda photo: photo.created_at,
            reverse=True,
        )
        return [self._joined(photo) for photo in photos]

    async def update_photo(
        self, photo_id: UUID, changes: PhotoChanges
    ) -> PhotoRecord | None:
        current = self.photos.get(photo_id)
        if current is None:
            return None
        updated = replace(
            current,
            comment=current.comment if changes.comment is None else changes.comment,
            is_public=(
                current.is_public if changes.is_public is None else changes.is_public
            ),
            is_shared=(
                current.is_shared if changes.is_shared is None else changes.is_shared
            ),
            updated_at=self._now(),
        )
        self.photos[photo_id] = updated
        return self._joined(updated)

    async def delete_photo(self, photo_id: UUID) -> bool:
        return self.photos.pop(photo_id, None) is not None


@dataclass
class ConflictingPhotoRepository(InMemoryPhotoRepository):
    """Never finds the record, yet every insert violates the unique index."""

    async def get_by_user_mission(
        self, user_id: UUID, mission_id: UUID
    ) -> PhotoRecord | None:
        return None

    async def create_photo(
        self, user_id: UUID, mission_id: UUID, content: PhotoContent
    ) -> PhotoRecord:
        self.insert_conflicts += 1
        raise DuplicatePhotoError("duplicate key value")


@dataclass
class StoredObject:
    body: bytes
    content_type: str
    cache_control: str


@dataclass
class RecordingObjectStorage(ObjectStorage):
    """Object storage fake with injectable failures."""

    objects: dict[str, StoredObject] = field(default_factory=dict)
    deleted: list[str] = field(default_factory=list)
    fail_puts: bool = False
    fail_deletes: bool = False
    fail_sign_keys: set[str] = field(default_factory=set)

    async def put_object(
        self,
        key: str,
        body: bytes,
        content_type: str,
        cache_control: str = CACHE_CONTROL_IMMUTABLE,
    ) -> None:
        if self.fail_puts:
            raise ConnectionError("storage unavailable")
        self.objects[key] = StoredObject(body, content_type, cache_control)

    async def delete_object(self, key: str) -> None:
        if self.fail_deletes:
            raise ConnectionError("storage unavailable")
        self.deleted.append(key)
        self.objects.pop(key, None)

    async def sign_url(self, key: str, expires_in: int) -> str:
        if key in self.fail_sign_keys:
            raise ConnectionError("signing failed")
        return f"https://signed.example/{key}?expires={expires_in}"


@dataclass
class RecordingJobBroker(JobBroker):
    """Broker fake that keeps published jobs."""

    jobs: list[ReencodeJob] = field(default_factory=list)

    async def enqueue_reencode(self, job: ReencodeJob) -> None:
        self.jobs.append(job)


@dataclass
class FailingJobBroker(JobBroker):
    """Broker fake that is always unreachable."""

    attempts: int = 0

    async def enqueue_reencode(self, job: ReencodeJob) -> None:
        self.attempts += 1
        raise ConnectionError("broker unavailable")


def make_jpeg(
    width: int = 40, height: int = 20, orientation: int | None = None
) -> bytes:
    """Encode a small solid JPEG, optionally tagged with an EXIF orientation."""
    image = Image.new("RGB", (width, height), color=(200, 80, 40))
    output = io.BytesIO()
    if orientation is None:
        image.save(output, format="JPEG")
    else:
        exif = Image.Exif()
        exif[0x0112] = orientation
        image.save(output, format="JPEG", exif=exif)
    return output.getvalue()


def make_token(user_id: UUID, secret: str = JWT_SECRET) -> str:
    return jwt.encode({"sub": str(user_id)}, secret, algorithm="HS256")


def build_photo_service(
    repository: InMemoryPhotoRepository,
    storage: RecordingObjectStorage,
    cache_ttl_seconds: int = 0,
    upsert_max_attempts: int = 3,
) -> PhotoService:
    return PhotoService(
        repository=repository,
        resolver=PhotoUrlResolver(storage, ttl_seconds=600),
        reaper=BlobReaper(storage),
        cache=InMemoryCache(),
        cache_ttl_seconds=cache_ttl_seconds,
        upsert_max_attempts=upsert_max_attempts,
        upsert_backoff_seconds=0,
    )


def build_upload_service(
    photo_service: PhotoService,
    storage: RecordingObjectStorage,
    broker: JobBroker,
) -> UploadService:
    codec = PillowImageCodec()
    return UploadService(
        codec=codec,
        broker=broker,
        processor=ReencodeProcessor(codec=codec, storage=storage),
        photo_service=photo_service,
        max_upload_bytes=1024 * 1024,
        timeout_seconds=5,
        enqueue_timeout_seconds=1,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        jwt_secret=JWT_SECRET,
        s3_bucket="mission-photos-test",
        public_cache_ttl_seconds=0,
        max_upload_bytes=1024 * 1024,
    )


@pytest.fixture
def photo_repository() -> InMemoryPhotoRepository:
    return InMemoryPhotoRepository()


@pytest.fixture
def object_storage() -> RecordingObjectStorage:
    return RecordingObjectStorage()


@pytest.fixture
def job_broker() -> RecordingJobBroker:
    return RecordingJobBroker()


@pytest.fixture
def container(
    settings: Settings,
    photo_repository: InMemoryPhotoRepository,
    object_storage: RecordingObjectStorage,
    job_broker: RecordingJobBroker,
) -> AppContainer:
    photo_service = build_photo_service(photo_repository, object_storage)
    upload_service = build_upload_service(photo_service, object_storage, job_broker)

    async def close_resources() -> None:
        await photo_service.reaper.drain()

    return AppContainer(
        settings=settings,
        photo_service=photo_service,
        upload_service=upload_service,
        close_resources=close_resources,
    )
