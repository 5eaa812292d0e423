"""Photo records: per-day upsert, queries and field updates."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from mission_photos.domain.errors import (
    DuplicatePhotoError,
    PhotoValidationError,
    UploadFailedError,
)
from mission_photos.domain.photos import (
    PhotoChanges,
    PhotoContent,
    PhotoRecord,
    ResolvedPhoto,
    UpsertResult,
)
from mission_photos.services.cache import Cache, get_or_load
from mission_photos.services.cleanup import BlobReaper
from mission_photos.services.photo_urls import PhotoUrlResolver

logger = logging.getLogger(__name__)

COMMENT_MAX_LENGTH = 500
RECENT_DEFAULT_LIMIT = 3
RECENT_MAX_LIMIT = 10
PUBLIC_DEFAULT_LIMIT = 20
PUBLIC_MAX_LIMIT = 50

_PUBLIC_CACHE_PREFIX = "photos:public:"
_MISSION_CACHE_PREFIX = "photos:mission:"


class PhotoRepository(Protocol):
    """Persistence interface for photo records.

    Implementations must enforce uniqueness of ``(user_id, mission_id)`` and
    raise ``DuplicatePhotoError`` when an insert violates it.
    """

    async def get_by_user_mission(
        self, user_id: UUID, mission_id: UUID
    ) -> PhotoRecord | None:
        """Return the photo for a user and mission, if present."""

    async def create_photo(
        self, user_id: UUID, mission_id: UUID, content: PhotoContent
    ) -> PhotoRecord:
        """Insert a new photo record."""

    async def replace_content(
        self, photo_id: UUID, expected_key: str, content: PhotoContent
    ) -> PhotoRecord | None:
        """Overwrite upload fields if the stored key still equals ``expected_key``.

        Returns None when the record is gone or another upload replaced it first.
        """

    async def get_photo(self, photo_id: UUID) -> PhotoRecord | None:
        """Return a photo with mission and owner summaries joined."""

    async def list_by_user(
        self, user_id: UUID, limit: int | None = None
    ) -> list[PhotoRecord]:
        """Return a user's photos, newest first."""

    async def list_public(self, limit: int, skip: int) -> list[PhotoRecord]:
        """Return a page of public photos, newest first."""

    async def list_public_by_mission(self, mission_id: UUID) -> list[PhotoRecord]:
        """Return public photos for a mission, newest first."""

    async def update_photo(
        self, photo_id: UUID, changes: PhotoChanges
    ) -> PhotoRecord | None:
        """Apply field changes and return the updated photo."""

    async def delete_photo(self, photo_id: UUID) -> bool:
        """Delete a photo record; return True if a row was removed."""


def clamp(value: int, low: int, high: int) -> int:
    """Clamp ``value`` into ``[low, high]``."""
    return max(low, min(high, value))


def validate_comment(comment: str | None) -> None:
    """Reject comments longer than the allowed length."""
    if comment is not None and len(comment) > COMMENT_MAX_LENGTH:
        raise PhotoValidationError(
            f"Comment must be at most {COMMENT_MAX_LENGTH} characters."
        )


@dataclass
class PhotoService:
    """Application service for photo records and their read URLs."""

    repository: PhotoRepository
    resolver: PhotoUrlResolver
    reaper: BlobReaper
    cache: Cache
    cache_ttl_seconds: int = 5
    upsert_max_attempts: int = 3
    upsert_backoff_seconds: float = 0.05

    async def upsert_user_mission_photo(
        self, user_id: UUID, mission_id: UUID, content: PhotoContent
    ) -> UpsertResult:
        """Create the day's photo or replace the existing one in place.

        A concurrent upload can win the insert between our lookup and our
        insert, or replace the record between our lookup and our update. Both
        cases loop back to a fresh lookup, so exactly one record survives and
        every replaced key is released exactly once.

        Only lost inserts count against ``upsert_max_attempts``. A lost
        replace means another upload committed, so the loop re-reads the
        winner's key and replaces it in turn; the last commit wins.
        """
        attempt = 0
        while attempt < self.upsert_max_attempts:
            existing = await self.repository.get_by_user_mission(user_id, mission_id)
            if existing is None:
                attempt += 1
                try:
                    created = await self.repository.create_photo(
                        user_id, mission_id, content
                    )
                except DuplicatePhotoError:
                    logger.info(
                        "Insert lost a race; retrying as replace",
                        extra={
                            "user_id": str(user_id),
                            "mission_id": str(mission_id),
                            "attempt": attempt,
                        },
                    )
                    await self._backoff(attempt)
                    continue
                self._invalidate_listings()
                return UpsertResult(photo=created, replaced=False)

            replaced = await self.repository.replace_content(
                existing.id, existing.object_key, content
            )
            if replaced is None:
                logger.info(
                    "Replace lost a race; re-reading the winner",
                    extra={"photo_id": str(existing.id)},
                )
                continue
            if existing.object_key != content.object_key:
                self.reaper.schedule(existing.object_key)
            self._invalidate_listings()
            return UpsertResult(photo=replaced, replaced=True)

        logger.error(
            "Upsert did not settle",
            extra={
                "user_id": str(user_id),
                "mission_id": str(mission_id),
                "attempts": self.upsert_max_attempts,
            },
        )
        raise UploadFailedError(
            "The photo is being updated concurrently. Please retry.", retryable=True
        )

    async def list_mine(self, user_id: UUID) -> list[ResolvedPhoto]:
        """Return all of a user's photos, newest first."""
        photos = await self.repository.list_by_user(user_id)
        return await self.resolver.resolve_many(photos)

    async def list_recent(
        self, user_id: UUID, limit: int = RECENT_DEFAULT_LIMIT
    ) -> list[ResolvedPhoto]:
        """Return a user's most recent photos."""
        bounded = clamp(limit, 1, RECENT_MAX_LIMIT)
        photos = await self.repository.list_by_user(user_id, limit=bounded)
        return await self.resolver.resolve_many(photos)

    async def list_public(
        self, limit: int = PUBLIC_DEFAULT_LIMIT, skip: int = 0
    ) -> list[ResolvedPhoto]:
        """Return a page of public photos, newest first."""
        bounded = clamp(limit, 1, PUBLIC_MAX_LIMIT)
        offset = max(skip, 0)
        photos = await get_or_load(
            self.cache,
            f"{_PUBLIC_CACHE_PREFIX}{bounded}:{offset}",
            self.cache_ttl_seconds,
            lambda: self.repository.list_public(bounded, offset),
        )
        return await self.resolver.resolve_many(photos)

    async def list_for_mission(self, mission_id: UUID) -> list[ResolvedPhoto]:
        """Return the public photos posted for a mission."""
        photos = await get_or_load(
            self.cache,
            f"{_MISSION_CACHE_PREFIX}{mission_id}",
            self.cache_ttl_seconds,
            lambda: self.repository.list_public_by_mission(mission_id),
        )
        return await self.resolver.resolve_many(photos)

    async def get_photo(self, photo_id: UUID, viewer_id: UUID) -> ResolvedPhoto | None:
        """Return a photo the viewer owns or that is public."""
        photo = await self.repository.get_photo(photo_id)
        if photo is None or not (photo.is_public or photo.user_id == viewer_id):
            return None
        return await self.resolver.resolve(photo)

    async def update_photo(
        self, photo_id: UUID, user_id: UUID, changes: PhotoChanges
    ) -> ResolvedPhoto | None:
        """Apply field changes to one of the user's photos."""
        validate_comment(changes.comment)
        photo = await self._get_owned(photo_id, user_id)
        if photo is None:
            return None
        if not changes.is_empty():
            photo = await self.repository.update_photo(photo_id, changes)
            if photo is None:
                return None
            self._invalidate_listings()
        return await self.resolver.resolve(photo)

    async def mark_shared(self, photo_id: UUID, user_id: UUID) -> ResolvedPhoto | None:
        """Record that a photo was shared externally."""
        return await self.update_photo(photo_id, user_id, PhotoChanges(is_shared=True))

    async def delete_photo(self, photo_id: UUID, user_id: UUID) -> bool:
        """Delete one of the user's photos and release its blob."""
        photo = await self._get_owned(photo_id, user_id)
        if photo is None:
            return False
        self.reaper.schedule(photo.object_key)
        deleted = await self.repository.delete_photo(photo_id)
        self._invalidate_listings()
        return deleted

    async def delete_user_photos(self, user_id: UUID) -> int:
        """Delete every photo of a user, as part of account removal."""
        photos = await self.repository.list_by_user(user_id)
        for photo in photos:
            self.reaper.schedule(photo.object_key)
        results = await asyncio.gather(
            *(self.repository.delete_photo(photo.id) for photo in photos),
            return_exceptions=True,
        )
        deleted = 0
        for photo, result in zip(photos, results, strict=True):
            if isinstance(result, Exception):
                logger.warning(
                    "Photo record delete failed",
                    extra={"photo_id": str(photo.id)},
                    exc_info=result,
                )
            elif result:
                deleted += 1
        self._invalidate_listings()
        return deleted

    async def _get_owned(self, photo_id: UUID, user_id: UUID) -> PhotoRecord | None:
        photo = await self.repository.get_photo(photo_id)
        if photo is None or photo.user_id != user_id:
            return None
        return photo

    async def _backoff(self, attempt: int) -> None:
        if attempt < self.upsert_max_attempts and self.upsert_backoff_seconds > 0:
            await asyncio.sleep(self.upsert_backoff_seconds * 2 ** (attempt - 1))

    def _invalidate_listings(self) -> None:
        self.cache.invalidate_prefix(_PUBLIC_CACHE_PREFIX)
        self.cache.invalidate_prefix(_MISSION_CACHE_PREFIX)
