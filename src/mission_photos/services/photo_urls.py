"""Signed read URL resolution with per-item degradation."""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from mission_photos.domain.photos import PhotoRecord, ResolvedPhoto
from mission_photos.services.storage import ObjectStorage, is_external_reference

logger = logging.getLogger(__name__)


@dataclass
class PhotoUrlResolver:
    """Attach signed URLs to photo records.

    Every URL is resolved in isolation: a signing failure turns that one field
    into ``None`` and never fails the record or the batch around it.
    """

    storage: ObjectStorage
    ttl_seconds: int = 600

    async def sign(self, key: str | None) -> str | None:
        """Return a signed URL for a storage key, or None if signing fails."""
        if not key:
            return None
        try:
            return await self.storage.sign_url(key, self.ttl_seconds)
        except Exception:
            logger.warning(
                "Failed to sign object URL",
                extra={"object_key": key},
                exc_info=True,
            )
            return None

    async def sign_image_reference(self, value: str | None) -> str | None:
        """Sign a storage key; external URLs and absolute paths pass through."""
        if not value:
            return None
        if is_external_reference(value):
            return value
        return await self.sign(value)

    async def resolve(self, photo: PhotoRecord) -> ResolvedPhoto:
        """Resolve the image URL and the owner's avatar URL for one photo."""
        profile_image = photo.owner.profile_image if photo.owner else None
        image_url, owner_image_url = await asyncio.gather(
            self.sign(photo.object_key),
            self.sign_image_reference(profile_image),
        )
        return ResolvedPhoto(
            photo=photo, image_url=image_url, owner_image_url=owner_image_url
        )

    async def resolve_many(self, photos: Iterable[PhotoRecord]) -> list[ResolvedPhoto]:
        """Resolve a batch, preserving order."""
        return list(await asyncio.gather(*(self.resolve(photo) for photo in photos)))
