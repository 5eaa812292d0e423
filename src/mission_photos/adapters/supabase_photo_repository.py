"""Supabase-backed photo repository."""

import asyncio
from dataclasses import dataclass
from datetime import UTC, date, datetime
from uuid import UUID

from postgrest.exceptions import APIError
from supabase import Client

from mission_photos.domain.errors import DuplicatePhotoError
from mission_photos.domain.photos import (
    MissionSummary,
    PhotoChanges,
    PhotoContent,
    PhotoOwner,
    PhotoRecord,
)
from mission_photos.services.photos import PhotoRepository

_UNIQUE_VIOLATION = "23505"

_PHOTO_COLUMNS = (
    "id, user_id, mission_id, object_key, comment, is_public, is_shared, "
    "file_size, mime_type, width, height, created_at, updated_at"
)
_JOINED_COLUMNS = (
    f"{_PHOTO_COLUMNS}, missions(id, title, description, date), "
    "users(id, nickname, profile_image)"
)


@dataclass
class SupabasePhotoRepository(PhotoRepository):
    """Supabase implementation for photo persistence.

    Expects a unique index on ``photos(user_id, mission_id)``.
    """

    client: Client

    async def get_by_user_mission(
        self, user_id: UUID, mission_id: UUID
    ) -> PhotoRecord | None:
        """Return the photo for a user and mission, if present."""
        query = (
            self.client.table("photos")
            .select(_PHOTO_COLUMNS)
            .eq("user_id", str(user_id))
            .eq("mission_id", str(mission_id))
            .limit(1)
        )
        response = await asyncio.to_thread(query.execute)
        if not response.data:
            return None
        return _parse_photo(response.data[0])

    async def create_photo(
        self, user_id: UUID, mission_id: UUID, content: PhotoContent
    ) -> PhotoRecord:
        """Insert a photo row, translating unique violations."""
        payload = {
            "user_id": str(user_id),
            "mission_id": str(mission_id),
            **_content_payload(content),
            "is_public": bool(content.is_public),
        }
        query = self.client.table("photos").insert(payload)
        try:
            response = await asyncio.to_thread(query.execute)
        except APIError as exc:
            if exc.code == _UNIQUE_VIOLATION:
                raise DuplicatePhotoError(
                    f"Photo already exists for user {user_id} and mission {mission_id}"
                ) from exc
            raise
        if not response.data:
            raise RuntimeError("Failed to create photo")
        return _parse_photo(response.data[0])

    async def replace_content(
        self, photo_id: UUID, expected_key: str, content: PhotoContent
    ) -> PhotoRecord | None:
        """Compare-and-set the object key along with the upload fields."""
        payload = {
            **_content_payload(content),
            "updated_at": datetime.now(tz=UTC).isoformat(),
        }
        if content.is_public is not None:
            payload["is_public"] = content.is_public
        query = (
            self.client.table("photos")
            .update(payload)
            .eq("id", str(photo_id))
            .eq("object_key", expected_key)
        )
        response = await asyncio.to_thread(query.execute)
        if not response.data:
            return None
        return _parse_photo(response.data[0])

    async def get_photo(self, photo_id: UUID) -> PhotoRecord | None:
        """Return a photo with its mission and owner joined."""
        query = (
            self.client.table("photos")
            .select(_JOINED_COLUMNS)
            .eq("id", str(photo_id))
            .limit(1)
        )
        response = await asyncio.to_thread(query.execute)
        if not response.data:
            return None
        return _parse_photo(response.data[0])

    async def list_by_user(
        self, user_id: UUID, limit: int | None = None
    ) -> list[PhotoRecord]:
        """Return a user's photos, newest first."""
        query = (
            self.client.table("photos")
            .select(_JOINED_COLUMNS)
            .eq("user_id", str(user_id))
            .order("created_at", desc=True)
        )
        if limit is not None:
            query = query.limit(limit)
        response = await asyncio.to_thread(query.execute)
        return [_parse_photo(row) for row in response.data or []]

    async def list_public(self, limit: int, skip: int) -> list[PhotoRecord]:
        """Return a page of public photos, newest first."""
        query = (
            self.client.table("photos")
            .select(_JOINED_COLUMNS)
            .eq("is_public", True)
            .order("created_at", desc=True)
            .range(skip, skip + limit - 1)
        )
        response = await asyncio.to_thread(query.execute)
        return [_parse_photo(row) for row in response.data or []]

    async def list_public_by_mission(self, mission_id: UUID) -> list[PhotoRecord]:
        """Return public photos for a mission, newest first."""
        query = (
            self.client.table("photos")
            .select(_JOINED_COLUMNS)
            .eq("mission_id", str(mission_id))
            .eq("is_public", True)
            .order("created_at", desc=True)
        )
        response = await asyncio.to_thread(query.execute)
        return [_parse_photo(row) for row in response.data or []]

    async def update_photo(
        self, photo_id: UUID, changes: PhotoChanges
    ) -> PhotoRecord | None:
        """Apply field changes and return the joined photo."""
        payload: dict[str, object] = {"updated_at": datetime.now(tz=UTC).isoformat()}
        if changes.comment is not None:
            payload["comment"] = changes.comment
        if changes.is_public is not None:
            payload["is_public"] = changes.is_public
        if changes.is_shared is not None:
            payload["is_shared"] = changes.is_shared
        query = self.client.table("photos").update(payload).eq("id", str(photo_id))
        response = await asyncio.to_thread(query.execute)
        if not response.data:
            return None
        return await self.get_photo(photo_id)

    async def delete_photo(self, photo_id: UUID) -> bool:
        """Delete a photo row."""
        query = self.client.table("photos").delete().eq("id", str(photo_id))
        response = await asyncio.to_thread(query.execute)
        return bool(response.data)


def _content_payload(content: PhotoContent) -> dict[str, object]:
    payload: dict[str, object] = {
        "object_key": content.object_key,
        "file_size": content.file_size,
        "mime_type": content.mime_type,
        "width": content.width,
        "height": content.height,
    }
    if content.comment is not None:
        payload["comment"] = content.comment
    return payload


def _parse_photo(row: dict[str, object]) -> PhotoRecord:
    return PhotoRecord(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        mission_id=UUID(str(row["mission_id"])),
        object_key=str(row["object_key"]),
        comment=row.get("comment"),
        is_public=bool(row.get("is_public", False)),
        is_shared=bool(row.get("is_shared", False)),
        file_size=row.get("file_size"),
        mime_type=row.get("mime_type"),
        width=row.get("width"),
        height=row.get("height"),
        created_at=datetime.fromisoformat(str(row["created_at"])),
        updated_at=datetime.fromisoformat(
            str(row.get("updated_at") or row["created_at"])
        ),
        mission=_parse_mission(row.get("missions")),
        owner=_parse_owner(row.get("users")),
    )


def _parse_mission(value: object) -> MissionSummary | None:
    if not isinstance(value, dict) or not value.get("id"):
        return None
    raw_date = value.get("date")
    return MissionSummary(
        id=UUID(str(value["id"])),
        title=value.get("title"),
        description=value.get("description"),
        date=date.fromisoformat(str(raw_date)[:10]) if raw_date else None,
    )


def _parse_owner(value: object) -> PhotoOwner | None:
    if not isinstance(value, dict) or not value.get("id"):
        return None
    return PhotoOwner(
        id=UUID(str(value["id"])),
        nickname=value.get("nickname"),
        profile_image=value.get("profile_image"),
    )
