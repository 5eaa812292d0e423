"""Pydantic models for photo API payloads."""

import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from mission_photos.domain.photos import ResolvedPhoto


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MissionOut(_CamelModel):
    """Mission summary embedded in a photo."""

    id: UUID
    title: str | None = None
    description: str | None = None
    date: datetime.date | None = None


class PhotoOwnerOut(_CamelModel):
    """Owner summary embedded in a photo."""

    id: UUID
    nickname: str | None = None
    profile_image: str | None = None


class PhotoOut(_CamelModel):
    """Photo metadata with a signed image URL; the storage key is never exposed."""

    id: UUID
    user_id: UUID
    mission_id: UUID
    comment: str | None = None
    is_public: bool
    is_shared: bool
    file_size: int | None = None
    mime_type: str | None = None
    width: int | None = None
    height: int | None = None
    created_at: datetime.datetime
    updated_at: datetime.datetime
    image_url: str | None = None
    mission: MissionOut | None = None
    user: PhotoOwnerOut | None = None

    @classmethod
    def from_resolved(cls, resolved: ResolvedPhoto) -> "PhotoOut":
        """Build the response shape from a resolved photo."""
        photo = resolved.photo
        mission = None
        if photo.mission:
            mission = MissionOut(
                id=photo.mission.id,
                title=photo.mission.title,
                description=photo.mission.description,
                date=photo.mission.date,
            )
        owner = None
        if photo.owner:
            owner = PhotoOwnerOut(
                id=photo.owner.id,
                nickname=photo.owner.nickname,
                profile_image=resolved.owner_image_url,
            )
        return cls(
            id=photo.id,
            user_id=photo.user_id,
            mission_id=photo.mission_id,
            comment=photo.comment,
            is_public=photo.is_public,
            is_shared=photo.is_shared,
            file_size=photo.file_size,
            mime_type=photo.mime_type,
            width=photo.width,
            height=photo.height,
            created_at=photo.created_at,
            updated_at=photo.updated_at,
            image_url=resolved.image_url,
            mission=mission,
            user=owner,
        )


class UploadResponse(_CamelModel):
    """Response to a photo upload."""

    photo: PhotoOut
    replaced: bool


class PhotoUpdateIn(_CamelModel):
    """Mutable photo fields."""

    is_public: bool | None = None
    comment: str | None = None


class DeleteResponse(BaseModel):
    """Response to a delete request."""

    deleted: bool | int
