"""Domain models for mission photos."""

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID


@dataclass(frozen=True)
class MissionSummary:
    """Mission fields joined onto a photo for display."""

    id: UUID
    title: str | None
    description: str | None
    date: date | None


@dataclass(frozen=True)
class PhotoOwner:
    """Owner fields joined onto a photo for display."""

    id: UUID
    nickname: str | None
    profile_image: str | None


@dataclass(frozen=True)
class PhotoRecord:
    """Represents a persisted photo, one per user and mission."""

    id: UUID
    user_id: UUID
    mission_id: UUID
    object_key: str
    comment: str | None
    is_public: bool
    is_shared: bool
    file_size: int | None
    mime_type: str | None
    width: int | None
    height: int | None
    created_at: datetime
    updated_at: datetime
    mission: MissionSummary | None = None
    owner: PhotoOwner | None = None


@dataclass(frozen=True)
class PhotoContent:
    """Fields written by a single upload attempt.

    ``comment`` and ``is_public`` are optional on upload; ``None`` leaves the
    stored value untouched when an existing record is replaced.
    """

    object_key: str
    file_size: int | None
    mime_type: str | None
    width: int | None
    height: int | None
    comment: str | None = None
    is_public: bool | None = None


@dataclass(frozen=True)
class PhotoChanges:
    """Explicit field updates applied to an existing photo."""

    comment: str | None = None
    is_public: bool | None = None
    is_shared: bool | None = None

    def is_empty(self) -> bool:
        """Return True when no field would change."""
        return (
            self.comment is None and self.is_public is None and self.is_shared is None
        )


@dataclass(frozen=True)
class UpsertResult:
    """Outcome of the per-day upsert."""

    photo: PhotoRecord
    replaced: bool


@dataclass(frozen=True)
class ResolvedPhoto:
    """A photo with its read URLs resolved for a response."""

    photo: PhotoRecord
    image_url: str | None
    owner_image_url: str | None = None
