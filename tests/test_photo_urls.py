"""Tests for signed URL resolution."""

import asyncio
from datetime import UTC, datetime
from uuid import uuid4

from mission_photos.domain.photos import PhotoOwner, PhotoRecord
from mission_photos.services.photo_urls import PhotoUrlResolver
from tests.conftest import RecordingObjectStorage


def _photo(key: str, profile_image: str | None = None) -> PhotoRecord:
    now = datetime.now(tz=UTC)
    user_id = uuid4()
    return PhotoRecord(
        id=uuid4(),
        user_id=user_id,
        mission_id=uuid4(),
        object_key=key,
        comment=None,
        is_public=True,
        is_shared=False,
        file_size=None,
        mime_type=None,
        width=None,
        height=None,
        created_at=now,
        updated_at=now,
        owner=PhotoOwner(id=user_id, nickname="n", profile_image=profile_image),
    )


def test_avatar_external_references_pass_through() -> None:
    resolver = PhotoUrlResolver(RecordingObjectStorage(), ttl_seconds=60)

    async def run() -> list[str | None]:
        return [
            await resolver.sign_image_reference("https://cdn.example/a.png"),
            await resolver.sign_image_reference("http://cdn.example/a.png"),
            await resolver.sign_image_reference("/static/default.png"),
            await resolver.sign_image_reference("avatars/a.png"),
            await resolver.sign_image_reference(None),
        ]

    assert asyncio.run(run()) == [
        "https://cdn.example/a.png",
        "http://cdn.example/a.png",
        "/static/default.png",
        "https://signed.example/avatars/a.png?expires=60",
        None,
    ]


def test_avatar_failure_keeps_photo_url() -> None:
    storage = RecordingObjectStorage(fail_sign_keys={"avatars/broken.png"})
    resolver = PhotoUrlResolver(storage)

    resolved = asyncio.run(resolver.resolve(_photo("k1", "avatars/broken.png")))

    assert resolved.image_url == "https://signed.example/k1?expires=600"
    assert resolved.owner_image_url is None


def test_resolve_many_preserves_order() -> None:
    resolver = PhotoUrlResolver(RecordingObjectStorage(fail_sign_keys={"b"}))
    photos = [_photo(key) for key in ("a", "b", "c")]

    resolved = asyncio.run(resolver.resolve_many(photos))

    assert [item.photo.object_key for item in resolved] == ["a", "b", "c"]
    assert [item.image_url is None for item in resolved] == [False, True, False]
