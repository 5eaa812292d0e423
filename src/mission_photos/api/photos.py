"""Photo API endpoints."""

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    Request,
    UploadFile,
    status,
)

from mission_photos.api.auth import get_current_user_id
from mission_photos.api.photo_models import (
    DeleteResponse,
    PhotoOut,
    PhotoUpdateIn,
    UploadResponse,
)
from mission_photos.domain.photos import PhotoChanges, ResolvedPhoto
from mission_photos.services.photos import PUBLIC_DEFAULT_LIMIT, RECENT_DEFAULT_LIMIT
from mission_photos.services.uploads import UploadRequest

if TYPE_CHECKING:
    from mission_photos.containers import AppContainer

router = APIRouter(prefix="/photo", tags=["photos"])


def _container(request: Request) -> "AppContainer":
    return request.app.state.container


def _photo_or_404(resolved: ResolvedPhoto | None) -> PhotoOut:
    if resolved is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return PhotoOut.from_resolved(resolved)


@router.post(
    "/upload", status_code=status.HTTP_201_CREATED, response_model=UploadResponse
)
async def upload_photo(  # noqa: PLR0913
    request: Request,
    file: UploadFile | None = File(default=None),
    mission_id: str | None = Form(default=None, alias="missionId"),
    comment: str | None = Form(default=None),
    is_public: bool | None = Form(default=None, alias="isPublic"),
    user_id: UUID = Depends(get_current_user_id),
) -> UploadResponse:
    """Upload today's photo for a mission, replacing an earlier one."""
    container = _container(request)
    content = b""
    if file is not None:
        # One byte past the cap is enough to reject oversized uploads.
        content = await file.read(container.settings.max_upload_bytes + 1)
    outcome = await container.upload_service.upload(
        UploadRequest(
            user_id=user_id,
            mission_id=mission_id,
            content=content,
            content_type=file.content_type if file else None,
            filename=file.filename if file else None,
            comment=comment,
            is_public=is_public,
        )
    )
    return UploadResponse(
        photo=PhotoOut.from_resolved(outcome.photo), replaced=outcome.replaced
    )


@router.get("/mine", response_model=list[PhotoOut])
async def my_photos(
    request: Request, user_id: UUID = Depends(get_current_user_id)
) -> list[PhotoOut]:
    """Return the caller's photos, newest first."""
    photos = await _container(request).photo_service.list_mine(user_id)
    return [PhotoOut.from_resolved(photo) for photo in photos]


@router.get("/mine/recent", response_model=list[PhotoOut])
async def my_recent_photos(
    request: Request,
    limit: int = RECENT_DEFAULT_LIMIT,
    user_id: UUID = Depends(get_current_user_id),
) -> list[PhotoOut]:
    """Return the caller's most recent photos."""
    photos = await _container(request).photo_service.list_recent(user_id, limit)
    return [PhotoOut.from_resolved(photo) for photo in photos]


@router.delete("/mine", response_model=DeleteResponse)
async def delete_my_photos(
    request: Request, user_id: UUID = Depends(get_current_user_id)
) -> DeleteResponse:
    """Delete every photo of the caller, used when the account is removed."""
    deleted = await _container(request).photo_service.delete_user_photos(user_id)
    return DeleteResponse(deleted=deleted)


@router.get("/public", response_model=list[PhotoOut])
async def public_photos(
    request: Request,
    limit: int = PUBLIC_DEFAULT_LIMIT,
    skip: int = 0,
    _user_id: UUID = Depends(get_current_user_id),
) -> list[PhotoOut]:
    """Return a page of public photos, newest first."""
    photos = await _container(request).photo_service.list_public(limit, skip)
    return [PhotoOut.from_resolved(photo) for photo in photos]


@router.get("/mission/{mission_id}", response_model=list[PhotoOut])
async def mission_photos(
    mission_id: UUID,
    request: Request,
    _user_id: UUID = Depends(get_current_user_id),
) -> list[PhotoOut]:
    """Return the public photos posted for a mission."""
    photos = await _container(request).photo_service.list_for_mission(mission_id)
    return [PhotoOut.from_resolved(photo) for photo in photos]


@router.get("/{photo_id}", response_model=PhotoOut)
async def photo_detail(
    photo_id: UUID, request: Request, user_id: UUID = Depends(get_current_user_id)
) -> PhotoOut:
    """Return a single photo owned by the caller or shared publicly."""
    resolved = await _container(request).photo_service.get_photo(photo_id, user_id)
    return _photo_or_404(resolved)


@router.put("/{photo_id}", response_model=PhotoOut)
async def update_photo(
    photo_id: UUID,
    update: PhotoUpdateIn,
    request: Request,
    user_id: UUID = Depends(get_current_user_id),
) -> PhotoOut:
    """Change visibility or comment of one of the caller's photos."""
    resolved = await _container(request).photo_service.update_photo(
        photo_id,
        user_id,
        PhotoChanges(comment=update.comment, is_public=update.is_public),
    )
    return _photo_or_404(resolved)


@router.put("/{photo_id}/share", response_model=PhotoOut)
async def mark_photo_shared(
    photo_id: UUID, request: Request, user_id: UUID = Depends(get_current_user_id)
) -> PhotoOut:
    """Mark one of the caller's photos as shared externally."""
    resolved = await _container(request).photo_service.mark_shared(photo_id, user_id)
    return _photo_or_404(resolved)


@router.delete("/{photo_id}", response_model=DeleteResponse)
async def delete_photo(
    photo_id: UUID, request: Request, user_id: UUID = Depends(get_current_user_id)
) -> DeleteResponse:
    """Delete one of the caller's photos."""
    deleted = await _container(request).photo_service.delete_photo(photo_id, user_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return DeleteResponse(deleted=True)
