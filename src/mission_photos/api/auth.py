"""Bearer token authentication for photo endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from mission_photos.config import Settings  # noqa: TC001

if TYPE_CHECKING:
    from mission_photos.containers import AppContainer

bearer_scheme = HTTPBearer(auto_error=False)


def _get_settings(request: Request) -> Settings:
    container: AppContainer = request.app.state.container
    return container.settings


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    settings: Settings = Depends(_get_settings),
) -> UUID:
    """Return the caller's user id from the ``sub`` claim of a signed token."""
    if credentials is None:
        raise _unauthorized()
    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as exc:
        raise _unauthorized() from exc
    try:
        return UUID(str(payload.get("sub")))
    except ValueError as exc:
        raise _unauthorized() from exc
