"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from mission_photos.api.photos import router as photos_router
from mission_photos.app_logging import configure_logging
from mission_photos.containers import AppContainer
from mission_photos.domain.errors import (
    PayloadTooLargeError,
    PhotoValidationError,
    UploadFailedError,
)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        try:
            await app.state.container.close_resources()
        except Exception:
            logger.exception("Failed to close resources")

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(photos_router)

    @app.exception_handler(PhotoValidationError)
    async def validation_error(
        request: Request, exc: PhotoValidationError
    ) -> JSONResponse:
        status_code = (
            status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
            if isinstance(exc, PayloadTooLargeError)
            else status.HTTP_400_BAD_REQUEST
        )
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    @app.exception_handler(UploadFailedError)
    async def upload_failed(request: Request, exc: UploadFailedError) -> JSONResponse:
        status_code = (
            status.HTTP_503_SERVICE_UNAVAILABLE
            if exc.retryable
            else status.HTTP_502_BAD_GATEWAY
        )
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
