"""Errors raised by the photo pipeline."""


class PhotoValidationError(ValueError):
    """Raised when a request is rejected before any side effect."""


class PayloadTooLargeError(PhotoValidationError):
    """Raised when an upload exceeds the configured size cap."""


class UploadFailedError(RuntimeError):
    """Raised when an upload cannot be stored on any path."""

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


class DuplicatePhotoError(RuntimeError):
    """Raised by a repository when an insert hits the user/mission unique index."""
