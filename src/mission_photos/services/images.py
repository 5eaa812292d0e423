"""Image codec interface and content-type helpers."""

from pathlib import PurePosixPath
from typing import Protocol

from mission_photos.domain.images import NormalizedImage

_MIME_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/pjpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
    "image/heic": "heic",
    "image/heif": "heif",
}
_IMAGE_SUFFIXES = frozenset(_MIME_EXTENSIONS.values()) | {"jpeg"}


class ImageCodec(Protocol):
    """Interface for rotating and re-encoding uploaded images."""

    def normalize(self, content: bytes) -> NormalizedImage:
        """Rotate the image upright and re-encode it in the canonical format."""


def is_image_content_type(content_type: str | None) -> bool:
    """Return True for any ``image/*`` content type."""
    return bool(content_type) and content_type.lower().startswith("image/")


def extension_for(filename: str | None, content_type: str | None) -> str:
    """Pick a file extension for bytes stored without re-encoding.

    A known MIME type decides. The filename suffix is used only for unknown
    types, and only when it is itself an image suffix.
    """
    if content_type:
        mapped = _MIME_EXTENSIONS.get(content_type.lower())
        if mapped:
            return mapped
    if filename:
        suffix = PurePosixPath(filename).suffix.lstrip(".").lower()
        if suffix in _IMAGE_SUFFIXES:
            return "jpg" if suffix == "jpeg" else suffix
    return "jpg"
