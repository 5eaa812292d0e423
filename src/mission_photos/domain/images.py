"""Models for normalized image data."""

from dataclasses import dataclass


@dataclass(frozen=True)
class NormalizedImage:
    """Image bytes in canonical orientation and encoding."""

    content: bytes
    ext: str
    mime_type: str
    width: int | None
    height: int | None
