"""Object storage interface."""

from typing import Protocol

CACHE_CONTROL_IMMUTABLE = "public, max-age=31536000, immutable"


class ObjectStorage(Protocol):
    """Interface for blob storage with time-limited read URLs."""

    async def put_object(
        self,
        key: str,
        body: bytes,
        content_type: str,
        cache_control: str = CACHE_CONTROL_IMMUTABLE,
    ) -> None:
        """Write a blob at the given key, overwriting any previous value."""

    async def delete_object(self, key: str) -> None:
        """Delete the blob at the given key."""

    async def sign_url(self, key: str, expires_in: int) -> str:
        """Return a signed read URL valid for ``expires_in`` seconds."""


def is_external_reference(value: str) -> bool:
    """Return True when a stored image value is a URL or path, not a storage key."""
    return value.startswith(("http://", "https://", "/"))
