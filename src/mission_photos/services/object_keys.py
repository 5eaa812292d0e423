"""Object key allocation for stored photos."""

from datetime import UTC, datetime
from uuid import UUID, uuid4


def build_object_key(
    user_id: UUID | str, ext: str, timestamp: datetime, random_id: UUID | str
) -> str:
    """Return ``users/<user>/<yyyy>/<mm>/<dd>/<random>.<ext>``."""
    clean_ext = ext.lower().lstrip(".") or "jpg"
    return f"users/{user_id}/{timestamp:%Y/%m/%d}/{random_id}.{clean_ext}"


def allocate_object_key(user_id: UUID, ext: str) -> str:
    """Allocate a fresh key for a new upload attempt."""
    return build_object_key(user_id, ext, datetime.now(tz=UTC), uuid4())
