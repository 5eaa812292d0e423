"""Background job payloads."""

import base64

from pydantic import BaseModel, Field


class ReencodeJob(BaseModel):
    """Payload of a re-encode-and-store job.

    The image travels inline as base64 so the broker message is JSON-safe.
    ``normalized`` marks bytes that already are the canonical encoding.
    """

    key: str = Field(min_length=1)
    content_b64: str
    content_type: str
    normalized: bool = False

    @classmethod
    def from_bytes(
        cls, key: str, content: bytes, content_type: str, normalized: bool = False
    ) -> "ReencodeJob":
        """Build a job from raw image bytes."""
        return cls(
            key=key,
            content_b64=base64.b64encode(content).decode("ascii"),
            content_type=content_type,
            normalized=normalized,
        )

    def content(self) -> bytes:
        """Return the decoded image bytes."""
        return base64.b64decode(self.content_b64)
