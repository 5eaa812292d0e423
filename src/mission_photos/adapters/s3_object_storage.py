"""S3-backed object storage."""

import asyncio
from dataclasses import dataclass

import boto3
from botocore.client import BaseClient
from botocore.config import Config

from mission_photos.services.storage import CACHE_CONTROL_IMMUTABLE, ObjectStorage


@dataclass
class S3ObjectStorage(ObjectStorage):
    """Object storage on Amazon S3 or an S3-compatible endpoint."""

    client: BaseClient
    bucket: str
    check_exists: bool = True

    @classmethod
    def create(  # noqa: PLR0913
        cls,
        *,
        bucket: str,
        region: str,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        endpoint_url: str | None = None,
        check_exists: bool = True,
    ) -> "S3ObjectStorage":
        """Create a storage client; credentials fall back to the AWS chain."""
        client = boto3.client(
            "s3",
            region_name=region,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            endpoint_url=endpoint_url,
            config=Config(signature_version="s3v4"),
        )
        return cls(client=client, bucket=bucket, check_exists=check_exists)

    async def put_object(
        self,
        key: str,
        body: bytes,
        content_type: str,
        cache_control: str = CACHE_CONTROL_IMMUTABLE,
    ) -> None:
        """Upload a blob."""
        await asyncio.to_thread(
            self.client.put_object,
            Bucket=self.bucket,
            Key=key,
            Body=body,
            ContentType=content_type,
            CacheControl=cache_control,
        )

    async def delete_object(self, key: str) -> None:
        """Delete a blob."""
        await asyncio.to_thread(self.client.delete_object, Bucket=self.bucket, Key=key)

    async def sign_url(self, key: str, expires_in: int) -> str:
        """Presign a GET for the blob.

        Presigning is local, so with ``check_exists`` a HEAD request runs first
        and a missing blob raises instead of yielding a URL that 404s.
        """
        if self.check_exists:
            await asyncio.to_thread(
                self.client.head_object, Bucket=self.bucket, Key=key
            )
        return await asyncio.to_thread(
            self.client.generate_presigned_url,
            "get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=expires_in,
        )
