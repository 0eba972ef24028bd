"""
Adapter: S3 Storage Service

Concrete IStorageService over any S3-compatible object store
(AWS S3, MinIO, Supabase Storage S3 endpoint).
"""

import hashlib
import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from src.core.exceptions import StorageError
from src.core.interfaces.storage_service import IStorageService, StoredObject

logger = logging.getLogger(__name__)


class S3StorageService(IStorageService):
    """
    Document and media storage in an S3 bucket.

    Switching between MinIO and AWS only changes the endpoint and
    credentials, no other code.
    """

    def __init__(
        self,
        bucket: str,
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        region: str = "us-east-1",
        client=None,
    ):
        self._bucket = bucket
        self._endpoint_url = endpoint_url
        self._region = region
        self._client = client or boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
        )

    def upload(self, data: bytes, key: str, content_type: str = "image/jpeg") -> StoredObject:
        try:
            self._client.put_object(Bucket=self._bucket, Key=key, Body=data, ContentType=content_type)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Upload failed for {key}: {e}", original_error=e)

        logger.info(f"Uploaded s3://{self._bucket}/{key} ({len(data)} bytes)")
        return StoredObject(
            bucket=self._bucket,
            key=key,
            size_bytes=len(data),
            sha256=hashlib.sha256(data).hexdigest(),
            content_type=content_type,
        )

    def download(self, key: str) -> bytes:
        try:
            response = self._client.get_object(Bucket=self._bucket, Key=key)
            return response["Body"].read()
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            raise StorageError(f"Download failed for {key} ({code}): {e}", original_error=e)
        except BotoCoreError as e:
            raise StorageError(f"Download failed for {key}: {e}", original_error=e)

    def get_url(self, key: str, expires_seconds: int = 3600) -> str:
        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self._bucket, "Key": key},
                ExpiresIn=expires_seconds,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Presign failed for {key}: {e}", original_error=e)

    def get_public_url(self, key: str) -> str:
        if self._endpoint_url:
            return f"{self._endpoint_url.rstrip('/')}/{self._bucket}/{key}"
        return f"https://{self._bucket}.s3.{self._region}.amazonaws.com/{key}"
