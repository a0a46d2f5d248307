"""
S3 client for document bucket operations.

Handles presigned PUT URLs for direct client uploads, the existence check
performed on upload confirmation, and object removal on document deletion.
Downloads are the processing worker's concern.

Dependencies: boto3
System role: API-level S3 operations for the document bucket
"""

from datetime import datetime, timedelta, timezone
from typing import Any

import boto3
from botocore.exceptions import ClientError


class S3DocumentClient:
    """S3 client for document bucket operations."""

    def __init__(self, bucket: str, region: str = "us-east-1", client: Any | None = None) -> None:
        """
        Initialize S3 client for document bucket.

        Args:
            bucket: S3 bucket name for document storage
            region: AWS region for S3 bucket
            client: Pre-built boto3 S3 client (tests inject a stub)
        """
        self._bucket = bucket
        self._region = region
        self._s3_client = client or boto3.client("s3", region_name=region)

    @property
    def bucket(self) -> str:
        return self._bucket

    def generate_presigned_url(
        self,
        storage_key: str,
        content_type: str = "application/octet-stream",
        expires_in: int = 3600,
    ) -> tuple[str, datetime]:
        """
        Generate presigned URL for uploading a document.

        Args:
            storage_key: S3 object key (path in bucket)
            content_type: MIME type the upload must be sent with
            expires_in: URL expiry in seconds (default 1 hour)

        Returns:
            tuple[str, datetime]: (presigned_url, expires_at)

        Raises:
            ClientError: If presigned URL generation fails
        """
        presigned_url = self._s3_client.generate_presigned_url(
            ClientMethod="put_object",
            Params={
                "Bucket": self._bucket,
                "Key": storage_key,
                "ContentType": content_type,
            },
            ExpiresIn=expires_in,
        )
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
        return presigned_url, expires_at

    def file_exists(self, storage_key: str) -> bool:
        """
        Check if an object exists in the bucket.

        Returns:
            bool: True if the object exists, False on 404

        Raises:
            ClientError: Any error other than not-found
        """
        try:
            self._s3_client.head_object(Bucket=self._bucket, Key=storage_key)
            return True
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                return False
            raise

    def delete_object(self, storage_key: str) -> None:
        """
        Delete an object. Deleting a missing key succeeds.

        Raises:
            ClientError: If deletion fails
        """
        self._s3_client.delete_object(Bucket=self._bucket, Key=storage_key)
