"""
S3 artifact store for generated tracks using aioboto3.
"""
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List, Optional

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from facetrack.core.config import settings
from facetrack.core.exceptions import StorageError
from facetrack.core.logging import get_logger
from facetrack.domain.interfaces.storage.artifact_store import ArtifactStore

logger = get_logger(__name__)


class S3ArtifactStore(ArtifactStore):
    """Artifact store backed by an S3 bucket."""

    def __init__(
        self,
        bucket_name: Optional[str] = None,
        region_name: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        public_base_url: Optional[str] = None,
    ):
        """Store configuration; clients are opened per operation."""
        self.bucket_name = bucket_name or settings.AWS_S3_BUCKET
        self.region_name = region_name or settings.AWS_REGION
        self.access_key_id = access_key_id or settings.AWS_ACCESS_KEY_ID
        self.secret_access_key = secret_access_key or settings.AWS_SECRET_ACCESS_KEY
        self.public_base_url = (public_base_url or settings.AUDIO_PUBLIC_BASE_URL or "").rstrip("/")
        self._session = aioboto3.Session()

    @asynccontextmanager
    async def _get_client(self) -> AsyncGenerator[Any, None]:
        """Async context manager yielding an S3 client."""
        client_args = {'region_name': self.region_name or "us-east-1"}
        if self.access_key_id and self.secret_access_key:
            client_args['aws_access_key_id'] = self.access_key_id
            client_args['aws_secret_access_key'] = self.secret_access_key

        try:
            async with self._session.client("s3", **client_args) as s3:
                yield s3
        except NoCredentialsError as e:
            logger.error("AWS credentials not found for S3", error=str(e))
            raise StorageError("AWS credentials not found or configured correctly.") from e

    def public_url(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        return f"https://{self.bucket_name}.s3.{self.region_name}.amazonaws.com/{key}"

    async def exists(self, key: str) -> bool:
        """Whether an object exists under ``key``."""
        try:
            async with self._get_client() as s3:
                await s3.head_object(Bucket=self.bucket_name, Key=key)
            return True
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code')
            if error_code in ('404', 'NoSuchKey', 'NotFound'):
                return False
            logger.error("Failed to check object", key=key, error=str(e))
            raise StorageError(f"Failed to check object '{key}': {e}") from e
        except BotoCoreError as e:
            logger.error("Failed to reach S3", key=key, error=str(e))
            raise StorageError(f"Failed to check object '{key}': {e}") from e

    async def upload(
        self,
        key: str,
        data: bytes,
        content_type: str,
        overwrite: bool = True,
    ) -> str:
        """Put an object; S3 replaces any existing object under the same key."""
        if not overwrite and await self.exists(key):
            logger.info("Object already exists, keeping it", key=key)
            return self.public_url(key)

        try:
            async with self._get_client() as s3:
                await s3.put_object(
                    Bucket=self.bucket_name,
                    Key=key,
                    Body=data,
                    ContentType=content_type,
                )
            logger.info("Uploaded object to S3", key=key, bucket=self.bucket_name, size=len(data))
            return self.public_url(key)
        except ClientError as e:
            logger.error("Failed to upload object to S3 due to client error",
                         key=key, error=str(e), exc_info=True)
            raise StorageError(f"Failed to upload '{key}' to S3: {e}") from e
        except BotoCoreError as e:
            logger.error("Failed to reach S3 for upload", key=key, error=str(e))
            raise StorageError(f"Failed to upload '{key}' to S3: {e}") from e

    async def get_object(self, key: str) -> bytes:
        """Read an object's bytes.

        Raises:
            StorageError: If the object is missing or access is denied
        """
        try:
            async with self._get_client() as s3:
                response = await s3.get_object(Bucket=self.bucket_name, Key=key)
                body = response['Body']
                return await body.read()
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code')
            if error_code == 'NoSuchKey':
                logger.warning("Object not found in S3", key=key, bucket=self.bucket_name)
                raise StorageError(f"File not found: {key}", details={"not_found": True}) from e
            elif error_code == '403' or "Forbidden" in str(e) or "Access Denied" in str(e):
                logger.error("Access denied when reading object", key=key, error=str(e))
                raise StorageError(f"Access denied for file: {key}") from e
            logger.error("Failed to read object from S3", key=key, error=str(e), exc_info=True)
            raise StorageError(f"Failed to retrieve '{key}' due to S3 error: {e}") from e
        except BotoCoreError as e:
            logger.error("Failed to reach S3 for read", key=key, error=str(e))
            raise StorageError(f"Failed to retrieve '{key}': {e}") from e

    async def list_objects(self, prefix: str = '', max_keys: int = 1000) -> List[Dict[str, Any]]:
        """List object metadata under a prefix using the paginator."""
        objects = []
        try:
            async with self._get_client() as s3:
                paginator = s3.get_paginator('list_objects_v2')
                async for page in paginator.paginate(
                    Bucket=self.bucket_name,
                    Prefix=prefix,
                    PaginationConfig={'MaxItems': max_keys}
                ):
                    for obj in page.get('Contents', []):
                        objects.append({
                            'key': obj['Key'],
                            'size': obj['Size'],
                            'last_modified': obj['LastModified'],
                        })
                        if len(objects) >= max_keys:
                            break
                    if len(objects) >= max_keys:
                        break

            logger.debug("Listed objects", prefix=prefix, count=len(objects))
            return objects
        except ClientError as e:
            logger.error("Failed to list objects in S3 due to client error",
                         prefix=prefix, error=str(e), exc_info=True)
            raise StorageError(f"Failed to list objects with prefix '{prefix}': {e}") from e
        except BotoCoreError as e:
            logger.error("Failed to reach S3 for listing", prefix=prefix, error=str(e))
            raise StorageError(f"Failed to list objects with prefix '{prefix}': {e}") from e
