"""
S3 client for object storage operations.
Works against any S3-compatible endpoint (IBM Cloud Object Storage, MinIO, AWS).
"""
from functools import lru_cache
from typing import Iterator, List

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError, BotoCoreError
from config import get_settings
from core.aws.object_store import ObjectInfo
from core.utils.logger import setup_logger
from core.exceptions import (
    ObjectStoreException,
    ObjectNotFoundError,
    ObjectStoreAccessDeniedError,
    ObjectStoreReadError,
    ObjectStoreWriteError,
    ObjectStoreDeleteError
)

logger = setup_logger(__name__)

ACCESS_DENIED_CODES = ['AccessDenied', 'InvalidAccessKeyId', 'SignatureDoesNotMatch', 'NoSuchBucket']
NOT_FOUND_CODES = ['NoSuchKey', 'NotFound', '404']


def _translate_client_error(
    e: ClientError,
    bucket: str,
    key: str,
    fallback: type
) -> ObjectStoreException:
    """Map a botocore ClientError onto our object store exceptions."""
    error_code = e.response.get('Error', {}).get('Code', 'Unknown')
    error_message = e.response.get('Error', {}).get('Message', str(e))

    if error_code in NOT_FOUND_CODES:
        return ObjectNotFoundError(
            message=f"Object not found: {key}",
            detail={"key": key, "error_code": error_code}
        )
    if error_code in ACCESS_DENIED_CODES:
        return ObjectStoreAccessDeniedError(
            message="Object store access denied",
            detail={"bucket": bucket, "error_code": error_code}
        )
    return fallback(
        message=f"Object store error: {error_message}",
        detail={"key": key, "error_code": error_code}
    )


class S3ObjectStream:
    """Wraps a botocore StreamingBody so read failures surface as ObjectStoreReadError."""

    def __init__(self, body, key: str, chunk_size: int):
        self._body = body
        self._key = key
        self._chunk_size = chunk_size

    def iter_chunks(self) -> Iterator[bytes]:
        try:
            for chunk in self._body.iter_chunks(self._chunk_size):
                if chunk:
                    yield chunk
        except (BotoCoreError, OSError) as e:
            raise ObjectStoreReadError(
                message=f"Object stream interrupted: {str(e)}",
                detail={"key": self._key}
            )

    def close(self) -> None:
        self._body.close()


class S3ObjectStore:
    """ObjectStore implementation over a boto3 S3 client."""

    def __init__(self, client, bucket: str):
        """
        Args:
            client: boto3 S3 client
            bucket: Bucket holding both the catalog and the asset payloads
        """
        self.client = client
        self.bucket = bucket

    def get_object(self, key: str) -> bytes:
        """
        Read a whole object into memory.

        Raises:
            ObjectNotFoundError: If the key doesn't exist
            ObjectStoreAccessDeniedError: If the bucket is missing or access is denied
            ObjectStoreReadError: For other S3 errors
        """
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
            return response['Body'].read()
        except ClientError as e:
            raise _translate_client_error(e, self.bucket, key, ObjectStoreReadError)
        except BotoCoreError as e:
            raise ObjectStoreReadError(
                message=f"Object store service error: {str(e)}",
                detail={"key": key}
            )

    def open_object_stream(self, key: str, chunk_size: int) -> S3ObjectStream:
        """
        Issue the GET and hand back the body unread.

        Errors reported by the GET itself (missing key, access denied) raise
        here; errors while reading raise from S3ObjectStream.iter_chunks.
        """
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            raise _translate_client_error(e, self.bucket, key, ObjectStoreReadError)
        except BotoCoreError as e:
            raise ObjectStoreReadError(
                message=f"Object store service error: {str(e)}",
                detail={"key": key}
            )
        return S3ObjectStream(response['Body'], key, chunk_size)

    def put_object(self, key: str, data: bytes, content_type: str) -> None:
        """
        Write an object, replacing any existing object with the same key.

        Raises:
            ObjectStoreAccessDeniedError: If the bucket is missing or access is denied
            ObjectStoreWriteError: For other S3 errors
        """
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type
            )
        except ClientError as e:
            raise _translate_client_error(e, self.bucket, key, ObjectStoreWriteError)
        except BotoCoreError as e:
            raise ObjectStoreWriteError(
                message=f"Object store service error: {str(e)}",
                detail={"key": key}
            )

    def delete_object(self, key: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            raise _translate_client_error(e, self.bucket, key, ObjectStoreDeleteError)
        except BotoCoreError as e:
            raise ObjectStoreDeleteError(
                message=f"Object store service error: {str(e)}",
                detail={"key": key}
            )

    def list_objects(self, prefix: str = "") -> List[ObjectInfo]:
        """
        List every object under a prefix, following continuation tokens.

        Returns:
            ObjectInfo entries in key order
        """
        objects = []
        try:
            paginator = self.client.get_paginator('list_objects_v2')
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                for item in page.get('Contents', []):
                    objects.append(ObjectInfo(
                        key=item['Key'],
                        size=item['Size'],
                        last_modified=item.get('LastModified')
                    ))
        except ClientError as e:
            raise _translate_client_error(e, self.bucket, prefix, ObjectStoreReadError)
        except BotoCoreError as e:
            raise ObjectStoreReadError(
                message=f"Object store service error: {str(e)}",
                detail={"prefix": prefix}
            )
        return objects


def create_s3_client():
    """Build the boto3 S3 client from settings."""
    settings = get_settings()
    return boto3.client(
        's3',
        endpoint_url=settings.cos_endpoint,
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
        region_name=settings.aws_region,
        config=Config(
            connect_timeout=settings.s3_connect_timeout,
            read_timeout=settings.s3_read_timeout,
            retries={'max_attempts': 1, 'mode': 'standard'}
        )
    )


@lru_cache()
def get_object_store() -> S3ObjectStore:
    """Get the process-wide object store bound to the configured bucket."""
    settings = get_settings()
    logger.info(f"Initializing object store for bucket: {settings.s3_bucket_name}")
    return S3ObjectStore(create_s3_client(), settings.s3_bucket_name)
