"""Bucket-scoped object storage clients."""

import base64
import hashlib
import logging
from dataclasses import dataclass, field
from functools import cached_property
from typing import Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from errors import StorageError

logger = logging.getLogger(__name__)

# S3 DeleteObjects accepts at most 1000 keys per request
MAX_KEYS_PER_PAGE = 1000


@dataclass(frozen=True)
class ObjectPage:
    """One page of a bucket listing."""
    keys: tuple = field(default_factory=tuple)
    truncated: bool = False
    continuation: Optional[str] = None


class ObjectStore(Protocol):
    """Protocol for a bucket-scoped object store."""

    def list_objects(self, continuation: Optional[str] = None) -> ObjectPage:
        """List the next page of object keys."""
        ...

    def delete_objects(self, keys: list[str]) -> None:
        """Delete a batch of keys, failing as a unit."""
        ...


def _endpoint_url(endpoint: str) -> str:
    if endpoint.startswith(('http://', 'https://')):
        return endpoint
    return f'https://{endpoint}'


def use_content_md5(request, **kwargs) -> None:
    """Send Content-MD5 instead of flexible checksums on DeleteObjects.

    Registered on before-sign, so the header is covered by the signature.
    OSS rejects multi-object deletes that carry no Content-MD5.
    """
    body = request.body or b''
    if isinstance(body, str):
        body = body.encode('utf-8')
    for header in list(request.headers.keys()):
        if header.lower().startswith(('x-amz-checksum-', 'x-amz-sdk-checksum-')):
            del request.headers[header]
    del request.headers['Content-MD5']
    request.headers['Content-MD5'] = base64.b64encode(hashlib.md5(bytes(body)).digest()).decode('ascii')


class S3BucketStore:
    """Object store speaking the S3-compatible API of a storage endpoint."""

    def __init__(
        self,
        bucket: str,
        endpoint: str,
        access_key_id: str,
        access_key_secret: str,
        region: Optional[str] = None,
        page_size: int = MAX_KEYS_PER_PAGE,
    ) -> None:
        """Initialize store.

        Args:
            bucket: Bucket name.
            endpoint: Storage endpoint host or URL (from engine state).
            access_key_id: Storage-scoped access key id.
            access_key_secret: Storage-scoped access key secret.
            region: Optional region name for request signing.
            page_size: Keys requested per listing page.
        """
        self.bucket = bucket
        self.endpoint = endpoint
        self.region = region
        self.page_size = min(page_size, MAX_KEYS_PER_PAGE)
        self._access_key_id = access_key_id
        self._access_key_secret = access_key_secret

    def __repr__(self) -> str:
        return f"S3BucketStore(bucket={self.bucket!r}, endpoint={self.endpoint!r})"

    @cached_property
    def _s3(self):
        """Lazily created S3 client."""
        client = boto3.client(
            's3',
            endpoint_url=_endpoint_url(self.endpoint),
            aws_access_key_id=self._access_key_id,
            aws_secret_access_key=self._access_key_secret,
            region_name=self.region,
            config=Config(
                s3={'addressing_style': 'virtual'},
                request_checksum_calculation='when_required',
                response_checksum_validation='when_required',
            ),
        )
        client.meta.events.register('before-sign.s3.DeleteObjects', use_content_md5)
        return client

    def list_objects(self, continuation: Optional[str] = None) -> ObjectPage:
        """List the next page of object keys.

        Raises:
            StorageError: If the listing call fails
        """
        kwargs = {'Bucket': self.bucket, 'MaxKeys': self.page_size}
        if continuation:
            kwargs['ContinuationToken'] = continuation
        try:
            response = self._s3.list_objects_v2(**kwargs)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"list objects in {self.bucket} failed: {e}") from e

        keys = tuple(obj['Key'] for obj in response.get('Contents', []))
        return ObjectPage(
            keys=keys,
            truncated=bool(response.get('IsTruncated')),
            continuation=response.get('NextContinuationToken'),
        )

    def delete_objects(self, keys: list[str]) -> None:
        """Delete a batch of keys.

        Raises:
            StorageError: If the call fails or any key could not be deleted
        """
        if not keys:
            return
        try:
            response = self._s3.delete_objects(
                Bucket=self.bucket,
                Delete={'Objects': [{'Key': k} for k in keys], 'Quiet': True},
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"delete objects in {self.bucket} failed: {e}") from e

        if errors := response.get('Errors'):
            first = errors[0]
            raise StorageError(
                f"delete objects in {self.bucket}: {len(errors)} key(s) failed, "
                f"first {first.get('Key')}: {first.get('Code')} {first.get('Message')}"
            )
