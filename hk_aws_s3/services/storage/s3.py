"""S3-compatible storage backend (AWS S3 / MinIO)."""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import BinaryIO, Iterator, List, Optional, Union

from botocore.exceptions import BotoCoreError, ClientError

from .exceptions import MalformedInput, ProviderError
from .interfaces import ObjectDescriptor, StoredObject

logger = logging.getLogger(__name__)

Source = Union[bytes, bytearray, BinaryIO, str, os.PathLike]


def provider_error_from(exc: Exception) -> ProviderError:
    """Wrap a botocore failure, keeping the provider's message verbatim."""
    if isinstance(exc, ClientError):
        response = getattr(exc, 'response', {}) or {}
        code = str((response.get('Error') or {}).get('Code') or '') or None
        status_code = (response.get('ResponseMetadata') or {}).get('HTTPStatusCode')
        return ProviderError(str(exc), code=code, status_code=status_code)
    return ProviderError(str(exc))


@contextmanager
def _open_source(source: Source) -> Iterator[Union[bytes, BinaryIO]]:
    if isinstance(source, (bytes, bytearray)):
        yield bytes(source)
    elif isinstance(source, (str, os.PathLike)):
        with open(source, 'rb') as f:
            yield f
    else:
        yield source


class S3StorageBackend:
    """Multi-bucket S3 backend with lazy boto3 initialization."""

    def __init__(self, *, region: Optional[str] = None, endpoint_url: Optional[str] = None,
                 access_key_id: Optional[str] = None, secret_access_key: Optional[str] = None,
                 session_token: Optional[str] = None, use_path_style: bool = False,
                 verify_ssl: bool = True, client=None):
        self.region = region
        self.endpoint_url = endpoint_url
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        self.session_token = session_token
        self.use_path_style = use_path_style
        self.verify_ssl = verify_ssl
        self._client = client

    def _get_client(self):
        if self._client is not None:
            return self._client

        import boto3
        from botocore.config import Config

        client_kwargs = {
            'service_name': 's3',
            'verify': self.verify_ssl,
        }
        if self.region:
            client_kwargs['region_name'] = self.region
        if self.endpoint_url:
            client_kwargs['endpoint_url'] = self.endpoint_url
        if self.access_key_id:
            client_kwargs['aws_access_key_id'] = self.access_key_id
        if self.secret_access_key:
            client_kwargs['aws_secret_access_key'] = self.secret_access_key
        if self.session_token:
            client_kwargs['aws_session_token'] = self.session_token

        addressing_style = 'path' if self.use_path_style else 'auto'
        client_kwargs['config'] = Config(signature_version='s3v4', s3={'addressing_style': addressing_style})

        self._client = boto3.client(**client_kwargs)
        logger.debug(f"Created S3 client (region={self.region}, endpoint={self.endpoint_url or 'default'})")
        return self._client

    def list_objects(self, bucket: str, prefix: Optional[str] = None) -> List[ObjectDescriptor]:
        params = {'Bucket': bucket}
        if prefix is not None:
            params['Prefix'] = prefix
        try:
            result = self._get_client().list_objects_v2(**params)
        except (ClientError, BotoCoreError) as exc:
            raise provider_error_from(exc) from exc
        return [
            ObjectDescriptor(
                key=item.get('Key'),
                size=item.get('Size'),
                last_modified=item.get('LastModified'),
                etag=(item.get('ETag') or '').strip('"') or None,
            )
            for item in result.get('Contents') or []
        ]

    def put_object(self, bucket: str, key: str, source: Source, content_type: Optional[str] = None) -> StoredObject:
        params = {'Bucket': bucket, 'Key': key}
        if content_type:
            params['ContentType'] = content_type
        try:
            with _open_source(source) as body:
                result = self._get_client().put_object(Body=body, **params)
        except (ClientError, BotoCoreError) as exc:
            raise provider_error_from(exc) from exc
        except OSError as exc:
            raise MalformedInput(f"Cannot read upload source: {exc}") from exc
        return StoredObject(
            bucket=bucket,
            key=key,
            etag=(result.get('ETag') or '').strip('"') or None,
            content_type=content_type,
        )

    def delete_object(self, bucket: str, key: str) -> None:
        try:
            self._get_client().delete_object(Bucket=bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            raise provider_error_from(exc) from exc

    def copy_object(self, src_bucket: str, src_key: str, dst_bucket: str, dst_key: str) -> StoredObject:
        try:
            result = self._get_client().copy_object(
                Bucket=dst_bucket,
                Key=dst_key,
                CopySource={'Bucket': src_bucket, 'Key': src_key},
            )
        except (ClientError, BotoCoreError) as exc:
            raise provider_error_from(exc) from exc
        etag = ((result.get('CopyObjectResult') or {}).get('ETag') or '').strip('"') or None
        return StoredObject(bucket=dst_bucket, key=dst_key, etag=etag)
