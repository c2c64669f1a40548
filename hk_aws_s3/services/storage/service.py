"""Storage service facade over logical locations, legacy URLs and the S3 backend."""

from __future__ import annotations

import logging
import mimetypes
import threading
from typing import Optional, Tuple

from .exceptions import MalformedInput, StorageError, UnknownLocation
from .factory import StorageSettings, build_cdn_settings, build_s3_backend, load_storage_settings_from_env
from .interfaces import ObjectLocator, OperationResult
from .locator import (
    file_extension,
    resolve_bucket_for_key,
    resolve_list_prefix,
    resolve_public_url,
    resolve_upload,
    reverse_resolve_legacy_url,
    validate_relative_key,
)
from .registry import LocationRegistry
from .s3 import S3StorageBackend, Source

logger = logging.getLogger(__name__)


def _failure(operation: str, exc: StorageError) -> OperationResult:
    if isinstance(exc, UnknownLocation):
        logger.info(f"{operation} rejected: {exc}")
    else:
        logger.warning(f"{operation} failed: {exc}")
    return OperationResult.failure(str(exc), exc.kind)


class StorageService:
    """Facade to hide bucket names, root paths and the S3 client from business logic."""

    def __init__(self, settings: Optional[StorageSettings] = None, registry: Optional[LocationRegistry] = None,
                 backend: Optional[S3StorageBackend] = None):
        self.settings = settings or load_storage_settings_from_env()
        self.registry = registry if registry is not None else LocationRegistry.load(self.settings.locations_file)
        self.backend = backend if backend is not None else build_s3_backend(self.settings)
        self.cdn = build_cdn_settings(self.settings)

    def list(self, logical_key: str, prefix: Optional[str] = None) -> OperationResult:
        try:
            bucket, full_prefix = resolve_list_prefix(self.registry, logical_key, prefix)
            objects = self.backend.list_objects(bucket, full_prefix)
        except StorageError as exc:
            return _failure(f"list {logical_key}", exc)
        return OperationResult.success(objects)

    def upload(self, logical_key: str, relative_key: str, source: Source,
               content_type: Optional[str] = None) -> OperationResult:
        try:
            validate_relative_key(relative_key)
            target = resolve_upload(self.registry, logical_key, relative_key)
            content_type = content_type or mimetypes.guess_type(target.key)[0]
            stored = self.backend.put_object(target.bucket, target.key, source, content_type=content_type)
        except StorageError as exc:
            return _failure(f"upload {logical_key}/{relative_key}", exc)
        logger.info(f"Uploaded {stored.locator.uri}")
        return OperationResult.success(stored)

    def _resolve_copy(self, logical_key: str, new_relative_key: str,
                      legacy_source_url: str) -> Tuple[ObjectLocator, ObjectLocator]:
        validate_relative_key(new_relative_key)
        target = resolve_upload(self.registry, logical_key, new_relative_key)
        src_key = reverse_resolve_legacy_url(legacy_source_url, self.cdn)
        if not src_key.strip():
            raise MalformedInput('Copy source must not be empty')
        src_bucket = resolve_bucket_for_key(self.registry, src_key, self.settings.fallback_bucket)
        return ObjectLocator(bucket=src_bucket, key=src_key), target

    def plan_copy(self, logical_key: str, new_relative_key: str, legacy_source_url: str) -> OperationResult:
        """Resolve a copy without touching the store; payload is (source, target) locators."""
        try:
            source, target = self._resolve_copy(logical_key, new_relative_key, legacy_source_url)
        except StorageError as exc:
            return _failure(f"plan copy {legacy_source_url} -> {logical_key}/{new_relative_key}", exc)
        return OperationResult.success((source, target))

    def copy(self, logical_key: str, new_relative_key: str, legacy_source_url: str) -> OperationResult:
        """Copy an asset addressed by a legacy or CDN URL into a logical location."""
        try:
            source, target = self._resolve_copy(logical_key, new_relative_key, legacy_source_url)
            stored = self.backend.copy_object(source.bucket, source.key, target.bucket, target.key)
        except StorageError as exc:
            return _failure(f"copy {legacy_source_url} -> {logical_key}/{new_relative_key}", exc)
        logger.info(f"Copied {source.uri} to {stored.locator.uri}")
        return OperationResult.success(stored)

    def delete(self, bucket: str, key: str) -> OperationResult:
        try:
            self.backend.delete_object(bucket, key)
        except StorageError as exc:
            return _failure(f"delete s3://{bucket}/{key}", exc)
        logger.info(f"Deleted s3://{bucket}/{key}")
        return OperationResult.success()

    def delete_location(self, logical_key: str, relative_key: str) -> OperationResult:
        try:
            validate_relative_key(relative_key)
            target = resolve_upload(self.registry, logical_key, relative_key)
        except StorageError as exc:
            return _failure(f"delete {logical_key}/{relative_key}", exc)
        return self.delete(target.bucket, target.key)

    def is_allowed_file_type(self, logical_key: str, file_name: str) -> bool:
        entry = self.registry.lookup(logical_key)
        if entry is None:
            return False
        return file_extension(file_name) in entry.allowed_extensions

    def legacy_key(self, url: str) -> str:
        return reverse_resolve_legacy_url(url, self.cdn)

    def bucket_for_key(self, object_key: str) -> str:
        return resolve_bucket_for_key(self.registry, object_key, self.settings.fallback_bucket)

    def public_url(self, asset_type: str, source: str, option: Optional[str] = None) -> str:
        return resolve_public_url(asset_type, source, option, self.cdn)


_storage_service_singleton: Optional[StorageService] = None
_storage_service_singleton_lock = threading.Lock()


def get_storage_service() -> StorageService:
    global _storage_service_singleton
    if _storage_service_singleton is None:
        with _storage_service_singleton_lock:
            if _storage_service_singleton is None:
                from .registry import get_location_registry
                _storage_service_singleton = StorageService(registry=get_location_registry())
    return _storage_service_singleton


def reset_storage_service_singleton() -> None:
    global _storage_service_singleton
    with _storage_service_singleton_lock:
        _storage_service_singleton = None
