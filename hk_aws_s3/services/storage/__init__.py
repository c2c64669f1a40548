"""Location-based object storage facade backed by S3."""

from .exceptions import (
    ConfigNotFound,
    ConfigurationError,
    ErrorKind,
    InvalidConfig,
    MalformedInput,
    ProviderError,
    StorageError,
    UnknownLocation,
)
from .factory import StorageSettings, build_s3_client, load_storage_settings_from_env
from .interfaces import LocationEntry, ObjectDescriptor, ObjectLocator, OperationResult, StoredObject
from .locator import (
    CdnSettings,
    resolve_bucket_for_key,
    resolve_list_prefix,
    resolve_public_url,
    resolve_upload,
    reverse_resolve_legacy_url,
)
from .registry import LocationRegistry, get_location_registry, reset_location_registry
from .service import StorageService, get_storage_service, reset_storage_service_singleton

__all__ = [
    'ConfigNotFound',
    'ConfigurationError',
    'ErrorKind',
    'InvalidConfig',
    'MalformedInput',
    'ProviderError',
    'StorageError',
    'UnknownLocation',
    'StorageSettings',
    'build_s3_client',
    'load_storage_settings_from_env',
    'LocationEntry',
    'ObjectDescriptor',
    'ObjectLocator',
    'OperationResult',
    'StoredObject',
    'CdnSettings',
    'resolve_bucket_for_key',
    'resolve_list_prefix',
    'resolve_public_url',
    'resolve_upload',
    'reverse_resolve_legacy_url',
    'LocationRegistry',
    'get_location_registry',
    'reset_location_registry',
    'StorageService',
    'get_storage_service',
    'reset_storage_service_singleton',
]
