"""Factory for configuring the storage backend and CDN hosts from environment variables."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .locator import CdnSettings
from .s3 import S3StorageBackend


@dataclass
class StorageSettings:
    region: Optional[str] = None
    endpoint_url: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    session_token: Optional[str] = None
    use_path_style: bool = False
    verify_ssl: bool = True
    locations_file: Optional[str] = None
    legacy_cdn_base: str = 'https://img.holkee.com'
    new_cdn_base: str = 'https://cdn.holkee.com'
    fallback_bucket: str = 'holkee'


def load_storage_settings_from_env() -> StorageSettings:
    # Values come from app_config to avoid duplicated env parsing / drift.
    from hk_aws_s3.config import app_config

    return StorageSettings(
        region=app_config.HK_S3_REGION,
        endpoint_url=app_config.HK_S3_ENDPOINT_URL,
        access_key_id=app_config.HK_S3_ACCESS_KEY_ID,
        secret_access_key=app_config.HK_S3_SECRET_ACCESS_KEY,
        session_token=app_config.HK_S3_SESSION_TOKEN,
        use_path_style=bool(app_config.HK_S3_USE_PATH_STYLE),
        verify_ssl=bool(app_config.HK_S3_VERIFY_SSL),
        locations_file=app_config.HK_S3_LOCATIONS_FILE,
        legacy_cdn_base=app_config.HK_S3_LEGACY_CDN_BASE,
        new_cdn_base=app_config.HK_S3_NEW_CDN_BASE,
        fallback_bucket=app_config.HK_S3_FALLBACK_BUCKET,
    )


def build_s3_backend(settings: StorageSettings, client=None) -> S3StorageBackend:
    return S3StorageBackend(
        region=settings.region,
        endpoint_url=settings.endpoint_url,
        access_key_id=settings.access_key_id,
        secret_access_key=settings.secret_access_key,
        session_token=settings.session_token,
        use_path_style=settings.use_path_style,
        verify_ssl=settings.verify_ssl,
        client=client,
    )


def build_s3_client(region: str, access_key_id: str, secret_access_key: str, **kwargs):
    """Create a boto3 S3 client from explicit credentials."""
    settings = StorageSettings(
        region=region,
        access_key_id=access_key_id,
        secret_access_key=secret_access_key,
        **kwargs,
    )
    return build_s3_backend(settings)._get_client()


def build_cdn_settings(settings: StorageSettings) -> CdnSettings:
    return CdnSettings(legacy_base=settings.legacy_cdn_base, new_base=settings.new_cdn_base)
