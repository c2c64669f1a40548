"""Key resolution between logical locations, storage keys and public CDN URLs."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional, Pattern, Tuple

from .exceptions import MalformedInput, UnknownLocation
from .interfaces import LocationEntry, ObjectLocator
from .registry import LocationRegistry

DEFAULT_LEGACY_CDN_BASE = 'https://img.holkee.com'
DEFAULT_NEW_CDN_BASE = 'https://cdn.holkee.com'
DEFAULT_FALLBACK_BUCKET = 'holkee'

LEGACY_KEY_PREFIX = 'images/'
LEGACY_SITE_PREFIX = 'site/'

# S3 virtual-hosted and path-style hosts, e.g. bucket.s3.ap-northeast-1.amazonaws.com/
S3_HOST_PATTERNS: Tuple[str, ...] = (
    r'[a-z0-9.\-]+\.s3(?:[.\-][a-z0-9\-]+)?\.amazonaws\.com/',
    r's3(?:[.\-][a-z0-9\-]+)?\.amazonaws\.com/[a-z0-9.\-]+/',
)

NEW_CDN_ALWAYS_TYPES = frozenset({
    'carousel', 'latest_news', 'store_intro', 'service_item',
    'marketing', 'appointed', 'official_theme',
})
WEBSITE_ASSET_TYPES = frozenset({'favicon', 'share', 'store_logo'})
PRODUCT_ASSET_TYPE = 'product'

USER_WEBSITE_ASSETS_RE = re.compile(r'^user-website-assets/')
USER_PRODUCT_ASSETS_RE = re.compile(r'^user-product-assets/')


def _host_pattern(base_url: str) -> str:
    host = re.sub(r'^(?:https?:)?//', '', base_url.strip()).rstrip('/')
    return re.escape(host) + '/'


def _compile_host(host_pattern: str) -> Pattern:
    return re.compile(r'^(?:https?:)?//' + host_pattern, re.IGNORECASE)


@dataclass
class CdnSettings:
    """Public asset hosts used when translating between URLs and keys."""

    legacy_base: str = DEFAULT_LEGACY_CDN_BASE
    new_base: str = DEFAULT_NEW_CDN_BASE
    extra_current_hosts: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        self.legacy_base = self.legacy_base.rstrip('/')
        self.new_base = self.new_base.rstrip('/')
        self.legacy_host_re = _compile_host(_host_pattern(self.legacy_base))
        current = [_host_pattern(self.new_base), *S3_HOST_PATTERNS]
        current.extend(_host_pattern(host) for host in self.extra_current_hosts)
        self.current_host_res = tuple(_compile_host(p) for p in current)


DEFAULT_CDN = CdnSettings()


def _require_entry(registry: LocationRegistry, logical_key: str) -> LocationEntry:
    entry = registry.lookup(logical_key)
    if entry is None:
        raise UnknownLocation(logical_key)
    return entry


def resolve_upload(registry: LocationRegistry, logical_key: str, relative_key: str) -> ObjectLocator:
    """Join the location's root path and the relative key. No normalization is applied."""
    entry = _require_entry(registry, logical_key)
    return ObjectLocator(bucket=entry.bucket_name, key=entry.root_path + relative_key)


def resolve_list_prefix(registry: LocationRegistry, logical_key: str,
                        prefix: Optional[str] = None) -> Tuple[str, Optional[str]]:
    entry = _require_entry(registry, logical_key)
    if prefix is None:
        return entry.bucket_name, None
    return entry.bucket_name, entry.root_path + prefix


def reverse_resolve_legacy_url(url: str, cdn: CdnSettings = DEFAULT_CDN) -> str:
    """
    Recover the storage key behind a legacy or CDN URL.

    Host patterns are tried in order and the first match wins: the legacy
    image host becomes ``images/``, current CDN hosts are stripped, and
    anything else is taken as a bare key. Stripping repeats while a current
    host is still at the front, so nested CDN URLs resolve in one call. Keys
    under ``site/`` belong to the legacy image tree and get the ``images/``
    prefix.
    """
    key = (url or '').strip()

    while True:
        if cdn.legacy_host_re.match(key):
            key = cdn.legacy_host_re.sub(LEGACY_KEY_PREFIX, key, count=1)
            break
        matched = next((p for p in cdn.current_host_res if p.match(key)), None)
        if matched is None:
            break
        key = matched.sub('', key, count=1)

    if key.startswith(LEGACY_SITE_PREFIX):
        key = LEGACY_KEY_PREFIX + key
    return key


def resolve_bucket_for_key(registry: LocationRegistry, object_key: str,
                           fallback_bucket: str = DEFAULT_FALLBACK_BUCKET) -> str:
    root_candidate = object_key.split('/', 1)[0] + '/'
    entry = registry.find_by_root_path(root_candidate)
    if entry is None:
        return fallback_bucket
    return entry.bucket_name


def build_legacy_url(asset_type: str, source: str, option: Optional[str] = None,
                     cdn: CdnSettings = DEFAULT_CDN) -> str:
    if asset_type == 'favicon':
        return f"{cdn.legacy_base}/site/{option or ''}icons/favicon-{source}-32x32.png"
    return f"{cdn.legacy_base}/{source}"


def resolve_public_url(asset_type: str, source: str, option: Optional[str] = None,
                       cdn: CdnSettings = DEFAULT_CDN) -> str:
    """Map an asset type and its stored source to the URL that should be served."""
    key = (source or '').lstrip('/')
    new_url = f"{cdn.new_base}/{key}"
    if asset_type in NEW_CDN_ALWAYS_TYPES:
        return new_url
    if asset_type in WEBSITE_ASSET_TYPES and USER_WEBSITE_ASSETS_RE.match(key):
        return new_url
    if asset_type == PRODUCT_ASSET_TYPE and USER_PRODUCT_ASSETS_RE.match(key):
        return new_url
    return build_legacy_url(asset_type, source, option, cdn)


def validate_relative_key(relative_key: Optional[str]) -> str:
    """Reject keys that would escape or blank out the location's root path."""
    if relative_key is None or not str(relative_key).strip():
        raise MalformedInput('Object key must not be empty')
    if relative_key.startswith('/'):
        raise MalformedInput(f"Object key must be relative: {relative_key}")
    if '..' in relative_key.replace('\\', '/').split('/'):
        raise MalformedInput(f"Object key must not contain '..' segments: {relative_key}")
    return relative_key


def file_extension(file_name: str) -> str:
    name = (file_name or '').replace('\\', '/').rsplit('/', 1)[-1]
    if '.' not in name:
        return ''
    return name.rsplit('.', 1)[1].lower()
