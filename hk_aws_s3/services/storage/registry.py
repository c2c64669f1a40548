"""
Location registry mapping logical storage keys to buckets and root paths.

The registry is built once from a JSON document and is read-only afterwards,
so a single instance can be shared by every caller in the process.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from .exceptions import ConfigNotFound, InvalidConfig
from .interfaces import LocationEntry

logger = logging.getLogger(__name__)

DEFAULT_LOCATIONS_FILE = str(Path(__file__).resolve().parents[2] / 'config' / 'buckets.json')


def _normalize_root_path(root_path: str) -> str:
    root_path = root_path.strip()
    if not root_path.endswith('/'):
        root_path += '/'
    return root_path


def _normalize_extensions(values: Iterable[Any]) -> tuple:
    return tuple(str(v).strip().lstrip('.').lower() for v in values if str(v).strip())


def _entry_from_dict(item: Dict[str, Any], index: int) -> LocationEntry:
    if not isinstance(item, dict):
        raise InvalidConfig(f"Location entry #{index} must be an object")

    missing = [name for name in ('key', 'bucket', 'root_path') if not str(item.get(name) or '').strip()]
    if missing:
        raise InvalidConfig(f"Location entry #{index} is missing: {', '.join(missing)}")

    allowed = item.get('allowed_file') or []
    if not isinstance(allowed, (list, tuple)):
        raise InvalidConfig(f"Location entry #{index}: allowed_file must be a list")

    return LocationEntry(
        logical_key=str(item['key']).strip(),
        bucket_name=str(item['bucket']).strip(),
        root_path=_normalize_root_path(str(item['root_path'])),
        allowed_extensions=_normalize_extensions(allowed),
    )


class LocationRegistry:
    """Immutable lookup table of storage locations."""

    def __init__(self, entries: Iterable[LocationEntry]):
        table: Dict[str, LocationEntry] = {}
        seen_roots: Dict[str, str] = {}
        for entry in entries:
            if entry.logical_key in table:
                raise InvalidConfig(f"Duplicate location key: {entry.logical_key}")
            if entry.root_path in seen_roots:
                logger.warning(
                    f"Location '{entry.logical_key}' shares root path '{entry.root_path}' with "
                    f"'{seen_roots[entry.root_path]}'; reverse lookups resolve to the first one"
                )
            else:
                seen_roots[entry.root_path] = entry.logical_key
            if not entry.allowed_extensions:
                logger.warning(f"Location '{entry.logical_key}' has an empty allow-list; every file type check will fail")
            table[entry.logical_key] = entry
        self._entries = MappingProxyType(table)

    @classmethod
    def from_dicts(cls, items: Iterable[Dict[str, Any]]) -> 'LocationRegistry':
        return cls(_entry_from_dict(item, index) for index, item in enumerate(items))

    @classmethod
    def load(cls, path: Optional[Union[str, os.PathLike]] = None) -> 'LocationRegistry':
        """
        Load the registry from a JSON file.

        Args:
            path: Location file; defaults to the bundled buckets.json

        Raises:
            ConfigNotFound: If the file does not exist
            InvalidConfig: If the file cannot be parsed or holds bad entries
        """
        path = str(path or DEFAULT_LOCATIONS_FILE)
        if not os.path.isfile(path):
            raise ConfigNotFound(path)

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise InvalidConfig(f"Location file {path} is not valid JSON: {exc}") from exc

        if not isinstance(data, list):
            raise InvalidConfig(f"Location file {path} must contain a list of entries")

        registry = cls.from_dicts(data)
        logger.info(f"Loaded {len(registry)} storage locations from {path}")
        return registry

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, logical_key: str) -> bool:
        return logical_key in self._entries

    def lookup(self, logical_key: str) -> Optional[LocationEntry]:
        return self._entries.get(logical_key)

    def all(self) -> Mapping[str, LocationEntry]:
        return self._entries

    def get_config(self, logical_key: Optional[str] = None):
        """Return one entry (or None) when a key is given, else every entry."""
        if logical_key is not None:
            return self.lookup(logical_key)
        return self.all()

    def find_by_root_path(self, root_path: str) -> Optional[LocationEntry]:
        for entry in self._entries.values():
            if entry.root_path == root_path:
                return entry
        return None


_registry: Optional[LocationRegistry] = None
_registry_lock = threading.Lock()


def get_location_registry() -> LocationRegistry:
    """Get the process-wide registry, loading it on first use."""
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                from hk_aws_s3.config import app_config
                _registry = LocationRegistry.load(app_config.HK_S3_LOCATIONS_FILE)
    return _registry


def reset_location_registry() -> None:
    global _registry
    with _registry_lock:
        _registry = None
