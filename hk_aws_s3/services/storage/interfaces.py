"""Storage interfaces and shared dataclasses for the location-based facade."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Tuple

from .exceptions import ErrorKind

SUCCESS = 'success'
FAILURE = 'failure'


@dataclass(frozen=True)
class LocationEntry:
    """Physical placement of a logical storage location."""

    logical_key: str
    bucket_name: str
    root_path: str  # always ends with '/'
    allowed_extensions: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ObjectLocator:
    """Fully-qualified address of a stored object."""

    bucket: str
    key: str

    @property
    def uri(self) -> str:
        return f"s3://{self.bucket}/{self.key}"


@dataclass
class ObjectDescriptor:
    """One entry of a bucket listing."""

    key: str
    size: Optional[int] = None
    last_modified: Optional[datetime] = None
    etag: Optional[str] = None


@dataclass
class StoredObject:
    """Result of storing or copying an object."""

    bucket: str
    key: str
    etag: Optional[str] = None
    content_type: Optional[str] = None

    @property
    def locator(self) -> ObjectLocator:
        return ObjectLocator(bucket=self.bucket, key=self.key)


@dataclass
class OperationResult:
    """Uniform success/failure envelope returned by every facade operation."""

    status: str
    payload: Any = None
    message: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @classmethod
    def success(cls, payload: Any = None) -> 'OperationResult':
        return cls(status=SUCCESS, payload=payload)

    @classmethod
    def failure(cls, message: str, error_kind: Optional[ErrorKind] = None) -> 'OperationResult':
        return cls(status=FAILURE, message=message, error_kind=error_kind)

    @property
    def ok(self) -> bool:
        return self.status == SUCCESS

    def to_dict(self) -> dict:
        if self.ok:
            return {'status': self.status, 'payload': self.payload}
        return {'status': self.status, 'message': self.message}
