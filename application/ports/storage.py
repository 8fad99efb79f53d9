"""Application-owned storage port abstraction (hexagonal architecture).

Defines the minimal methods the upload pipeline and the URL issuer need,
so that the application layer does not depend on infrastructure details.
Implementations raise ``StoragePortError`` for any backend failure.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Protocol, runtime_checkable
from dataclasses import dataclass, field


class StoragePortError(Exception):
    """Backend failure surfaced through the port (write, delete, sign)."""


class StorageKeyConflict(StoragePortError):
    """A write-once upload found its key already taken."""


@dataclass
class PresignedURL:
    url: str
    method: str = "GET"
    expires_in: int = 0
    headers: dict[str, str] = field(default_factory=dict)


@dataclass
class StorageInfo:
    type: str
    bucket: Optional[str]
    region: Optional[str]


@dataclass
class UploadOutcome:
    key: str
    etag: Optional[str]
    size: int
    content_type: Optional[str] = None
    url: Optional[str] = None


@runtime_checkable
class StoragePort(Protocol):
    def info(self) -> StorageInfo: ...

    async def exists(self, key: str) -> bool: ...

    async def delete(self, key: str) -> bool: ...

    async def upload(
        self,
        data: bytes,
        key: str,
        metadata: Optional[dict] = None,
        content_type: Optional[str] = None,
    ) -> UploadOutcome: ...

    async def upload_file(
        self,
        path: Path,
        key: str,
        metadata: Optional[dict] = None,
        content_type: Optional[str] = None,
        *,
        if_absent: bool = False,
    ) -> UploadOutcome: ...

    async def generate_presigned_url(
        self,
        key: str,
        expires_in: int = 3600,
        bucket: Optional[str] = None,
    ) -> PresignedURL: ...

    def public_url(self, key: str) -> Optional[str]: ...
