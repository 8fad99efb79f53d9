"""Infrastructure adapter that implements the application StoragePort
by delegating to the concrete StorageProvider and translating models
and errors.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from application.ports.storage import (
    PresignedURL,
    StorageInfo,
    StoragePort,
    StorageKeyConflict,
    StoragePortError,
    UploadOutcome,
)
from infrastructure.external.storage import ObjectExistsError, StorageError, StorageProvider


class StorageProviderPortAdapter(StoragePort):
    def __init__(self, provider: StorageProvider):
        self.provider = provider

    def info(self) -> StorageInfo:
        cfg = getattr(self.provider, "config", None)
        stype = getattr(cfg, "type", None)
        bucket = getattr(cfg, "bucket", None)
        region = getattr(cfg, "region", None)
        return StorageInfo(type=str(getattr(stype, "value", stype) or ""), bucket=bucket, region=region)

    async def exists(self, key: str) -> bool:
        try:
            return await self.provider.exists(key)
        except StorageError as e:
            raise StoragePortError(str(e)) from e

    async def delete(self, key: str) -> bool:
        try:
            return await self.provider.delete(key)
        except StorageError as e:
            raise StoragePortError(str(e)) from e

    async def upload(
        self,
        data: bytes,
        key: str,
        metadata: Optional[dict] = None,
        content_type: Optional[str] = None,
    ) -> UploadOutcome:
        try:
            result = await self.provider.upload(data, key, metadata=metadata, content_type=content_type)
        except StorageError as e:
            raise StoragePortError(str(e)) from e
        return self._outcome(result, key, content_type)

    async def upload_file(
        self,
        path: Path,
        key: str,
        metadata: Optional[dict] = None,
        content_type: Optional[str] = None,
        *,
        if_absent: bool = False,
    ) -> UploadOutcome:
        try:
            result = await self.provider.upload_file(
                path, key, metadata=metadata, content_type=content_type, if_absent=if_absent
            )
        except ObjectExistsError as e:
            raise StorageKeyConflict(str(e)) from e
        except StorageError as e:
            raise StoragePortError(str(e)) from e
        return self._outcome(result, key, content_type)

    async def generate_presigned_url(
        self,
        key: str,
        expires_in: int = 3600,
        bucket: Optional[str] = None,
    ) -> PresignedURL:
        try:
            presigned = await self.provider.generate_presigned_url(key, expires_in, bucket)
        except StorageError as e:
            raise StoragePortError(str(e)) from e
        return PresignedURL(
            url=presigned.url,
            method=presigned.method,
            expires_in=int(presigned.expires_in or expires_in),
            headers=dict(presigned.headers or {}),
        )

    def public_url(self, key: str) -> Optional[str]:
        return self.provider.public_url(key)

    @staticmethod
    def _outcome(result, key: str, content_type: Optional[str]) -> UploadOutcome:
        return UploadOutcome(
            key=getattr(result, "key", key),
            etag=getattr(result, "etag", None),
            size=int(getattr(result, "size", 0) or 0),
            content_type=getattr(result, "content_type", content_type),
            url=getattr(result, "url", None),
        )
