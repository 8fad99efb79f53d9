"""Resolve stored asset references into retrievable URLs."""
from __future__ import annotations

from typing import Optional

from application.ports.storage import StoragePort, StoragePortError
from core.logging_config import get_logger
from domain.common.exceptions import URLSigningException
from domain.media import AssetReference, ReferenceKind

logger = get_logger(__name__)


class RetrievalURLIssuer:
    """Turns an ``AssetReference`` into a URL at read time.

    Local references are joined onto the static assets base URL and never
    expire. Object references are presigned on every call; signed URLs are
    never persisted.
    """

    def __init__(self, assets_base_url: str, object_store: Optional[StoragePort], *, ttl_seconds: int = 300):
        self.assets_base_url = assets_base_url.rstrip("/")
        self.object_store = object_store
        self.ttl_seconds = ttl_seconds

    def local_url(self, path: str) -> str:
        return f"{self.assets_base_url}/{path.lstrip('/')}"

    async def signed_url(self, bucket: Optional[str], key: Optional[str], expires_in: Optional[int] = None) -> str:
        if not bucket or not key:
            raise URLSigningException(details={"reason": "missing bucket or key"})
        if self.object_store is None:
            raise URLSigningException(details={"reason": "object store not configured"})
        expires_in = expires_in or self.ttl_seconds
        try:
            presigned = await self.object_store.generate_presigned_url(key, expires_in, bucket=bucket)
        except StoragePortError as exc:
            logger.error("presign_failed", bucket=bucket, key=key, error=str(exc))
            raise URLSigningException() from exc
        return presigned.url

    async def resolve(self, reference: Optional[AssetReference]) -> Optional[str]:
        if reference is None:
            return None
        if reference.kind == ReferenceKind.LOCAL:
            if not reference.path:
                return None
            return self.local_url(reference.path)
        return await self.signed_url(reference.bucket, reference.key)
