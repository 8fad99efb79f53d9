"""Storage provider protocol definitions."""
from pathlib import Path
from typing import Protocol, Optional, runtime_checkable

from .models import UploadResult, PresignedRequest


@runtime_checkable
class StorageProvider(Protocol):
    """Core storage provider protocol for duck typing."""

    async def upload(
        self,
        file: bytes,
        key: str,
        metadata: Optional[dict] = None,
        content_type: Optional[str] = None
    ) -> UploadResult:
        """Upload in-memory bytes to storage."""
        ...

    async def upload_file(
        self,
        path: Path,
        key: str,
        metadata: Optional[dict] = None,
        content_type: Optional[str] = None,
        *,
        if_absent: bool = False,
    ) -> UploadResult:
        """Stream a local file to storage without loading it in memory.

        With ``if_absent`` the write only happens if ``key`` is free;
        otherwise ``ObjectExistsError`` is raised and nothing is replaced.
        """
        ...

    async def delete(self, key: str) -> bool:
        """Delete object from storage."""
        ...

    async def exists(self, key: str) -> bool:
        """Check if object exists in storage."""
        ...

    async def generate_presigned_url(
        self,
        key: str,
        expires_in: int = 3600,
        bucket: Optional[str] = None,
    ) -> PresignedRequest:
        """Generate a time-limited GET URL for the object."""
        ...

    def public_url(self, key: str) -> Optional[str]:
        """Get public/static URL for object, if the store has one."""
        ...

    async def health_check(self) -> bool:
        """Check storage connectivity and permissions."""
        ...
