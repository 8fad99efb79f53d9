"""Local file system storage provider implementation."""
import hashlib
import json
import mimetypes
import uuid
from pathlib import Path
from typing import Optional

import aiofiles
import aiofiles.os

from core.logging_config import get_logger
from ..base import StorageProvider
from ..config import StorageConfig
from ..models import UploadResult, PresignedRequest
from ..exceptions import (
    StorageError,
    ObjectExistsError,
    ValidationError,
)

logger = get_logger(__name__)


class LocalProvider(StorageProvider):
    """Local file system storage provider.

    Objects live under ``local_base_path``; ``public_base_url`` is the
    static mount that serves that directory (``/assets``).
    """

    def __init__(self, config: StorageConfig):
        """Initialize local storage provider.

        Args:
            config: Storage configuration
        """
        self.config = config
        self.base_path = Path(config.local_base_path).resolve()

        # Ensure base path exists
        self.base_path.mkdir(parents=True, exist_ok=True)

    async def upload(
        self,
        file: bytes,
        key: str,
        metadata: Optional[dict] = None,
        content_type: Optional[str] = None
    ) -> UploadResult:
        """Upload bytes to local storage."""
        file_path = self._safe_path(key)
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)

            async with aiofiles.open(file_path, 'wb') as f:
                await f.write(file)

            if metadata:
                await self._save_metadata(file_path, metadata, content_type)
        except OSError as e:
            raise StorageError(f"Failed to upload {key}: {e}") from e

        logger.info("local_upload_completed", key=key, size=len(file))
        return UploadResult(
            key=key,
            etag=hashlib.md5(file).hexdigest(),
            size=len(file),
            content_type=content_type or self._guess_content_type(key),
            url=self.public_url(key),
        )

    async def upload_file(
        self,
        path: Path,
        key: str,
        metadata: Optional[dict] = None,
        content_type: Optional[str] = None,
        *,
        if_absent: bool = False,
    ) -> UploadResult:
        """Copy a local file into storage chunk by chunk.

        The copy goes to a hidden sibling first and is then published
        under ``key``. With ``if_absent`` publishing is a hard link, which
        fails atomically when another writer already owns the key.
        """
        file_path = self._safe_path(key)
        staging = file_path.with_name(f".{file_path.name}.{uuid.uuid4().hex}.part")
        hasher = hashlib.md5()
        size = 0
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, 'rb') as src, aiofiles.open(staging, 'wb') as dst:
                while True:
                    chunk = await src.read(self.config.upload_chunk_size)
                    if not chunk:
                        break
                    hasher.update(chunk)
                    size += len(chunk)
                    await dst.write(chunk)

            if if_absent:
                await aiofiles.os.link(staging, file_path)
            else:
                await aiofiles.os.replace(staging, file_path)

            if metadata:
                await self._save_metadata(file_path, metadata, content_type)
        except FileExistsError as e:
            logger.warning("local_upload_conflict", key=key)
            raise ObjectExistsError(f"Object already exists: {key}") from e
        except OSError as e:
            raise StorageError(f"Failed to upload {key}: {e}") from e
        finally:
            # never leave a partial copy behind
            if staging.exists():
                await aiofiles.os.remove(staging)

        logger.info("local_upload_completed", key=key, size=size)
        return UploadResult(
            key=key,
            etag=hasher.hexdigest(),
            size=size,
            content_type=content_type or self._guess_content_type(key),
            url=self.public_url(key),
        )

    async def delete(self, key: str) -> bool:
        """Delete file from local storage."""
        file_path = self._safe_path(key)
        try:
            if not file_path.exists():
                return False
            await aiofiles.os.remove(file_path)

            # Also remove metadata file if exists
            meta_path = self._metadata_path(file_path)
            if meta_path.exists():
                await aiofiles.os.remove(meta_path)
        except OSError as e:
            raise StorageError(f"Failed to delete {key}: {e}") from e

        logger.info("local_delete_completed", key=key)
        return True

    async def exists(self, key: str) -> bool:
        """Check if file exists in local storage."""
        file_path = self._safe_path(key)
        return file_path.is_file()

    async def generate_presigned_url(
        self,
        key: str,
        expires_in: int = 3600,
        bucket: Optional[str] = None,
    ) -> PresignedRequest:
        """Local assets are served statically; the URL does not expire.

        Without a public base URL a ``file://`` URI is returned.
        """
        _ = bucket
        url = self.public_url(key) or self._safe_path(key).as_uri()
        return PresignedRequest(url=url, method="GET", expires_in=expires_in)

    def public_url(self, key: str) -> Optional[str]:
        """Get public URL for file."""
        if self.config.public_base_url:
            return f"{self.config.public_base_url.rstrip('/')}/{key.lstrip('/')}"
        return None

    async def health_check(self) -> bool:
        """Check local storage accessibility."""
        try:
            # Check if base path exists and is writable
            test_file = self.base_path / ".health_check"
            test_file.touch()
            test_file.unlink()
            logger.info("local_storage_health_check_passed", base_path=str(self.base_path))
            return True
        except OSError as e:
            logger.error("local_storage_health_check_failed", error=str(e))
            return False

    def _safe_path(self, key: str) -> Path:
        """Build safe path preventing directory traversal.

        Raises:
            ValidationError: If path escapes the base path
        """
        clean_key = key.lstrip("/")
        if not clean_key:
            raise ValidationError("Empty storage key")

        path = (self.base_path / clean_key).resolve()
        try:
            path.relative_to(self.base_path)
        except ValueError:
            raise ValidationError(f"Invalid path: {key}")

        return path

    def _metadata_path(self, file_path: Path) -> Path:
        """Get metadata sidecar path for a file."""
        return file_path.parent / f"{file_path.name}.meta"

    async def _save_metadata(
        self,
        file_path: Path,
        metadata: Optional[dict],
        content_type: Optional[str]
    ) -> None:
        """Save metadata to sidecar file."""
        meta_data = {"metadata": metadata or {}}
        if content_type:
            meta_data["content_type"] = content_type

        async with aiofiles.open(self._metadata_path(file_path), 'w') as f:
            await f.write(json.dumps(meta_data))

    def _guess_content_type(self, key: str) -> str:
        """Guess content type from file extension."""
        content_type, _ = mimetypes.guess_type(key)
        return content_type or "application/octet-stream"


async def build_local_provider(config: StorageConfig) -> LocalProvider:
    """Build local storage provider.

    Args:
        config: Storage configuration

    Returns:
        Configured local provider instance
    """
    provider = LocalProvider(config)

    # Check accessibility
    if not await provider.health_check():
        raise StorageError("Failed to access local storage")

    return provider
