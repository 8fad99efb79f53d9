"""Storage utility functions and middleware support."""
from pathlib import Path
from typing import Optional
import time

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type
)

from core.logging_config import get_logger
from .base import StorageProvider
from .exceptions import TransientError
from .models import UploadResult, PresignedRequest

logger = get_logger(__name__)


# Retry decorator for transient errors
def with_retry(
    max_attempts: int = 3,
    wait_multiplier: float = 0.5,
    wait_max: int = 10
):
    """Decorator to retry operations on transient errors.

    Args:
        max_attempts: Maximum number of attempts
        wait_multiplier: Exponential backoff multiplier
        wait_max: Maximum wait time between retries
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=wait_multiplier, max=wait_max),
        retry=retry_if_exception_type(TransientError),
        reraise=True
    )


# Middleware support
class StorageMiddleware:
    """Base class for storage middleware."""

    async def before_upload(
        self,
        key: str,
        size: int,
        metadata: Optional[dict] = None,
        content_type: Optional[str] = None
    ) -> tuple[str, Optional[dict], Optional[str]]:
        """Process before upload.

        Returns:
            Potentially modified (key, metadata, content_type)
        """
        return key, metadata, content_type

    async def after_upload(self, result: UploadResult, key: str) -> UploadResult:
        """Process after successful upload."""
        return result

    async def on_error(
        self,
        error: Exception,
        operation: str,
        **kwargs
    ) -> None:
        """Handle errors during operations."""
        pass


class LoggingMiddleware(StorageMiddleware):
    """Middleware for structured logging of storage operations."""

    def __init__(self, store: str = "default"):
        self.store = store

    async def before_upload(
        self,
        key: str,
        size: int,
        metadata: Optional[dict] = None,
        content_type: Optional[str] = None
    ) -> tuple[str, Optional[dict], Optional[str]]:
        logger.info(
            "storage_upload_starting",
            store=self.store,
            key=key,
            size=size,
            content_type=content_type
        )
        return key, metadata, content_type

    async def after_upload(self, result: UploadResult, key: str) -> UploadResult:
        logger.info(
            "storage_upload_completed",
            store=self.store,
            key=key,
            size=result.size,
            etag=result.etag,
        )
        return result

    async def on_error(
        self,
        error: Exception,
        operation: str,
        **kwargs
    ) -> None:
        logger.error(
            "storage_operation_failed",
            store=self.store,
            operation=operation,
            error=str(error),
            **kwargs
        )


class MiddlewareStorage(StorageProvider):
    """Storage provider wrapper with middleware support."""

    def __init__(
        self,
        provider: StorageProvider,
        middlewares: list[StorageMiddleware]
    ):
        """Initialize middleware storage.

        Args:
            provider: Underlying storage provider
            middlewares: List of middleware to apply
        """
        self.provider = provider
        self.middlewares = middlewares

    @property
    def config(self):
        return getattr(self.provider, "config", None)

    async def _run_upload(self, operation, key: str, size: int, metadata, content_type) -> UploadResult:
        for middleware in self.middlewares:
            key, metadata, content_type = await middleware.before_upload(key, size, metadata, content_type)

        try:
            start_time = time.perf_counter()
            result = await operation(key, metadata, content_type)
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                "storage_upload_performance",
                key=key,
                elapsed_ms=round(elapsed_ms, 2),
                size=result.size
            )
        except Exception as e:
            for middleware in self.middlewares:
                await middleware.on_error(e, "upload", key=key)
            raise

        for middleware in self.middlewares:
            result = await middleware.after_upload(result, key)
        return result

    async def upload(
        self,
        file: bytes,
        key: str,
        metadata: Optional[dict] = None,
        content_type: Optional[str] = None
    ) -> UploadResult:
        """Upload with middleware processing."""
        return await self._run_upload(
            lambda k, m, c: self.provider.upload(file, k, m, c),
            key, len(file), metadata, content_type,
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
        """Upload a local file with middleware processing."""
        return await self._run_upload(
            lambda k, m, c: self.provider.upload_file(path, k, m, c, if_absent=if_absent),
            key, Path(path).stat().st_size, metadata, content_type,
        )

    async def delete(self, key: str) -> bool:
        try:
            return await self.provider.delete(key)
        except Exception as e:
            for middleware in self.middlewares:
                await middleware.on_error(e, "delete", key=key)
            raise

    async def exists(self, key: str) -> bool:
        return await self.provider.exists(key)

    async def generate_presigned_url(
        self,
        key: str,
        expires_in: int = 3600,
        bucket: Optional[str] = None,
    ) -> PresignedRequest:
        try:
            return await self.provider.generate_presigned_url(key, expires_in, bucket)
        except Exception as e:
            for middleware in self.middlewares:
                await middleware.on_error(e, "presign", key=key, bucket=bucket)
            raise

    def public_url(self, key: str) -> Optional[str]:
        return self.provider.public_url(key)

    async def health_check(self) -> bool:
        return await self.provider.health_check()


def apply_middleware(
    provider: StorageProvider,
    middlewares: list[StorageMiddleware]
) -> StorageProvider:
    """Apply middleware to a storage provider.

    Args:
        provider: Base storage provider
        middlewares: List of middleware to apply

    Returns:
        Provider wrapped with middleware
    """
    if not middlewares:
        return provider

    return MiddlewareStorage(provider, middlewares)
