"""Storage service entry point and lifecycle management.

Two stores are managed:

- the asset store: local disk under ``media.assets_root``, served at
  ``/assets``; thumbnails go here.
- the video store: selected by ``storage.type`` (``local`` or ``s3``).
"""
from typing import Optional

from core.config import Settings, settings as default_settings
from core.logging_config import get_logger
from .base import StorageProvider
from .config import StorageConfig, StorageType
from .factory import create_provider, register_provider
from .utils import LoggingMiddleware, apply_middleware

logger = get_logger(__name__)

# Global storage client instances
_asset_storage: Optional[StorageProvider] = None
_video_storage: Optional[StorageProvider] = None


def get_asset_storage_config(app_settings: Settings = default_settings) -> StorageConfig:
    """Config of the local asset store backing ``/assets``."""
    media = app_settings.media
    return StorageConfig(
        type=StorageType.LOCAL,
        local_base_path=media.assets_root,
        public_base_url=media.assets_base_url,
        upload_chunk_size=media.copy_chunk_size,
    )


def get_storage_config(app_settings: Settings = default_settings) -> StorageConfig:
    """Get video store configuration from settings.

    Assembles StorageConfig from core.config.settings to maintain
    single source of truth for configuration. A local video store
    shares the asset directory and its public base URL.
    """
    s = app_settings.storage
    media = app_settings.media
    storage_type = StorageType(s.type or StorageType.LOCAL)
    public_base_url = s.public_base_url
    if storage_type == StorageType.LOCAL:
        public_base_url = media.assets_base_url

    return StorageConfig(
        type=storage_type,
        bucket=s.bucket,
        region=s.region,
        endpoint=s.endpoint,
        public_base_url=public_base_url,
        # S3 specific
        aws_access_key_id=s.aws_access_key_id,
        aws_secret_access_key=s.aws_secret_access_key,
        s3_sse=s.s3_sse,
        s3_acl=s.s3_acl,
        # Local specific
        local_base_path=media.assets_root,
        # Advanced settings
        max_retry_attempts=s.max_retry_attempts,
        timeout=s.timeout,
        enable_ssl=s.enable_ssl,
        upload_chunk_size=media.copy_chunk_size,
    )


async def init_storage_client(app_settings: Settings = default_settings) -> None:
    """Initialize asset and video storage clients.

    Creates and configures the storage providers based on configuration.
    """
    global _asset_storage, _video_storage

    if _video_storage is not None:
        logger.warning("storage_already_initialized")
        return

    asset_provider = await create_provider(get_asset_storage_config(app_settings))
    video_config = get_storage_config(app_settings)
    video_provider = await create_provider(video_config)

    _asset_storage = apply_middleware(asset_provider, [LoggingMiddleware("assets")])
    _video_storage = apply_middleware(video_provider, [LoggingMiddleware("videos")])

    logger.info(
        "storage_initialized",
        provider=video_config.type,
        bucket=video_config.bucket,
    )


def get_storage_client() -> Optional[StorageProvider]:
    """Get the video storage client, or None if not initialized."""
    return _video_storage


def get_asset_storage_client() -> Optional[StorageProvider]:
    """Get the asset storage client, or None if not initialized."""
    return _asset_storage


async def shutdown_storage_client() -> None:
    """Shutdown storage clients.

    Providers hold no connections that need explicit cleanup.
    """
    global _asset_storage, _video_storage

    if _video_storage is None and _asset_storage is None:
        return
    _asset_storage = None
    _video_storage = None
    logger.info("storage_shutdown")


async def get_storage() -> StorageProvider:
    """FastAPI dependency for the video store.

    Raises:
        RuntimeError: If storage not initialized
    """
    client = get_storage_client()
    if client is None:
        raise RuntimeError(
            "Storage client not initialized. "
            "Call init_storage_client() during startup."
        )
    return client


async def get_asset_storage() -> StorageProvider:
    """FastAPI dependency for the local asset store."""
    client = get_asset_storage_client()
    if client is None:
        raise RuntimeError(
            "Storage client not initialized. "
            "Call init_storage_client() during startup."
        )
    return client


# Export public interface
__all__ = [
    # Lifecycle
    "init_storage_client",
    "get_storage_client",
    "get_asset_storage_client",
    "shutdown_storage_client",
    "get_storage",
    "get_asset_storage",

    # Configuration
    "get_storage_config",
    "get_asset_storage_config",
    "register_provider",
    "StorageConfig",
    "StorageType",

    # Base types
    "StorageProvider",

    # Models
    "UploadResult",
    "PresignedRequest",

    # Exceptions
    "StorageError",
    "NotFoundError",
    "PermissionDeniedError",
    "TransientError",
    "ConfigurationError",
    "ValidationError",
    "SigningError",
    "ObjectExistsError",
]

# Import models and exceptions for easier access
from .models import UploadResult, PresignedRequest
from .exceptions import (
    StorageError,
    NotFoundError,
    PermissionDeniedError,
    TransientError,
    ConfigurationError,
    ValidationError,
    SigningError,
    ObjectExistsError,
)
