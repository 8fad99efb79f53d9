"""Storage configuration models."""
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict


class StorageType(str, Enum):
    """Storage provider types."""
    S3 = "s3"
    LOCAL = "local"


class StorageConfig(BaseModel):
    """Storage configuration model.

    One instance per store: the thumbnail asset store is always local,
    the video store is whatever ``settings.storage.type`` selects.
    """
    model_config = ConfigDict(use_enum_values=True)

    # Common settings
    type: StorageType = StorageType.LOCAL
    bucket: Optional[str] = None
    region: Optional[str] = None
    endpoint: Optional[str] = None
    public_base_url: Optional[str] = None  # Static / CDN base

    # S3 specific
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    s3_sse: Optional[str] = None  # Server-side encryption
    s3_acl: Optional[str] = "private"  # Access control list

    # Local specific
    local_base_path: str = "./assets"

    # Advanced settings
    max_retry_attempts: int = 3
    timeout: int = 30
    enable_ssl: bool = True
    upload_chunk_size: int = 1024 * 1024
