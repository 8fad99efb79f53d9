"""AWS S3 storage provider implementation."""
import hashlib
from pathlib import Path
from typing import Optional, Any, NoReturn
import anyio
from functools import partial

from botocore.exceptions import (
    BotoCoreError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from core.logging_config import get_logger
from ..base import StorageProvider
from ..config import StorageConfig
from ..models import UploadResult, PresignedRequest
from ..exceptions import (
    StorageError,
    NotFoundError,
    ObjectExistsError,
    PermissionDeniedError,
    TransientError,
    ConfigurationError,
    SigningError,
)
from ..utils import with_retry

logger = get_logger(__name__)

_TRANSIENT_CODES = {"RequestTimeout", "SlowDown", "ServiceUnavailable", "InternalError", "500", "503"}
# 412 for If-None-Match, 409 when a concurrent conditional write is in flight
_CONFLICT_CODES = {"PreconditionFailed", "412", "ConditionalRequestConflict"}


class S3Provider(StorageProvider):
    """AWS S3 (or S3-compatible) storage provider."""

    def __init__(
        self,
        client: Any,  # boto3 S3 client
        config: StorageConfig
    ):
        """Initialize S3 provider.

        Args:
            client: Boto3 S3 client instance
            config: Storage configuration
        """
        self.client = client
        self.config = config
        self.bucket = config.bucket
        self.region = config.region or "us-east-1"

    def _extra_args(self, metadata: Optional[dict], content_type: Optional[str]) -> dict:
        extra_args = {}
        if content_type:
            extra_args["ContentType"] = content_type
        if metadata:
            extra_args["Metadata"] = {str(k): str(v) for k, v in metadata.items()}
        if self.config.s3_acl:
            extra_args["ACL"] = self.config.s3_acl
        if self.config.s3_sse:
            extra_args["ServerSideEncryption"] = self.config.s3_sse
        return extra_args

    @with_retry()
    async def upload(
        self,
        file: bytes,
        key: str,
        metadata: Optional[dict] = None,
        content_type: Optional[str] = None
    ) -> UploadResult:
        """Upload bytes to S3."""
        try:
            response = await anyio.to_thread.run_sync(
                partial(
                    self.client.put_object,
                    Bucket=self.bucket,
                    Key=key,
                    Body=file,
                    **self._extra_args(metadata, content_type)
                )
            )
        except Exception as e:
            self._handle_exception(e, f"upload {key}")

        # Use server returned ETag if available; else fallback to local hash
        etag = (response or {}).get("ETag", "").strip('"') or hashlib.md5(file).hexdigest()
        logger.info("s3_upload_completed", bucket=self.bucket, key=key, size=len(file))
        return UploadResult(
            key=key,
            bucket=self.bucket,
            etag=etag,
            size=len(file),
            content_type=content_type,
            url=self.public_url(key),
        )

    @with_retry()
    async def upload_file(
        self,
        path: Path,
        key: str,
        metadata: Optional[dict] = None,
        content_type: Optional[str] = None,
        *,
        if_absent: bool = False,
    ) -> UploadResult:
        """Stream a local file to S3.

        Unconditional writes use the managed transfer (multipart for large
        files). With ``if_absent`` a single ``PutObject`` carrying
        ``If-None-Match: *`` is sent, and S3 refuses it with 412 when the key
        is already taken.
        """
        path = Path(path)
        extra_args = self._extra_args(metadata, content_type)
        try:
            size = path.stat().st_size
            if if_absent:
                await anyio.to_thread.run_sync(
                    partial(self._put_file_if_absent, path, key, extra_args)
                )
            else:
                await anyio.to_thread.run_sync(
                    partial(
                        self.client.upload_file,
                        str(path),
                        self.bucket,
                        key,
                        ExtraArgs=extra_args,
                    )
                )
        except Exception as e:
            self._handle_exception(e, f"upload {key}")

        logger.info("s3_upload_completed", bucket=self.bucket, key=key, size=size)
        return UploadResult(
            key=key,
            bucket=self.bucket,
            size=size,
            content_type=content_type,
            url=self.public_url(key),
        )

    def _put_file_if_absent(self, path: Path, key: str, extra_args: dict) -> dict:
        with path.open("rb") as body:
            return self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=body,
                IfNoneMatch="*",
                **extra_args
            )

    @with_retry()
    async def delete(self, key: str) -> bool:
        """Delete object from S3."""
        try:
            await anyio.to_thread.run_sync(
                partial(
                    self.client.delete_object,
                    Bucket=self.bucket,
                    Key=key
                )
            )
        except Exception as e:
            self._handle_exception(e, f"delete {key}")
        logger.info("s3_delete_completed", bucket=self.bucket, key=key)
        return True

    @with_retry()
    async def exists(self, key: str) -> bool:
        """Check if object exists in S3."""
        try:
            await anyio.to_thread.run_sync(
                partial(
                    self.client.head_object,
                    Bucket=self.bucket,
                    Key=key
                )
            )
            return True
        except Exception as e:
            code = getattr(e, "response", {}).get("Error", {}).get("Code", "")
            if code in ("404", "NoSuchKey", "NotFound"):
                return False
            self._handle_exception(e, f"exists {key}")

    async def generate_presigned_url(
        self,
        key: str,
        expires_in: int = 3600,
        bucket: Optional[str] = None,
    ) -> PresignedRequest:
        """Generate a SigV4 presigned GET URL.

        Signing is local (no network round trip); a fresh signature is
        produced on every call.
        """
        bucket = bucket or self.bucket
        if not bucket or not key:
            raise SigningError("bucket and key are required for presigning")
        try:
            url = await anyio.to_thread.run_sync(
                partial(
                    self.client.generate_presigned_url,
                    ClientMethod="get_object",
                    Params={"Bucket": bucket, "Key": key},
                    ExpiresIn=expires_in
                )
            )
        except Exception as e:
            raise SigningError(f"Failed to presign {bucket}/{key}: {e}") from e
        return PresignedRequest(url=url, method="GET", expires_in=expires_in)

    def public_url(self, key: str) -> Optional[str]:
        """Get public/CDN URL for object."""
        if self.config.public_base_url:
            return f"{self.config.public_base_url.rstrip('/')}/{key}"
        elif self.config.s3_acl == "public-read":
            return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"
        # Private bucket, require presigned URL
        return None

    async def health_check(self) -> bool:
        """Check S3 connectivity."""
        try:
            await anyio.to_thread.run_sync(
                partial(
                    self.client.head_bucket,
                    Bucket=self.bucket
                )
            )
            logger.info("s3_health_check_passed", bucket=self.bucket)
            return True
        except Exception as e:
            logger.error("s3_health_check_failed", bucket=self.bucket, error=str(e))
            return False

    def _handle_exception(self, e: Exception, operation: str) -> NoReturn:
        """Map S3 exceptions to storage exceptions."""
        if isinstance(e, (EndpointConnectionError, ConnectTimeoutError, ReadTimeoutError)):
            raise TransientError(f"Transient error: {operation}: {e}") from e

        error_code = getattr(e, "response", {}).get("Error", {}).get("Code", "")
        if error_code in ("NoSuchKey", "404"):
            raise NotFoundError(f"Object not found: {operation}") from e
        elif error_code in _CONFLICT_CODES:
            raise ObjectExistsError(f"Object already exists: {operation}") from e
        elif error_code in ("AccessDenied", "403"):
            raise PermissionDeniedError(f"Access denied: {operation}") from e
        elif error_code in _TRANSIENT_CODES:
            raise TransientError(f"Transient error: {operation}: {e}") from e
        elif isinstance(e, (BotoCoreError, OSError)):
            raise StorageError(f"S3 client error during {operation}: {e}") from e
        else:
            raise StorageError(f"S3 error during {operation}: {e}") from e


def build_s3_client(config: StorageConfig) -> Any:
    """Create the boto3 client described by ``config``."""
    import boto3
    from botocore.config import Config as BotoConfig

    # Build boto3 client config
    boto_config = BotoConfig(
        region_name=config.region,
        signature_version="s3v4",
        retries={
            "max_attempts": config.max_retry_attempts,
            "mode": "standard"
        },
        connect_timeout=config.timeout,
        read_timeout=config.timeout
    )

    client_args = {
        "service_name": "s3",
        "config": boto_config
    }

    if config.aws_access_key_id and config.aws_secret_access_key:
        client_args.update({
            "aws_access_key_id": config.aws_access_key_id,
            "aws_secret_access_key": config.aws_secret_access_key
        })

    if config.endpoint:
        client_args["endpoint_url"] = config.endpoint
        client_args["use_ssl"] = config.enable_ssl

    return boto3.client(**client_args)


async def build_s3_provider(config: StorageConfig) -> S3Provider:
    """Build S3 storage provider.

    Args:
        config: Storage configuration

    Returns:
        Configured S3 provider instance
    """
    if not config.bucket:
        raise ConfigurationError("S3 bucket name is required")

    provider = S3Provider(build_s3_client(config), config)

    # Check connectivity
    if not await provider.health_check():
        raise ConfigurationError("Failed to connect to S3")

    return provider
