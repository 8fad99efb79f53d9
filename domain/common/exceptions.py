"""领域层业务异常定义，供领域与基础设施使用。

核心（core）层仅负责全局映射与异常处理，尽量避免领域层反向依赖核心层。
"""
from __future__ import annotations

from typing import Optional
from shared.codes import BusinessCode


class BusinessException(Exception):
    """业务异常基类"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class InvalidInputException(BusinessException):
    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict | None = None,
        error_type: str = "InvalidInput",
    ):
        super().__init__(
            code=BusinessCode.PARAM_ERROR,
            message=message,
            error_type=error_type,
            details=details,
            field=field,
        )


class ContentTypeNotAllowedException(InvalidInputException):
    def __init__(self, content_type: Optional[str], kind: str):
        super().__init__(
            "Invalid file type",
            field="content_type",
            details={"content_type": content_type, "kind": kind},
            error_type="ContentTypeNotAllowed",
        )


class ContentTypeMismatchException(InvalidInputException):
    def __init__(self, declared: str, sniffed: str):
        super().__init__(
            "Content-Type doesn't match file type",
            field="content_type",
            details={"declared": declared, "sniffed": sniffed},
            error_type="ContentTypeMismatch",
        )


class UnsupportedMediaTypeException(BusinessException):
    def __init__(self, media_type: str):
        super().__init__(
            code=BusinessCode.UNSUPPORTED_MEDIA_TYPE,
            message="Unsupported media type",
            error_type="UnsupportedMediaType",
            details={"media_type": media_type},
            field="content_type",
        )


class UploadTooLargeException(BusinessException):
    def __init__(self, max_size: int, size: Optional[int] = None):
        details = {"max_size": max_size}
        if size is not None:
            details["size"] = size
        super().__init__(
            code=BusinessCode.PAYLOAD_TOO_LARGE,
            message="Upload too large",
            error_type="UploadTooLarge",
            details=details,
        )


class VideoNotFoundException(BusinessException):
    def __init__(self, video_id: Optional[str] = None):
        details = {"video_id": video_id} if video_id else None
        super().__init__(
            code=BusinessCode.NOT_FOUND,
            message="Couldn't find video",
            error_type="VideoNotFound",
            details=details,
        )


class NotVideoOwnerException(BusinessException):
    def __init__(self):
        super().__init__(
            code=BusinessCode.UNAUTHORIZED,
            message="Not authorized to update this video",
            error_type="NotVideoOwner",
        )


class AssetAlreadyExistsException(BusinessException):
    def __init__(self, key: str):
        super().__init__(
            code=BusinessCode.CONFLICT,
            message="Asset key already written",
            error_type="AssetAlreadyExists",
            details={"key": key},
        )


class MediaProcessingException(BusinessException):
    def __init__(self, message: str = "Could not process video for fast start", details: Optional[dict] = None):
        super().__init__(
            code=BusinessCode.MEDIA_PROCESSING_ERROR,
            message=message,
            error_type="ProcessingError",
            details=details,
        )


class MediaProbeException(BusinessException):
    def __init__(self, message: str = "Error determining aspect ratio", details: Optional[dict] = None):
        super().__init__(
            code=BusinessCode.MEDIA_PROBE_ERROR,
            message=message,
            error_type="ProbeError",
            details=details,
        )


class AssetStorageException(BusinessException):
    def __init__(self, message: str = "Couldn't store asset", details: Optional[dict] = None):
        super().__init__(
            code=BusinessCode.STORAGE_ERROR,
            message=message,
            error_type="StorageError",
            details=details,
        )


class URLSigningException(BusinessException):
    def __init__(self, message: str = "Could not sign video URL", details: Optional[dict] = None):
        super().__init__(
            code=BusinessCode.SIGNING_ERROR,
            message=message,
            error_type="SigningError",
            details=details,
        )
