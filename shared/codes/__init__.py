"""
Shared business codes used across layers (Domain/Core/API).

This package exposes BusinessCode at `shared.codes` as the single source
of truth for status codes carried by business exceptions and responses.
"""
from enum import IntEnum


class BusinessCode(IntEnum):
    """Unified business status codes (single source of truth)."""

    # Success
    SUCCESS = 0

    # Parameter errors (1xxxx)
    PARAM_ERROR = 10000
    PARAM_MISSING = 10001
    PARAM_TYPE_ERROR = 10002
    PARAM_VALIDATION_ERROR = 10003
    PAYLOAD_TOO_LARGE = 10004
    UNSUPPORTED_MEDIA_TYPE = 10005

    # Business errors (2xxxx)
    BUSINESS_ERROR = 20000
    TOKEN_INVALID = 20004
    TOKEN_EXPIRED = 20005
    NOT_FOUND = 20006  # Generic resource not found
    CONFLICT = 20007

    # Authorization errors (3xxxx)
    PERMISSION_ERROR = 30000
    UNAUTHORIZED = 30001
    FORBIDDEN = 30002

    # System errors (4xxxx)
    SYSTEM_ERROR = 40000
    DATABASE_ERROR = 40001
    NETWORK_ERROR = 40002
    SERVICE_UNAVAILABLE = 40003
    STORAGE_ERROR = 40004
    MEDIA_PROCESSING_ERROR = 40005
    MEDIA_PROBE_ERROR = 40006
    SIGNING_ERROR = 40007


__all__ = ["BusinessCode"]
