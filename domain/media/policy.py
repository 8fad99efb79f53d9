"""Upload content-type policy: allowlists per upload kind and spoofing cross-check."""
from __future__ import annotations

from typing import Iterable, Mapping, Optional

from domain.common.exceptions import (
    ContentTypeMismatchException,
    ContentTypeNotAllowedException,
    InvalidInputException,
)
from .value_objects import UploadKind

BASELINE_THUMBNAIL_TYPES = ("image/jpeg", "image/png")
EXTENDED_THUMBNAIL_TYPES = BASELINE_THUMBNAIL_TYPES + ("image/gif", "image/webp")
VIDEO_TYPES = ("video/mp4",)


def _normalize(media_type: Optional[str]) -> str:
    return (media_type or "").strip().lower()


def parse_declared_type(header_value: Optional[str]) -> str:
    """Parse a Content-Type header into a bare, lowercased media type.

    Parameters such as ``; charset=...`` are dropped. A missing or empty
    header, or one that is not ``type/subtype``, is an input error.
    """
    media_type = _normalize((header_value or "").split(";", 1)[0])
    if not media_type:
        raise InvalidInputException("Missing Content-Type header", field="content_type")
    main, sep, sub = media_type.partition("/")
    if not sep or not main or not sub or " " in media_type:
        raise InvalidInputException(
            "Invalid Content-Type header",
            field="content_type",
            details={"content_type": header_value},
        )
    return media_type


class TypePolicy:
    """Allowlist and cross-check rules applied before any write happens."""

    def __init__(self, allowlists: Mapping[UploadKind, Iterable[str]]):
        self._allowlists = {
            UploadKind(kind): frozenset(_normalize(t) for t in types)
            for kind, types in allowlists.items()
        }

    @classmethod
    def from_policy_name(cls, thumbnail_policy: str = "baseline", video_types: Iterable[str] = VIDEO_TYPES) -> "TypePolicy":
        thumbnails = EXTENDED_THUMBNAIL_TYPES if thumbnail_policy == "extended" else BASELINE_THUMBNAIL_TYPES
        return cls({UploadKind.THUMBNAIL: thumbnails, UploadKind.VIDEO: tuple(video_types)})

    def allowed_types(self, kind: UploadKind) -> frozenset[str]:
        return self._allowlists.get(UploadKind(kind), frozenset())

    def is_allowed(self, declared_type: Optional[str], kind: UploadKind) -> bool:
        declared = _normalize(declared_type)
        if not declared:
            return False
        return declared in self.allowed_types(kind)

    @staticmethod
    def types_match(declared_type: Optional[str], sniffed_type: Optional[str]) -> bool:
        declared = _normalize(declared_type)
        return bool(declared) and declared == _normalize(sniffed_type)

    def verify(self, declared_type: Optional[str], sniffed_type: str, kind: UploadKind) -> str:
        """Run both checks and return the verified media type."""
        if not self.is_allowed(declared_type, kind):
            raise ContentTypeNotAllowedException(declared_type, UploadKind(kind).value)
        if not self.types_match(declared_type, sniffed_type):
            raise ContentTypeMismatchException(_normalize(declared_type), _normalize(sniffed_type))
        return _normalize(declared_type)
