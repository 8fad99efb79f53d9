"""Value objects shared by the upload pipeline."""
from __future__ import annotations

import posixpath
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from domain.common.exceptions import InvalidInputException


class UploadKind(str, Enum):
    THUMBNAIL = "thumbnail"
    VIDEO = "video"


class AspectBucket(str, Enum):
    LANDSCAPE = "landscape"  # 16:9
    PORTRAIT = "portrait"  # 9:16
    OTHER = "other"


class ReferenceKind(str, Enum):
    LOCAL = "local"
    OBJECT = "object"


@dataclass(frozen=True)
class Geometry:
    """Width/height of the first video stream of a probed file."""

    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"invalid geometry {self.width}x{self.height}")


@dataclass(frozen=True)
class AssetIdentity:
    id: str
    extension: str

    @property
    def filename(self) -> str:
        return f"{self.id}{self.extension}"


@dataclass(frozen=True)
class StorageKey:
    prefix: str
    name: AssetIdentity

    @property
    def path(self) -> str:
        return posixpath.join(self.prefix, self.name.filename)

    def __str__(self) -> str:
        return self.path


@dataclass(frozen=True)
class AssetReference:
    """Stable pointer to a stored asset, persisted on the owning record.

    ``local`` references name a path under the asset-serving surface;
    ``object`` references name a (bucket, key) pair that must be presigned
    before every use.
    """

    kind: ReferenceKind
    path: Optional[str] = None
    bucket: Optional[str] = None
    key: Optional[str] = None

    @classmethod
    def local(cls, path: str) -> "AssetReference":
        return cls(kind=ReferenceKind.LOCAL, path=path)

    @classmethod
    def object(cls, bucket: str, key: str) -> "AssetReference":
        return cls(kind=ReferenceKind.OBJECT, bucket=bucket, key=key)

    def to_dict(self) -> dict[str, Any]:
        if self.kind == ReferenceKind.LOCAL:
            return {"kind": self.kind.value, "path": self.path}
        return {"kind": self.kind.value, "bucket": self.bucket, "key": self.key}

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> Optional["AssetReference"]:
        if not data:
            return None
        try:
            kind = ReferenceKind(data.get("kind"))
        except ValueError as exc:
            raise InvalidInputException(
                "Malformed asset reference",
                details={"reference": data},
            ) from exc
        if kind == ReferenceKind.LOCAL:
            return cls.local(str(data.get("path") or ""))
        return cls.object(str(data.get("bucket") or ""), str(data.get("key") or ""))
