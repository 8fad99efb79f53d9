"""Asset naming: storage identifier plus file extension."""
from __future__ import annotations

import mimetypes
import secrets
from enum import Enum
from typing import Optional

from domain.common.exceptions import InvalidInputException, UnsupportedMediaTypeException
from .value_objects import AssetIdentity

MIN_RANDOM_BYTES = 32

# Built-in table only; host mime.types files are not consulted.
_MIME_TABLE = mimetypes.MimeTypes(filenames=())

# The table's first alias is not the canonical one for these types.
_EXTENSION_OVERRIDES = {
    "video/mp4": ".mp4",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
}


class NamingStrategy(str, Enum):
    RANDOM = "random"
    IDENTITY = "identity"


def media_type_to_ext(media_type: str) -> str:
    media_type = (media_type or "").strip().lower()
    if media_type in _EXTENSION_OVERRIDES:
        return _EXTENSION_OVERRIDES[media_type]
    extensions = _MIME_TABLE.guess_all_extensions(media_type, strict=True)
    if not extensions:
        raise UnsupportedMediaTypeException(media_type)
    return extensions[0]


def random_token(num_bytes: int = MIN_RANDOM_BYTES) -> str:
    """URL-safe, unpadded base64 of ``num_bytes`` random bytes."""
    return secrets.token_urlsafe(max(num_bytes, MIN_RANDOM_BYTES))


class AssetNamer:
    def __init__(
        self,
        strategy: NamingStrategy = NamingStrategy.RANDOM,
        *,
        random_bytes: int = MIN_RANDOM_BYTES,
    ):
        self.strategy = NamingStrategy(strategy)
        self.random_bytes = max(random_bytes, MIN_RANDOM_BYTES)

    def name(self, media_type: str, record_id: Optional[str] = None) -> AssetIdentity:
        extension = media_type_to_ext(media_type)
        if self.strategy == NamingStrategy.IDENTITY:
            if not record_id:
                raise InvalidInputException("Missing record id for identity naming", field="video_id")
            return AssetIdentity(id=str(record_id), extension=extension)
        return AssetIdentity(id=random_token(self.random_bytes), extension=extension)
