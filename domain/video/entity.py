"""Domain entity for the video record that owns uploaded assets."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from domain.media.value_objects import AssetReference, UploadKind


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass
class Video:
    """Video metadata record; assets are referenced, never embedded."""

    id: UUID
    user_id: UUID
    title: str = ""
    description: str = ""
    thumbnail: Optional[AssetReference] = None
    video: Optional[AssetReference] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        self.created_at = _ensure_utc(self.created_at)
        self.updated_at = _ensure_utc(self.updated_at)

    def belongs_to(self, user_id: UUID) -> bool:
        return self.user_id == user_id

    def reference_for(self, kind: UploadKind) -> Optional[AssetReference]:
        return self.thumbnail if UploadKind(kind) == UploadKind.THUMBNAIL else self.video

    def attach(self, kind: UploadKind, reference: AssetReference) -> None:
        if UploadKind(kind) == UploadKind.THUMBNAIL:
            self.thumbnail = reference
        else:
            self.video = reference
        self.updated_at = datetime.now(timezone.utc)
