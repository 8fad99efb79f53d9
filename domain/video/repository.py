"""Repository abstraction for video records."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from domain.media.value_objects import AssetReference, UploadKind
from .entity import Video


class VideoRepository(ABC):
    """Contract for reading video records and updating their asset references."""

    @abstractmethod
    async def create(self, video: Video) -> Video:
        ...

    @abstractmethod
    async def get_by_id(self, video_id: UUID) -> Optional[Video]:
        ...

    @abstractmethod
    async def list_by_user(self, user_id: UUID, *, skip: int = 0, limit: int = 20) -> list[Video]:
        ...

    @abstractmethod
    async def count_by_user(self, user_id: UUID) -> int:
        ...

    @abstractmethod
    async def set_asset_reference(
        self,
        video_id: UUID,
        kind: UploadKind,
        reference: AssetReference,
    ) -> Video:
        """Atomically write a single reference column of one record."""
        ...
