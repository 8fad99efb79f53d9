"""SQLAlchemy-backed repository for video records."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.common.exceptions import VideoNotFoundException
from domain.media import AssetReference, UploadKind
from domain.video import Video, VideoRepository
from infrastructure.models.video import VideoModel

_REFERENCE_COLUMNS = {
    UploadKind.THUMBNAIL: VideoModel.thumbnail_ref,
    UploadKind.VIDEO: VideoModel.video_ref,
}


class SQLAlchemyVideoRepository(VideoRepository):
    """Persist video records using SQLAlchemy ORM."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: VideoModel) -> Video:
        return Video(
            id=model.id,
            user_id=model.user_id,
            title=model.title or "",
            description=model.description or "",
            thumbnail=AssetReference.from_dict(model.thumbnail_ref),
            video=AssetReference.from_dict(model.video_ref),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    async def create(self, video: Video) -> Video:
        now = datetime.now(timezone.utc)
        model = VideoModel(
            id=video.id,
            user_id=video.user_id,
            title=video.title,
            description=video.description,
            thumbnail_ref=video.thumbnail.to_dict() if video.thumbnail else None,
            video_ref=video.video.to_dict() if video.video else None,
            created_at=video.created_at or now,
            updated_at=video.updated_at or now,
        )
        self.session.add(model)
        await self.session.flush()
        await self.session.refresh(model)
        return self._to_entity(model)

    async def get_by_id(self, video_id: UUID) -> Optional[Video]:
        result = await self.session.execute(select(VideoModel).where(VideoModel.id == video_id))
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def list_by_user(self, user_id: UUID, *, skip: int = 0, limit: int = 20) -> list[Video]:
        result = await self.session.execute(
            select(VideoModel)
            .where(VideoModel.user_id == user_id)
            .order_by(VideoModel.created_at.desc(), VideoModel.id)
            .offset(skip)
            .limit(limit)
        )
        return [self._to_entity(m) for m in result.scalars().all()]

    async def count_by_user(self, user_id: UUID) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(VideoModel).where(VideoModel.user_id == user_id)
        )
        return int(result.scalar_one())

    async def set_asset_reference(
        self,
        video_id: UUID,
        kind: UploadKind,
        reference: AssetReference,
    ) -> Video:
        # 单条 UPDATE，仅写引用列与 updated_at，不覆盖其他字段的并发修改
        column = _REFERENCE_COLUMNS[UploadKind(kind)]
        result = await self.session.execute(
            update(VideoModel)
            .where(VideoModel.id == video_id)
            .values({column: reference.to_dict(), VideoModel.updated_at: datetime.now(timezone.utc)})
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise VideoNotFoundException(str(video_id))

        refreshed = await self.session.execute(
            select(VideoModel)
            .where(VideoModel.id == video_id)
            .execution_options(populate_existing=True)
        )
        return self._to_entity(refreshed.scalar_one())
