"""Application service for reading and creating video records."""
from __future__ import annotations

from typing import Callable, Tuple
from uuid import UUID, uuid4

from application.dto import VideoCreateDTO, VideoDTO
from application.services.url_issuer import RetrievalURLIssuer
from core.logging_config import get_logger
from domain.common.exceptions import NotVideoOwnerException, VideoNotFoundException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.video import Video

logger = get_logger(__name__)


async def present_video(video: Video, issuer: RetrievalURLIssuer) -> VideoDTO:
    """Build the response DTO, resolving references into fresh URLs."""
    return VideoDTO(
        id=video.id,
        user_id=video.user_id,
        title=video.title,
        description=video.description,
        thumbnail_url=await issuer.resolve(video.thumbnail),
        video_url=await issuer.resolve(video.video),
        created_at=video.created_at,
        updated_at=video.updated_at,
    )


async def load_owned_video(uow: AbstractUnitOfWork, video_id: UUID, user_id: UUID) -> Video:
    video = await uow.video_repository.get_by_id(video_id)
    if video is None:
        raise VideoNotFoundException(str(video_id))
    if not video.belongs_to(user_id):
        logger.warning("video_owner_mismatch", video_id=str(video_id), user_id=str(user_id))
        raise NotVideoOwnerException()
    return video


class VideoApplicationService:
    def __init__(self, uow_factory: Callable[..., AbstractUnitOfWork], url_issuer: RetrievalURLIssuer):
        self._uow_factory = uow_factory
        self._issuer = url_issuer

    async def create_video(self, user_id: UUID, data: VideoCreateDTO) -> VideoDTO:
        async with self._uow_factory() as uow:
            video = await uow.video_repository.create(
                Video(id=uuid4(), user_id=user_id, title=data.title, description=data.description)
            )
        logger.info("video_created", video_id=str(video.id), user_id=str(user_id))
        return await present_video(video, self._issuer)

    async def get_video(self, video_id: UUID, user_id: UUID) -> VideoDTO:
        async with self._uow_factory(readonly=True) as uow:
            video = await load_owned_video(uow, video_id, user_id)
        return await present_video(video, self._issuer)

    async def list_videos(self, user_id: UUID, *, skip: int = 0, limit: int = 20) -> Tuple[list[VideoDTO], int]:
        async with self._uow_factory(readonly=True) as uow:
            videos = await uow.video_repository.list_by_user(user_id, skip=skip, limit=limit)
            total = await uow.video_repository.count_by_user(user_id)
        return [await present_video(v, self._issuer) for v in videos], total
