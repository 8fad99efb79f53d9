"""视频与媒体上传相关路由。"""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from starlette.datastructures import UploadFile

from api.dependencies import (
    get_current_user_id,
    get_media_upload_service,
    get_video_service,
)
from application.dto import VideoCreateDTO, VideoDTO
from application.services.media_upload_service import MediaUploadService, UploadedStream
from application.services.video_service import VideoApplicationService
from core.config import settings
from core.response import (
    PaginatedData,
    Response as ApiResponse,
    paginated_response,
    success_response,
)
from domain.common.exceptions import InvalidInputException


router = APIRouter(
    prefix="/videos",
    tags=["视频"],
)


async def _run_upload(request: Request, field: str, handler) -> VideoDTO:
    """解析 multipart 表单中的单个文件字段并交给上传流水线。

    表单在鉴权与归属校验之后才解析，未授权请求不会落盘。
    """
    async with request.form(max_files=1) as form:
        part = form.get(field)
        if not isinstance(part, UploadFile):
            raise InvalidInputException("Unable to parse form file", field=field)
        upload = UploadedStream(
            file=part.file,
            content_type=part.headers.get("content-type"),
            filename=part.filename,
        )
        return await handler(upload)


@router.post(
    "",
    summary="创建视频记录",
    response_model=ApiResponse[VideoDTO],
    status_code=201,
)
async def create_video(
    payload: VideoCreateDTO,
    user_id: UUID = Depends(get_current_user_id),
    service: VideoApplicationService = Depends(get_video_service),
):
    video = await service.create_video(user_id, payload)
    return success_response(data=video, message="created")


@router.get(
    "",
    summary="当前用户的视频列表",
    response_model=ApiResponse[PaginatedData[VideoDTO]],
)
async def list_videos(
    page: int = Query(1, ge=1, description="页码"),
    size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, description="每页数量"),
    user_id: UUID = Depends(get_current_user_id),
    service: VideoApplicationService = Depends(get_video_service),
):
    items, total = await service.list_videos(user_id, skip=(page - 1) * size, limit=size)
    return paginated_response(items=items, total=total, page=page, size=size)


@router.get(
    "/{video_id}",
    summary="获取视频（每次读取都重新签发访问URL）",
    response_model=ApiResponse[VideoDTO],
)
async def get_video(
    video_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    service: VideoApplicationService = Depends(get_video_service),
):
    video = await service.get_video(video_id, user_id)
    return success_response(data=video)


@router.post(
    "/{video_id}/thumbnail",
    summary="上传缩略图（multipart 字段 thumbnail）",
    response_model=ApiResponse[VideoDTO],
)
async def upload_thumbnail(
    video_id: UUID,
    request: Request,
    user_id: UUID = Depends(get_current_user_id),
    service: MediaUploadService = Depends(get_media_upload_service),
):
    await service.check_owner(video_id, user_id)
    video = await _run_upload(
        request,
        "thumbnail",
        lambda upload: service.upload_thumbnail(video_id, user_id, upload),
    )
    return success_response(data=video, message="thumbnail uploaded")


@router.post(
    "/{video_id}/video",
    summary="上传视频（multipart 字段 video）",
    response_model=ApiResponse[VideoDTO],
)
async def upload_video(
    video_id: UUID,
    request: Request,
    user_id: UUID = Depends(get_current_user_id),
    service: MediaUploadService = Depends(get_media_upload_service),
):
    await service.check_owner(video_id, user_id)
    video = await _run_upload(
        request,
        "video",
        lambda upload: service.upload_video(video_id, user_id, upload),
    )
    return success_response(data=video, message="video uploaded")
