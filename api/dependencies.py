"""
API依赖项 - 认证与服务装配
"""
from functools import lru_cache
from typing import Optional
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from api.middleware import bind_user_id
from application.ports.media_tool import MediaTool
from application.ports.storage import StoragePort
from application.services.media_upload_service import MediaUploadService, UploadLimits
from application.services.token_service import TokenService
from application.services.url_issuer import RetrievalURLIssuer
from application.services.video_service import VideoApplicationService
from core.config import MediaSettings, settings
from core.exceptions import UnauthorizedException
from domain.media import AssetNamer, NamingStrategy, TypePolicy
from infrastructure.adapters.storage_port import StorageProviderPortAdapter
from infrastructure.external.media import FFmpegMediaTool
from infrastructure.external.storage import get_asset_storage, get_storage
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork

# HTTP Bearer for direct API calls
http_bearer = HTTPBearer(
    scheme_name="Bearer",
    description="JWT Bearer token authentication",
    auto_error=False,
)


def get_media_settings() -> MediaSettings:
    return settings.media


def get_uow_factory():
    return SQLAlchemyUnitOfWork


@lru_cache
def get_token_service() -> TokenService:
    return TokenService(
        secret_key=settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
        expire_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
    )


async def get_token(
    bearer_token: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer)
) -> str:
    """从 Authorization: Bearer 头中提取token"""
    if bearer_token and bearer_token.credentials:
        return bearer_token.credentials
    raise UnauthorizedException("Couldn't find JWT")


async def get_current_user_id(
    token: str = Depends(get_token),
    tokens: TokenService = Depends(get_token_service),
) -> UUID:
    """获取当前登录用户ID"""
    user_id = tokens.verify_access_token(token)
    bind_user_id(str(user_id))
    return user_id


async def get_video_storage_port(provider=Depends(get_storage)) -> StoragePort:
    return StorageProviderPortAdapter(provider)


async def get_asset_storage_port(provider=Depends(get_asset_storage)) -> StoragePort:
    return StorageProviderPortAdapter(provider)


def get_media_tool(media: MediaSettings = Depends(get_media_settings)) -> MediaTool:
    return FFmpegMediaTool(media.ffmpeg_binary, media.ffprobe_binary, timeout=media.process_timeout)


async def get_url_issuer(
    media: MediaSettings = Depends(get_media_settings),
    video_store: StoragePort = Depends(get_video_storage_port),
) -> RetrievalURLIssuer:
    return RetrievalURLIssuer(media.assets_base_url, video_store, ttl_seconds=media.signed_url_ttl)


async def get_video_service(
    issuer: RetrievalURLIssuer = Depends(get_url_issuer),
    uow_factory=Depends(get_uow_factory),
) -> VideoApplicationService:
    return VideoApplicationService(uow_factory=uow_factory, url_issuer=issuer)


async def get_media_upload_service(
    media: MediaSettings = Depends(get_media_settings),
    media_tool: MediaTool = Depends(get_media_tool),
    asset_store: StoragePort = Depends(get_asset_storage_port),
    video_store: StoragePort = Depends(get_video_storage_port),
    issuer: RetrievalURLIssuer = Depends(get_url_issuer),
    uow_factory=Depends(get_uow_factory),
) -> MediaUploadService:
    return MediaUploadService(
        uow_factory,
        policy=TypePolicy.from_policy_name(media.thumbnail_policy, media.video_types),
        namer=AssetNamer(NamingStrategy(media.naming_strategy), random_bytes=media.random_name_bytes),
        media_tool=media_tool,
        asset_store=asset_store,
        video_store=video_store,
        url_issuer=issuer,
        limits=UploadLimits(
            thumbnail_max_bytes=media.thumbnail_max_bytes,
            video_max_bytes=media.video_max_bytes,
            chunk_size=media.copy_chunk_size,
            scratch_dir=media.scratch_dir,
        ),
    )
