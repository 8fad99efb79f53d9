"""
数据传输对象（DTO）- 应用层与表现层之间的数据传输
"""
from pydantic import BaseModel, Field, model_serializer, ConfigDict
from typing import Optional
from datetime import datetime, timezone
from uuid import UUID


class DTOBase(BaseModel):
    """Base DTO: unify datetime serialization to UTC-Z for all subclasses."""

    @model_serializer(mode="wrap")
    def _serialize_model(self, handler):  # type: ignore[override]
        data = handler(self)

        def convert(value):
            if isinstance(value, datetime):
                ts = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
                s = ts.astimezone(timezone.utc).isoformat()
                return s.replace("+00:00", "Z")
            if isinstance(value, list):
                return [convert(v) for v in value]
            if isinstance(value, tuple):
                return tuple(convert(v) for v in value)
            if isinstance(value, dict):
                return {k: convert(v) for k, v in value.items()}
            return value

        return convert(data)


class VideoDTO(DTOBase):
    """视频响应DTO：资产引用在读取时解析为可访问URL"""
    id: UUID
    user_id: UUID
    title: str = ""
    description: str = ""
    thumbnail_url: Optional[str] = Field(None, description="缩略图地址（本地静态资源）")
    video_url: Optional[str] = Field(None, description="视频地址（对象存储时为临时签名URL）")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class VideoCreateDTO(DTOBase):
    """视频创建DTO"""
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field("", max_length=5000)
