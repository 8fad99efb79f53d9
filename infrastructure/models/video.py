"""Video database model definitions."""
from datetime import datetime, timezone
import uuid

from sqlalchemy import (
    Column,
    DateTime,
    Index,
    JSON,
    String,
    Text,
    Uuid,
)
from sqlalchemy.sql import func

from .base import Base


class VideoModel(Base):
    """ORM mapping for videos table."""

    __tablename__ = "videos"
    __table_args__ = (
        Index("ix_videos_user_created", "user_id", "created_at"),
        {
            "comment": "视频元数据表，资产以结构化引用保存（不保存签名URL）",
        },
    )

    id = Column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="主键ID",
    )
    user_id = Column(
        Uuid,
        nullable=False,
        index=True,
        comment="归属用户ID",
    )
    title = Column(
        String(255),
        nullable=False,
        default="",
        comment="标题",
    )
    description = Column(
        Text,
        nullable=False,
        default="",
        comment="描述",
    )
    thumbnail_ref = Column(
        JSON,
        nullable=True,
        comment="缩略图引用：{kind: local, path}",
    )
    video_ref = Column(
        JSON,
        nullable=True,
        comment="视频引用：{kind: local, path} 或 {kind: object, bucket, key}",
    )
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        comment="创建时间",
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        comment="更新时间",
    )

    def __repr__(self) -> str:
        return f"<VideoModel(id={self.id}, user_id={self.user_id}, title='{self.title}')>"
