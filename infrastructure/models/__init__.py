"""Infrastructure models package exports."""
from .base import Base, metadata
from .video import VideoModel

__all__ = [
    "Base",
    "metadata",
    "VideoModel",
]
