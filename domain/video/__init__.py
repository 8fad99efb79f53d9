"""Video domain exports."""
from .entity import Video
from .repository import VideoRepository

__all__ = ["Video", "VideoRepository"]
