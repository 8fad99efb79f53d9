"""Storage data transfer objects."""
from typing import Optional
from pydantic import BaseModel, Field


class UploadResult(BaseModel):
    """Upload operation result."""
    key: str
    bucket: Optional[str] = None
    etag: Optional[str] = None
    size: int
    content_type: Optional[str] = None
    url: Optional[str] = None  # Public URL if available


class PresignedRequest(BaseModel):
    """Presigned request for time-limited direct access."""
    url: str
    method: str = "GET"
    headers: dict[str, str] = Field(default_factory=dict)
    expires_in: int
