"""Pytest bootstrap configuration.

Ensure mandatory environment variables are set before test collection
and module imports that depend on application settings.
"""
import os
import shutil
import tempfile
from copy import deepcopy
from pathlib import Path
from typing import Optional
from uuid import UUID

import pytest

# Mandatory secret key for settings validation
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("DATABASE__URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("MEDIA__ASSETS_ROOT", tempfile.mkdtemp(prefix="tubely-assets-"))

from application.ports.storage import (  # noqa: E402
    PresignedURL,
    StorageInfo,
    StorageKeyConflict,
    StoragePortError,
    UploadOutcome,
)
from domain.common.exceptions import MediaProbeException, MediaProcessingException, VideoNotFoundException  # noqa: E402
from domain.common.unit_of_work import AbstractUnitOfWork  # noqa: E402
from domain.media import AssetReference, Geometry, UploadKind  # noqa: E402
from domain.video import Video, VideoRepository  # noqa: E402


# ---------------------------------------------------------------------------
# Sample payloads (magic bytes are enough for content sniffing)
# ---------------------------------------------------------------------------
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00" + b"\x00" * 600
PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n"
    b"\x00\x00\x00\rIHDR\x00\x00\x00\x10\x00\x00\x00\x10\x08\x02\x00\x00\x00\x90\x91h6"
    b"\x00\x00\x00\x0cIDAT"
    + b"\x00" * 600
)
MP4_BYTES = b"\x00\x00\x00\x18ftypisom\x00\x00\x02\x00isommp42" + b"\x00\x00\x00\x08free" + b"\x00" * 2000


# ---------------------------------------------------------------------------
# In-memory fakes for the application ports
# ---------------------------------------------------------------------------
class InMemoryVideoRepository(VideoRepository):
    def __init__(self):
        self.videos: dict[UUID, Video] = {}
        self.fail_on_update = False
        self.update_calls = 0

    async def create(self, video: Video) -> Video:
        self.videos[video.id] = deepcopy(video)
        return deepcopy(video)

    async def get_by_id(self, video_id: UUID) -> Optional[Video]:
        video = self.videos.get(video_id)
        return deepcopy(video) if video else None

    async def list_by_user(self, user_id: UUID, *, skip: int = 0, limit: int = 20) -> list[Video]:
        owned = [deepcopy(v) for v in self.videos.values() if v.user_id == user_id]
        return owned[skip : skip + limit]

    async def count_by_user(self, user_id: UUID) -> int:
        return sum(1 for v in self.videos.values() if v.user_id == user_id)

    async def set_asset_reference(self, video_id: UUID, kind: UploadKind, reference: AssetReference) -> Video:
        self.update_calls += 1
        if self.fail_on_update:
            raise RuntimeError("database unavailable")
        video = self.videos.get(video_id)
        if video is None:
            raise VideoNotFoundException(str(video_id))
        video.attach(kind, reference)
        return deepcopy(video)


class InMemoryUnitOfWork(AbstractUnitOfWork):
    def __init__(self, repository: InMemoryVideoRepository, *, readonly: bool = False):
        super().__init__(readonly=readonly)
        self._repository = repository
        self.rolled_back = False

    async def __aenter__(self):
        self.video_repository = self._repository
        return self

    async def commit(self) -> None:
        self._committed = True

    async def rollback(self) -> None:
        self.rolled_back = True


class InMemoryUnitOfWorkFactory:
    """Callable with the same signature as ``SQLAlchemyUnitOfWork``."""

    def __init__(self):
        self.repository = InMemoryVideoRepository()

    def __call__(self, *, readonly: bool = False) -> InMemoryUnitOfWork:
        return InMemoryUnitOfWork(self.repository, readonly=readonly)


class InMemoryStoragePort:
    def __init__(self, type: str = "local", bucket: Optional[str] = None, base_url: str = "http://cdn.test"):
        self.type = type
        self.bucket = bucket
        self.base_url = base_url
        self.objects: dict[str, bytes] = {}
        self.content_types: dict[str, Optional[str]] = {}
        self.fail_upload = False
        self.fail_presign = False
        self.deleted: list[str] = []
        self.presign_calls = 0
        self.writes: list[str] = []

    def info(self) -> StorageInfo:
        return StorageInfo(type=self.type, bucket=self.bucket, region=None)

    async def exists(self, key: str) -> bool:
        return key in self.objects

    async def delete(self, key: str) -> bool:
        self.deleted.append(key)
        return self.objects.pop(key, None) is not None

    async def upload(self, data: bytes, key: str, metadata=None, content_type=None) -> UploadOutcome:
        if self.fail_upload:
            raise StoragePortError("backend unavailable")
        self.objects[key] = data
        self.content_types[key] = content_type
        self.writes.append(key)
        return UploadOutcome(key=key, etag=None, size=len(data), content_type=content_type)

    async def upload_file(
        self, path: Path, key: str, metadata=None, content_type=None, *, if_absent: bool = False
    ) -> UploadOutcome:
        if if_absent and key in self.objects:
            raise StorageKeyConflict(f"Object already exists: {key}")
        return await self.upload(Path(path).read_bytes(), key, metadata, content_type)

    async def generate_presigned_url(self, key: str, expires_in: int = 3600, bucket: Optional[str] = None) -> PresignedURL:
        self.presign_calls += 1
        if self.fail_presign:
            raise StoragePortError("signer unavailable")
        url = f"{self.base_url}/{bucket}/{key}?expires={expires_in}&sig={self.presign_calls}"
        return PresignedURL(url=url, expires_in=expires_in)

    def public_url(self, key: str) -> Optional[str]:
        return None


class FakeMediaTool:
    """Copies the input for remux and reports canned geometry."""

    def __init__(self, geometry: Optional[Geometry] = Geometry(1920, 1080)):
        self.geometry = geometry
        self.fail_remux = False
        self.remuxed: list[Path] = []
        self.probed: list[Path] = []

    async def remux(self, path: Path) -> Path:
        if self.fail_remux:
            raise MediaProcessingException(details={"returncode": 1})
        output = path.with_name(path.name + ".processing")
        shutil.copyfile(path, output)
        self.remuxed.append(output)
        return output

    async def probe(self, path: Path) -> Geometry:
        self.probed.append(path)
        if self.geometry is None:
            raise MediaProbeException(details={"reason": "no streams found"})
        return self.geometry


@pytest.fixture
def uow_factory():
    return InMemoryUnitOfWorkFactory()


@pytest.fixture
def asset_store():
    return InMemoryStoragePort(type="local")


@pytest.fixture
def video_store():
    return InMemoryStoragePort(type="s3", bucket="tubely-videos")


@pytest.fixture
def media_tool():
    return FakeMediaTool()


@pytest.fixture
def scratch_root(tmp_path):
    root = tmp_path / "scratch"
    root.mkdir()
    return root


@pytest.fixture
def samples():
    return {"image/jpeg": JPEG_BYTES, "image/png": PNG_BYTES, "video/mp4": MP4_BYTES}
