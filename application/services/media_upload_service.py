"""Upload pipeline for video thumbnails and video files.

Each upload runs strictly in order:

    ownership -> sniff -> policy check -> name -> spool to scratch
    -> (video) remux -> probe -> classify -> key -> store -> record

Any failure stops the pipeline. Scratch files are removed on every exit
path, and the owning record is only updated after the object is stored.
If the record update fails, the stored object is deleted again.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Callable, Optional
from uuid import UUID

import anyio

from application.dto import VideoDTO
from application.ports.media_tool import MediaTool
from application.ports.storage import StorageKeyConflict, StoragePort, StoragePortError
from application.services.url_issuer import RetrievalURLIssuer
from application.services.video_service import load_owned_video, present_video
from application.utils.scratch import scratch_directory, spool_to_file
from application.utils.sniffing import detect_media_type
from core.logging_config import get_logger
from domain.common.exceptions import (
    AssetAlreadyExistsException,
    AssetStorageException,
    InvalidInputException,
)
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.media import (
    AssetIdentity,
    AssetNamer,
    AssetReference,
    TypePolicy,
    UploadKind,
    build_storage_key,
    parse_declared_type,
)
from domain.media.geometry import classify_geometry
from domain.video import Video

logger = get_logger(__name__)


@dataclass
class UploadedStream:
    """A request-owned, seekable upload body plus its declared type."""

    file: BinaryIO
    content_type: Optional[str]
    filename: Optional[str] = None


@dataclass
class UploadLimits:
    thumbnail_max_bytes: int = 10 * 1024 * 1024
    video_max_bytes: int = 1 << 30
    chunk_size: int = 1024 * 1024
    scratch_dir: Optional[str] = None

    def max_bytes(self, kind: UploadKind) -> int:
        return self.thumbnail_max_bytes if kind == UploadKind.THUMBNAIL else self.video_max_bytes


class MediaUploadService:
    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        *,
        policy: TypePolicy,
        namer: AssetNamer,
        media_tool: MediaTool,
        asset_store: StoragePort,
        video_store: StoragePort,
        url_issuer: RetrievalURLIssuer,
        limits: Optional[UploadLimits] = None,
    ):
        self._uow_factory = uow_factory
        self._policy = policy
        self._namer = namer
        self._media_tool = media_tool
        self._asset_store = asset_store
        self._video_store = video_store
        self._issuer = url_issuer
        self._limits = limits or UploadLimits()

    # ------------------------------------------------------------------
    # Pipeline steps
    # ------------------------------------------------------------------
    async def check_owner(self, video_id: UUID, user_id: UUID) -> Video:
        async with self._uow_factory(readonly=True) as uow:
            return await load_owned_video(uow, video_id, user_id)

    async def _verify(self, upload: UploadedStream, kind: UploadKind) -> str:
        declared = parse_declared_type(upload.content_type)
        try:
            sniffed = await anyio.to_thread.run_sync(detect_media_type, upload.file)
        except OSError as exc:
            raise InvalidInputException("Unable to determine file type", field=kind.value) from exc
        media_type = self._policy.verify(declared, sniffed, kind)
        logger.debug("upload_type_verified", kind=kind.value, media_type=media_type)
        return media_type

    async def _ensure_unwritten(self, store: StoragePort, key: str) -> None:
        try:
            taken = await store.exists(key)
        except StoragePortError as exc:
            raise AssetStorageException() from exc
        if taken:
            raise AssetAlreadyExistsException(key)

    async def _store(self, store: StoragePort, path: Path, key: str, media_type: str) -> None:
        # keys are write-once: a concurrent upload that won the key makes this a conflict
        try:
            await store.upload_file(path, key, content_type=media_type, if_absent=True)
        except StorageKeyConflict as exc:
            logger.warning("asset_key_conflict", key=key)
            raise AssetAlreadyExistsException(key) from exc
        except StoragePortError as exc:
            logger.error("asset_store_failed", key=key, error=str(exc))
            raise AssetStorageException() from exc

    async def _record(
        self,
        video_id: UUID,
        kind: UploadKind,
        reference: AssetReference,
        *,
        store: StoragePort,
        key: str,
    ) -> Video:
        try:
            async with self._uow_factory() as uow:
                return await uow.video_repository.set_asset_reference(video_id, kind, reference)
        except BaseException:
            # the record never saw this object; remove it before re-raising
            with anyio.CancelScope(shield=True):
                try:
                    await store.delete(key)
                except StoragePortError as cleanup_exc:
                    logger.error("orphan_cleanup_failed", key=key, error=str(cleanup_exc))
            raise

    def _reference_for(self, store: StoragePort, key: str) -> AssetReference:
        info = store.info()
        if info.type == "s3":
            return AssetReference.object(info.bucket or "", key)
        return AssetReference.local(key)

    # ------------------------------------------------------------------
    # Use cases
    # ------------------------------------------------------------------
    async def upload_thumbnail(self, video_id: UUID, user_id: UUID, upload: UploadedStream) -> VideoDTO:
        kind = UploadKind.THUMBNAIL
        await self.check_owner(video_id, user_id)
        media_type = await self._verify(upload, kind)
        identity: AssetIdentity = self._namer.name(media_type, record_id=str(video_id))
        key = identity.filename

        await self._ensure_unwritten(self._asset_store, key)
        async with scratch_directory(self._limits.scratch_dir) as scratch:
            source = scratch / f"upload{identity.extension}"
            await spool_to_file(
                upload.file,
                source,
                max_bytes=self._limits.max_bytes(kind),
                chunk_size=self._limits.chunk_size,
            )
            await self._store(self._asset_store, source, key, media_type)

        video = await self._record(
            video_id, kind, AssetReference.local(key), store=self._asset_store, key=key
        )
        logger.info("thumbnail_uploaded", video_id=str(video_id), key=key, media_type=media_type)
        return await present_video(video, self._issuer)

    async def upload_video(self, video_id: UUID, user_id: UUID, upload: UploadedStream) -> VideoDTO:
        kind = UploadKind.VIDEO
        await self.check_owner(video_id, user_id)
        media_type = await self._verify(upload, kind)
        identity: AssetIdentity = self._namer.name(media_type, record_id=str(video_id))

        async with scratch_directory(self._limits.scratch_dir) as scratch:
            source = scratch / f"upload{identity.extension}"
            await spool_to_file(
                upload.file,
                source,
                max_bytes=self._limits.max_bytes(kind),
                chunk_size=self._limits.chunk_size,
            )
            processed = await self._media_tool.remux(source)
            geometry = await self._media_tool.probe(processed)
            aspect = classify_geometry(geometry)
            key = build_storage_key(aspect, identity).path
            logger.info(
                "video_classified",
                video_id=str(video_id),
                width=geometry.width,
                height=geometry.height,
                aspect=aspect.value,
            )

            await self._ensure_unwritten(self._video_store, key)
            await self._store(self._video_store, processed, key, media_type)

        reference = self._reference_for(self._video_store, key)
        video = await self._record(video_id, kind, reference, store=self._video_store, key=key)
        logger.info("video_uploaded", video_id=str(video_id), key=key, bucket=reference.bucket)
        return await present_video(video, self._issuer)
