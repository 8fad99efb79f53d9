"""Per-upload scratch space on local disk."""
from __future__ import annotations

import shutil
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, BinaryIO, Optional

import aiofiles
import anyio

from core.logging_config import get_logger
from domain.common.exceptions import UploadTooLargeException

logger = get_logger(__name__)


@asynccontextmanager
async def scratch_directory(root: Optional[str] = None) -> AsyncIterator[Path]:
    """Create a private temp directory and remove it on every exit path.

    Removal also runs when the task is cancelled (client disconnect).
    """
    if root:
        Path(root).mkdir(parents=True, exist_ok=True)
    path = Path(await anyio.to_thread.run_sync(lambda: tempfile.mkdtemp(prefix="upload-", dir=root)))
    try:
        yield path
    finally:
        with anyio.CancelScope(shield=True):
            await anyio.to_thread.run_sync(lambda: shutil.rmtree(path, ignore_errors=True))
        logger.debug("scratch_removed", path=str(path))


async def spool_to_file(
    stream: BinaryIO,
    dest: Path,
    *,
    max_bytes: int,
    chunk_size: int = 1024 * 1024,
) -> int:
    """Copy ``stream`` to ``dest`` in chunks and return the byte count.

    Raises ``UploadTooLargeException`` as soon as ``max_bytes`` is crossed;
    the partial file is left for the enclosing scratch scope to remove.
    """
    written = 0
    async with aiofiles.open(dest, "wb") as out:
        while True:
            chunk = await anyio.to_thread.run_sync(stream.read, chunk_size)
            if not chunk:
                break
            written += len(chunk)
            if written > max_bytes:
                raise UploadTooLargeException(max_bytes, written)
            await out.write(chunk)
    return written
