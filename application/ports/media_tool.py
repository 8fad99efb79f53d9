"""External media toolchain port.

The upload pipeline only needs two operations from the media toolchain:
rewrite a container for fast start, and read the first video stream's
geometry. Production code shells out to ffmpeg/ffprobe; tests provide
canned results.
"""
from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from domain.media import Geometry


@runtime_checkable
class MediaTool(Protocol):
    async def remux(self, path: Path) -> Path:
        """Write a fast-start copy of ``path`` to a sibling path and return it.

        Raises ``MediaProcessingException`` on spawn failure or non-zero exit.
        """
        ...

    async def probe(self, path: Path) -> Geometry:
        """Return the width/height of the first video stream.

        Raises ``MediaProbeException`` when no video stream can be read.
        """
        ...
