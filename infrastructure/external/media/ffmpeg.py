"""ffmpeg/ffprobe backed implementation of the MediaTool port.

Both tools run as child processes through ``anyio.run_process``; the
call is bounded by ``timeout`` and the child is killed on cancellation.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional, Sequence

import anyio

from core.logging_config import get_logger
from domain.common.exceptions import MediaProbeException, MediaProcessingException
from domain.media import Geometry

logger = get_logger(__name__)

PROCESSING_SUFFIX = ".processing"
_STDERR_TAIL = 2000


def _tail(data: Optional[bytes]) -> str:
    if not data:
        return ""
    return data[-_STDERR_TAIL:].decode("utf-8", errors="replace")


def fast_start_path(path: Path) -> Path:
    """Sibling output path of a remux: ``<input>.processing``."""
    return path.with_name(path.name + PROCESSING_SUFFIX)


def parse_probe_output(stdout: bytes) -> Geometry:
    """Extract the first video stream's geometry from ``ffprobe -print_format json``.

    Raises ``MediaProbeException`` when the payload is not the expected
    JSON shape or reports no usable video stream.
    """
    try:
        payload: Any = json.loads(stdout or b"")
    except ValueError as exc:
        raise MediaProbeException(details={"reason": "unparseable probe output"}) from exc

    streams = payload.get("streams") if isinstance(payload, dict) else None
    if not isinstance(streams, list) or not streams:
        raise MediaProbeException(details={"reason": "no streams found"})

    for stream in streams:
        if not isinstance(stream, dict):
            continue
        codec_type = stream.get("codec_type")
        if codec_type not in (None, "video"):
            continue
        width, height = stream.get("width"), stream.get("height")
        if isinstance(width, int) and isinstance(height, int) and width > 0 and height > 0:
            return Geometry(width=width, height=height)

    raise MediaProbeException(details={"reason": "no video stream with dimensions"})


class FFmpegMediaTool:
    """Shells out to ffmpeg for fast-start remux and ffprobe for geometry."""

    def __init__(
        self,
        ffmpeg_binary: str = "ffmpeg",
        ffprobe_binary: str = "ffprobe",
        *,
        timeout: float = 600.0,
    ):
        self.ffmpeg_binary = ffmpeg_binary
        self.ffprobe_binary = ffprobe_binary
        self.timeout = timeout

    def remux_command(self, src: Path, dst: Path) -> list[str]:
        return [
            self.ffmpeg_binary,
            "-y",
            "-v", "error",
            "-i", str(src),
            "-c", "copy",
            "-movflags", "faststart",
            "-f", "mp4",
            str(dst),
        ]

    def probe_command(self, path: Path) -> list[str]:
        return [
            self.ffprobe_binary,
            "-v", "error",
            "-print_format", "json",
            "-show_streams",
            str(path),
        ]

    async def _run(self, command: Sequence[str]):
        with anyio.fail_after(self.timeout):
            return await anyio.run_process(command, check=False)

    async def remux(self, path: Path) -> Path:
        """Relocate the moov atom to the front with a stream copy.

        The input file is left untouched; on failure the partial output
        is removed before ``MediaProcessingException`` is raised.
        """
        path = Path(path)
        output = fast_start_path(path)
        try:
            result = await self._run(self.remux_command(path, output))
        except (OSError, TimeoutError) as exc:
            output.unlink(missing_ok=True)
            logger.error("ffmpeg_spawn_failed", path=str(path), error=str(exc))
            raise MediaProcessingException(details={"reason": type(exc).__name__}) from exc

        if result.returncode != 0:
            output.unlink(missing_ok=True)
            logger.error(
                "ffmpeg_remux_failed",
                path=str(path),
                returncode=result.returncode,
                stderr=_tail(result.stderr),
            )
            raise MediaProcessingException(details={"returncode": result.returncode})

        logger.info("ffmpeg_remux_completed", path=str(path), output=str(output))
        return output

    async def probe(self, path: Path) -> Geometry:
        path = Path(path)
        try:
            result = await self._run(self.probe_command(path))
        except (OSError, TimeoutError) as exc:
            logger.error("ffprobe_spawn_failed", path=str(path), error=str(exc))
            raise MediaProbeException(details={"reason": type(exc).__name__}) from exc

        if result.returncode != 0:
            logger.error(
                "ffprobe_failed",
                path=str(path),
                returncode=result.returncode,
                stderr=_tail(result.stderr),
            )
            raise MediaProbeException(details={"returncode": result.returncode})

        geometry = parse_probe_output(result.stdout)
        logger.debug("ffprobe_completed", path=str(path), width=geometry.width, height=geometry.height)
        return geometry
