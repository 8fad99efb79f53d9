"""Content sniffing for uploaded streams."""
from __future__ import annotations

from typing import BinaryIO

import filetype

SNIFF_LEN = 512
DEFAULT_MEDIA_TYPE = "application/octet-stream"
MP4_MEDIA_TYPE = "video/mp4"


def read_head(stream: BinaryIO, size: int = SNIFF_LEN) -> bytes:
    """Read up to ``size`` bytes from the current position.

    Short streams are not an error; the read stops at EOF.
    """
    chunks: list[bytes] = []
    remaining = size
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def has_mp4_brand(head: bytes) -> bool:
    """WHATWG MP4 signature: a complete ``ftyp`` box naming an ``mp4*`` brand.

    Only the major brand and the compatible brands count; the minor
    version word at offset 12 is skipped.
    """
    if len(head) < 12:
        return False
    box_size = int.from_bytes(head[:4], "big")
    if box_size % 4 or len(head) < box_size or head[4:8] != b"ftyp":
        return False
    for offset in range(8, box_size, 4):
        if offset == 12:
            continue
        if head[offset:offset + 3] == b"mp4":
            return True
    return False


def sniff_bytes(head: bytes) -> str:
    head = head[:SNIFF_LEN]
    media_type = filetype.guess_mime(head)
    # filetype also accepts bare isom files as mp4
    if media_type == MP4_MEDIA_TYPE and not has_mp4_brand(head):
        return DEFAULT_MEDIA_TYPE
    return media_type or DEFAULT_MEDIA_TYPE


def detect_media_type(stream: BinaryIO) -> str:
    """Classify the stream by its first 512 bytes and rewind it.

    The cursor is restored to where it was before the call. ``OSError``
    from read/seek propagates to the caller.
    """
    start = stream.tell()
    head = read_head(stream)
    stream.seek(start)
    return sniff_bytes(head)
