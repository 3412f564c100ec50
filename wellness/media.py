"""
Byte-range media delivery on top of a bucket client.

A single ``bytes=<start>-[<end>]`` range is supported. ``end`` is an
exclusive offset and defaults to the total size, which is the catalogued
size capped at what the bucket actually stores.
"""

from __future__ import annotations

import logging
import mimetypes
import re
from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException
from fastapi.responses import JSONResponse, Response, StreamingResponse

from wellness.errors import error_body
from wellness.storage import BucketClient

logger = logging.getLogger(__name__)

VIDEO_MEDIA_TYPE = "video/mp4"
DEFAULT_MEDIA_TYPE = "application/octet-stream"

_RANGE_RE = re.compile(r"^\s*bytes\s*=\s*(\d+)\s*-\s*(\d*)\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class ByteRange:
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start

    def content_range(self, total: int) -> str:
        return f"bytes {self.start}-{self.end - 1}/{total}"


class RangeNotSatisfiable(ValueError):
    def __init__(self, total: int):
        super().__init__(f"range not satisfiable for {total} bytes")
        self.total = total


def parse_range_header(header: Optional[str], total: int) -> Optional[ByteRange]:
    """
    Parse a ``Range`` header against a blob of ``total`` bytes.

    Returns ``None`` when the header is absent or not a single byte range
    (multi-range lists, suffix ranges and other units are served whole).
    Raises ``RangeNotSatisfiable`` when the range selects no bytes.
    """
    if not header:
        return None
    match = _RANGE_RE.match(header)
    if not match:
        return None
    start = int(match.group(1))
    end = int(match.group(2)) if match.group(2) else total
    end = min(end, total)
    if start >= end:
        raise RangeNotSatisfiable(total)
    return ByteRange(start=start, end=end)


def guess_media_type(filename: str) -> str:
    media_type, _ = mimetypes.guess_type(filename)
    return media_type or DEFAULT_MEDIA_TYPE


def media_response(
    bucket: BucketClient,
    filename: str,
    *,
    range_header: Optional[str] = None,
    declared_size: Optional[int] = None,
    media_type: Optional[str] = None,
) -> Response:
    """Stream ``filename`` from ``bucket``, honouring a single byte range."""
    stored_size = bucket.size(filename)
    if stored_size is None:
        logger.warning("Blob %s missing from bucket", filename)
        raise HTTPException(status_code=404, detail="Media file not found")

    total = stored_size
    if declared_size is not None and declared_size != stored_size:
        # Never advertise bytes the bucket cannot deliver.
        logger.warning(
            "Blob %s is %d bytes but catalogued as %d", filename, stored_size, declared_size
        )
        total = min(declared_size, stored_size)
    media_type = media_type or guess_media_type(filename)

    try:
        byte_range = parse_range_header(range_header, total)
    except RangeNotSatisfiable:
        return JSONResponse(
            status_code=416,
            content=error_body("Requested range not satisfiable"),
            headers={"Content-Range": f"bytes */{total}"},
        )

    if byte_range is None:
        end = total if total < stored_size else None
        return StreamingResponse(
            bucket.open_stream(filename, start=0, end=end),
            status_code=200,
            media_type=media_type,
            headers={"Accept-Ranges": "bytes", "Content-Length": str(total)},
        )

    headers = {
        "Content-Range": byte_range.content_range(total),
        "Accept-Ranges": "bytes",
        "Content-Length": str(byte_range.length),
    }
    return StreamingResponse(
        bucket.open_stream(filename, start=byte_range.start, end=byte_range.end),
        status_code=206,
        media_type=media_type,
        headers=headers,
    )
