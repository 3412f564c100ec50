"""
Catalog seeding: upload media files to their buckets and record catalog entries.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Iterable, Optional

from wellness.db import DbClient, MediaKind, MediaRecord
from wellness.storage import BucketClient

logger = logging.getLogger(__name__)


@dataclass
class SeedResult:
    created: list[str]
    skipped: list[str]


def load_manifest(path: str) -> list[dict]:
    with open(path, "r", encoding="utf-8") as f:
        entries = json.load(f)
    if not isinstance(entries, list):
        raise ValueError("manifest must be a JSON list of catalog entries")
    return entries


def _source_path(media_dir: str, filename: str) -> str:
    src_path = os.path.join(media_dir, filename)
    if not os.path.isfile(src_path):
        raise FileNotFoundError(src_path)
    return src_path


def seed_catalog(
    entries: Iterable[dict],
    media_dir: str,
    db: DbClient,
    videos: BucketClient,
    images: BucketClient,
) -> SeedResult:
    """
    Seed catalog entries from manifest dicts.

    Each entry needs ``kind`` ("video" or "image"), ``category``, ``level`` and
    ``filename``; videos may name a ``thumbnail`` uploaded to the video bucket.
    Entries whose filename is already catalogued are skipped.
    """
    result = SeedResult(created=[], skipped=[])
    for entry in entries:
        kind = MediaKind(entry["kind"])
        filename = entry["filename"]
        if db.find_media_by_filename(kind, filename):
            logger.info("Skipping %s %s: already catalogued", kind.value, filename)
            result.skipped.append(filename)
            continue

        thumbnail: Optional[str] = None
        if kind == MediaKind.VIDEO and entry.get("thumbnail"):
            thumbnail = entry["thumbnail"]

        # Resolve every source file before uploading anything.
        src_path = _source_path(media_dir, filename)
        thumb_path = _source_path(media_dir, thumbnail) if thumbnail else None

        bucket = videos if kind == MediaKind.VIDEO else images
        bucket.upload_file(src_path, filename)
        filesize = os.path.getsize(src_path)
        if thumb_path:
            videos.upload_file(thumb_path, thumbnail)

        record = MediaRecord(
            kind=kind,
            category=entry["category"],
            level=entry["level"],
            description=entry.get("description", ""),
            filename=filename,
            thumbnail=thumbnail,
            filesize=filesize,
        )
        db.save_media(record)
        logger.info("Seeded %s %s (%d bytes)", kind.value, filename, filesize)
        result.created.append(filename)
    return result
