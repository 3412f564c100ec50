"""
Seed the video/image catalog from a JSON manifest and a media directory.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from wellness.config import get_settings
from wellness.dependencies import build_backends
from wellness.seeding import load_manifest, seed_catalog

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed the media catalog")
    parser.add_argument("manifest", help="Path to a JSON list of catalog entries")
    parser.add_argument(
        "-d",
        "--media-dir",
        default=".",
        help="Directory holding the files named in the manifest",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )

    settings = get_settings()
    backends = build_backends(settings)
    try:
        result = seed_catalog(
            load_manifest(args.manifest),
            args.media_dir,
            backends.db,
            backends.videos,
            backends.images,
        )
    finally:
        backends.close()

    logger.info(
        "Seeding finished: %d created, %d skipped",
        len(result.created),
        len(result.skipped),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
