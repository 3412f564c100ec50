"""
Dependency wiring for the FastAPI app.

Clients are built once per application by ``build_backends``, kept on
``app.state`` and closed by the app lifespan on shutdown.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from wellness.config import Settings
from wellness.db import DbClient, InMemoryDbClient, SqlDbClient
from wellness.spotify import SpotifyTokenClient
from wellness.storage import BucketClient, InMemoryBucketClient, S3BucketClient

logger = logging.getLogger(__name__)


@dataclass
class Backends:
    db: DbClient
    videos: BucketClient
    images: BucketClient
    spotify: Optional[SpotifyTokenClient] = None

    def close(self) -> None:
        for client in (self.db, self.videos, self.images):
            try:
                client.close()
            except Exception:
                logger.exception("Failed to close %s", type(client).__name__)


def _build_db(settings: Settings) -> DbClient:
    if settings.use_in_memory_backends or not settings.database_url:
        logger.info("Using in-memory database")
        return InMemoryDbClient()
    return SqlDbClient(settings.database_url)


def _build_bucket(settings: Settings, bucket: str) -> BucketClient:
    return S3BucketClient(
        bucket=bucket,
        region=settings.s3_region or "",
        endpoint=settings.s3_endpoint or "",
        access_key_id=settings.aws_access_key_id or "",
        secret_access_key=settings.aws_secret_access_key or "",
    )


def _build_spotify(settings: Settings) -> Optional[SpotifyTokenClient]:
    if not (settings.spotify_client_id and settings.spotify_client_secret):
        return None
    origins = settings.cors_origins()
    return SpotifyTokenClient(
        client_id=settings.spotify_client_id,
        client_secret=settings.spotify_client_secret,
        redirect_uri=origins[0] if origins else "",
    )


def build_backends(settings: Settings) -> Backends:
    db = _build_db(settings)
    if (
        settings.use_in_memory_backends
        or not settings.video_bucket
        or not settings.image_bucket
    ):
        logger.info("Using in-memory media buckets")
        videos: BucketClient = InMemoryBucketClient()
        images: BucketClient = InMemoryBucketClient()
    else:
        videos = _build_bucket(settings, settings.video_bucket)
        images = _build_bucket(settings, settings.image_bucket)
    return Backends(db=db, videos=videos, images=images, spotify=_build_spotify(settings))


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db_client(request: Request) -> DbClient:
    return request.app.state.backends.db


def get_video_bucket(request: Request) -> BucketClient:
    return request.app.state.backends.videos


def get_image_bucket(request: Request) -> BucketClient:
    return request.app.state.backends.images


def get_spotify_client(request: Request) -> Optional[SpotifyTokenClient]:
    return request.app.state.backends.spotify
