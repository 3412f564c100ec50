"""
Database abstraction for users and the media catalog, with a SQLAlchemy
implementation and an in-memory test implementation.
"""

from __future__ import annotations

import copy
import enum
import threading
import time
import uuid
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, Optional, Protocol

from sqlalchemy import (
    JSON,
    Column,
    Float,
    Integer,
    String,
    UniqueConstraint,
    create_engine,
    select,
)
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker


class MediaKind(str, enum.Enum):
    VIDEO = "video"
    IMAGE = "image"


# User attribute holding the favorites list for each catalog kind.
FAVORITE_FIELDS = {
    MediaKind.VIDEO: "fav_videos",
    MediaKind.IMAGE: "fav_meditations",
}


class DuplicateEmailError(Exception):
    """Raised when a signup collides with an existing email."""


@dataclass
class UserRecord:
    email: str
    name: str = ""
    surname: str = ""
    # Only populated when explicitly requested; never serialised.
    password_hash: Optional[str] = field(default=None, repr=False)
    user_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    fav_videos: list[str] = field(default_factory=list)
    fav_meditations: list[str] = field(default_factory=list)
    reminder: Optional[dict] = None
    created_at: float = field(default_factory=lambda: time.time())

    def favorites(self, kind: MediaKind) -> list[str]:
        return getattr(self, FAVORITE_FIELDS[kind])

    def as_dict(self) -> dict:
        return {
            "_id": self.user_id,
            "email": self.email,
            "name": self.name,
            "surname": self.surname,
            "favVideos": list(self.fav_videos),
            "favMeditations": list(self.fav_meditations),
            "reminder": self.reminder,
        }


@dataclass
class MediaRecord:
    kind: MediaKind
    category: str
    level: str
    filename: str
    filesize: Optional[int] = None
    description: str = ""
    thumbnail: Optional[str] = None
    media_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def as_dict(self) -> dict:
        payload = {
            "_id": self.media_id,
            "category": self.category,
            "level": self.level,
            "description": self.description,
            "filename": self.filename,
            "filesize": self.filesize,
        }
        if self.kind == MediaKind.VIDEO:
            payload["thumbnail"] = self.thumbnail
        return payload


@dataclass(frozen=True)
class CatalogFilter:
    """Conjunctive catalog filter; a ``None`` dimension matches everything."""

    level: Optional[str] = None
    category: Optional[str] = None
    ids: Optional[tuple[str, ...]] = None

    def matches(self, record: MediaRecord) -> bool:
        if self.level is not None and record.level != self.level:
            return False
        if self.category is not None and record.category != self.category:
            return False
        if self.ids is not None and record.media_id not in self.ids:
            return False
        return True


class DbClient(Protocol):
    """Interface for database access."""

    def create_user(self, user: UserRecord) -> UserRecord:
        ...

    def get_user(
        self, email: str, *, with_password: bool = False
    ) -> Optional[UserRecord]:
        ...

    def toggle_favorite(
        self, email: str, kind: MediaKind, media_id: str
    ) -> Optional[UserRecord]:
        ...

    def set_reminder(self, email: str, reminder: dict) -> Optional[UserRecord]:
        ...

    def save_media(self, record: MediaRecord) -> None:
        ...

    def get_media(self, kind: MediaKind, media_id: str) -> Optional[MediaRecord]:
        ...

    def find_media_by_filename(
        self, kind: MediaKind, filename: str
    ) -> Optional[MediaRecord]:
        ...

    def find_video_by_thumbnail(self, thumbnail: str) -> Optional[MediaRecord]:
        ...

    def list_media(
        self, kind: MediaKind, filters: CatalogFilter = CatalogFilter()
    ) -> list[MediaRecord]:
        ...

    def close(self) -> None:
        ...


def _toggled(current: Iterable[str], media_id: str) -> list[str]:
    items = list(current)
    if media_id in items:
        return [item for item in items if item != media_id]
    items.append(media_id)
    return items


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.users: Dict[str, UserRecord] = {}
        self.media: Dict[tuple[MediaKind, str], MediaRecord] = {}
        self._lock = threading.Lock()

    def _public(self, user: UserRecord, with_password: bool = False) -> UserRecord:
        clone = copy.deepcopy(user)
        if not with_password:
            clone.password_hash = None
        return clone

    def create_user(self, user: UserRecord) -> UserRecord:
        with self._lock:
            if user.email in self.users:
                raise DuplicateEmailError(user.email)
            self.users[user.email] = copy.deepcopy(user)
            return self._public(user)

    def get_user(
        self, email: str, *, with_password: bool = False
    ) -> Optional[UserRecord]:
        with self._lock:
            user = self.users.get(email)
            if not user:
                return None
            return self._public(user, with_password)

    def toggle_favorite(
        self, email: str, kind: MediaKind, media_id: str
    ) -> Optional[UserRecord]:
        with self._lock:
            user = self.users.get(email)
            if not user:
                return None
            attr = FAVORITE_FIELDS[kind]
            setattr(user, attr, _toggled(getattr(user, attr), media_id))
            return self._public(user)

    def set_reminder(self, email: str, reminder: dict) -> Optional[UserRecord]:
        with self._lock:
            user = self.users.get(email)
            if not user:
                return None
            user.reminder = dict(reminder)
            return self._public(user)

    def save_media(self, record: MediaRecord) -> None:
        with self._lock:
            self.media[(record.kind, record.media_id)] = replace(record)

    def get_media(self, kind: MediaKind, media_id: str) -> Optional[MediaRecord]:
        with self._lock:
            record = self.media.get((kind, media_id))
            return replace(record) if record else None

    def _snapshot(self) -> list[MediaRecord]:
        with self._lock:
            return list(self.media.values())

    def find_media_by_filename(
        self, kind: MediaKind, filename: str
    ) -> Optional[MediaRecord]:
        for record in self._snapshot():
            if record.kind == kind and record.filename == filename:
                return replace(record)
        return None

    def find_video_by_thumbnail(self, thumbnail: str) -> Optional[MediaRecord]:
        for record in self._snapshot():
            if record.kind == MediaKind.VIDEO and record.thumbnail == thumbnail:
                return replace(record)
        return None

    def list_media(
        self, kind: MediaKind, filters: CatalogFilter = CatalogFilter()
    ) -> list[MediaRecord]:
        return [
            replace(record)
            for record in self._snapshot()
            if record.kind == kind and filters.matches(record)
        ]

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            self.users.clear()
            self.media.clear()

    def close(self) -> None:
        return None


class SqlDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def _to_user_record(
        self, row: "UserRow", with_password: bool = False
    ) -> UserRecord:
        return UserRecord(
            user_id=row.id,
            email=row.email,
            name=row.name,
            surname=row.surname,
            password_hash=row.password_hash if with_password else None,
            fav_videos=list(row.fav_videos or []),
            fav_meditations=list(row.fav_meditations or []),
            reminder=row.reminder,
            created_at=row.created_at,
        )

    def _to_media_record(self, row: "MediaRow") -> MediaRecord:
        return MediaRecord(
            media_id=row.id,
            kind=MediaKind(row.kind),
            category=row.category,
            level=row.level,
            description=row.description or "",
            filename=row.filename,
            thumbnail=row.thumbnail,
            filesize=row.filesize,
        )

    def _locked_user(self, session: Session, email: str) -> Optional["UserRow"]:
        stmt = select(UserRow).where(UserRow.email == email).with_for_update()
        return session.execute(stmt).scalar_one_or_none()

    def create_user(self, user: UserRecord) -> UserRecord:
        with self.Session() as session:
            row = UserRow(
                id=user.user_id,
                email=user.email,
                name=user.name,
                surname=user.surname,
                password_hash=user.password_hash,
                fav_videos=list(user.fav_videos),
                fav_meditations=list(user.fav_meditations),
                reminder=user.reminder,
                created_at=user.created_at,
            )
            session.add(row)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateEmailError(user.email) from exc
            return self._to_user_record(row)

    def get_user(
        self, email: str, *, with_password: bool = False
    ) -> Optional[UserRecord]:
        with self.Session() as session:
            stmt = select(UserRow).where(UserRow.email == email)
            row = session.execute(stmt).scalar_one_or_none()
            if not row:
                return None
            return self._to_user_record(row, with_password)

    def toggle_favorite(
        self, email: str, kind: MediaKind, media_id: str
    ) -> Optional[UserRecord]:
        attr = FAVORITE_FIELDS[kind]
        with self.Session() as session:
            row = self._locked_user(session, email)
            if not row:
                return None
            # Reassign rather than mutate so the JSON column is flagged dirty.
            setattr(row, attr, _toggled(getattr(row, attr) or [], media_id))
            session.commit()
            return self._to_user_record(row)

    def set_reminder(self, email: str, reminder: dict) -> Optional[UserRecord]:
        with self.Session() as session:
            row = self._locked_user(session, email)
            if not row:
                return None
            row.reminder = dict(reminder)
            session.commit()
            return self._to_user_record(row)

    def save_media(self, record: MediaRecord) -> None:
        with self.Session() as session:
            existing = session.get(MediaRow, record.media_id)
            if existing:
                existing.kind = record.kind.value
                existing.category = record.category
                existing.level = record.level
                existing.description = record.description
                existing.filename = record.filename
                existing.thumbnail = record.thumbnail
                existing.filesize = record.filesize
            else:
                session.add(
                    MediaRow(
                        id=record.media_id,
                        kind=record.kind.value,
                        category=record.category,
                        level=record.level,
                        description=record.description,
                        filename=record.filename,
                        thumbnail=record.thumbnail,
                        filesize=record.filesize,
                    )
                )
            session.commit()

    def get_media(self, kind: MediaKind, media_id: str) -> Optional[MediaRecord]:
        with self.Session() as session:
            row = session.get(MediaRow, media_id)
            if not row or row.kind != kind.value:
                return None
            return self._to_media_record(row)

    def find_media_by_filename(
        self, kind: MediaKind, filename: str
    ) -> Optional[MediaRecord]:
        with self.Session() as session:
            stmt = select(MediaRow).where(
                MediaRow.kind == kind.value, MediaRow.filename == filename
            )
            row = session.execute(stmt).scalar_one_or_none()
            return self._to_media_record(row) if row else None

    def find_video_by_thumbnail(self, thumbnail: str) -> Optional[MediaRecord]:
        with self.Session() as session:
            stmt = (
                select(MediaRow)
                .where(
                    MediaRow.kind == MediaKind.VIDEO.value,
                    MediaRow.thumbnail == thumbnail,
                )
                .limit(1)
            )
            row = session.execute(stmt).scalar_one_or_none()
            return self._to_media_record(row) if row else None

    def list_media(
        self, kind: MediaKind, filters: CatalogFilter = CatalogFilter()
    ) -> list[MediaRecord]:
        stmt = select(MediaRow).where(MediaRow.kind == kind.value)
        if filters.level is not None:
            stmt = stmt.where(MediaRow.level == filters.level)
        if filters.category is not None:
            stmt = stmt.where(MediaRow.category == filters.category)
        if filters.ids is not None:
            stmt = stmt.where(MediaRow.id.in_(list(filters.ids)))
        with self.Session() as session:
            rows = session.execute(stmt).scalars().all()
            return [self._to_media_record(row) for row in rows]

    def close(self) -> None:
        self.engine.dispose()


Base = declarative_base()


class UserRow(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    email = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=False, default="")
    surname = Column(String, nullable=False, default="")
    password_hash = Column(String, nullable=False)
    fav_videos = Column(JSON, nullable=False, default=list)
    fav_meditations = Column(JSON, nullable=False, default=list)
    reminder = Column(JSON, nullable=True)
    created_at = Column(Float, nullable=False)


class MediaRow(Base):
    __tablename__ = "media"
    __table_args__ = (UniqueConstraint("kind", "filename", name="uq_media_kind_filename"),)

    id = Column(String, primary_key=True)
    kind = Column(String, nullable=False, index=True)
    category = Column(String, nullable=False, index=True)
    level = Column(String, nullable=False, index=True)
    description = Column(String, nullable=False, default="")
    filename = Column(String, nullable=False)
    thumbnail = Column(String, nullable=True, index=True)
    filesize = Column(Integer, nullable=True)
