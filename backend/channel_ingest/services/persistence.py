"""Content repository: insert-or-update content items by natural key.

Re-ingesting an item with the same natural key updates its fields and
``updated_at`` but never changes ``id`` or ``created_at``.
"""

import logging
import uuid

from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import sessionmaker

from channel_ingest.errors import PersistenceConflictError
from channel_ingest.models.base import utcnow
from channel_ingest.models.contact import Contact
from channel_ingest.models.event import Event
from channel_ingest.models.photo import Photo
from channel_ingest.models.video import Video
from channel_ingest.schemas.content import (
    ContactItem,
    ContentItem,
    EventItem,
    PhotoItem,
    VideoItem,
)

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class ContentRepository:
    """Upserts normalized items. Each call runs in its own short-lived session."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def upsert(self, item: ContentItem, thumbnail_url: str | None = None) -> uuid.UUID:
        if isinstance(item, VideoItem):
            return self.upsert_video(item, thumbnail_url)
        if isinstance(item, PhotoItem):
            return self.upsert_photo(item, thumbnail_url)
        if isinstance(item, EventItem):
            return self.upsert_event(item, thumbnail_url)
        if isinstance(item, ContactItem):
            return self.upsert_contact(item)
        raise TypeError(f"Unsupported content item: {type(item).__name__}")

    def upsert_video(self, item: VideoItem, thumbnail_url: str | None) -> uuid.UUID:
        values = {
            "remote_id": item.remote_id,
            "source": item.source,
            "title": item.title or "Untitled",
            "description": item.description,
            "remote_url": item.remote_url,
            "thumbnail_url": thumbnail_url,
            "duration": item.duration,
            "published_at": item.published_at,
            "channel_handle": item.channel_handle,
            "raw_meta": item.raw_meta,
        }
        return self._upsert(
            Video,
            values,
            key=("remote_id", "source"),
            keep_when_null=("thumbnail_url", "description", "duration", "published_at"),
            create_only=("channel_handle",),
        )

    def upsert_photo(self, item: PhotoItem, thumbnail_url: str | None) -> uuid.UUID:
        values = {
            "remote_id": item.remote_id,
            "source": item.source,
            "remote_url": item.remote_url,
            "thumbnail_url": thumbnail_url,
            "caption": item.caption,
            "album_id": item.album_id,
            "published_at": item.published_at,
            "channel_handle": item.channel_handle,
            "raw_meta": item.raw_meta,
        }
        return self._upsert(
            Photo,
            values,
            key=("remote_id", "source"),
            keep_when_null=("thumbnail_url", "caption", "album_id", "published_at"),
            create_only=("channel_handle",),
        )

    def upsert_event(self, item: EventItem, thumbnail_url: str | None) -> uuid.UUID:
        values = {
            "remote_id": item.remote_id,
            "source": item.source,
            "title": item.title or "Untitled Event",
            "description": item.description,
            "location": item.location,
            "start_at": item.start_at,
            "end_at": item.end_at,
            "remote_url": item.remote_url,
            "thumbnail_url": thumbnail_url,
            "channel_handle": item.channel_handle,
            "raw_meta": item.raw_meta,
        }
        return self._upsert(
            Event,
            values,
            key=("remote_id", "source"),
            keep_when_null=("thumbnail_url", "description", "location", "start_at", "end_at"),
            create_only=("channel_handle",),
        )

    def upsert_contact(self, item: ContactItem) -> uuid.UUID:
        values = {
            "channel_handle": item.channel_handle,
            "source": item.source,
            "page_name": item.page_name,
            "phone": item.phone,
            "email": item.email,
            "website": item.website,
            "address": item.address,
            "raw_meta": item.raw_meta,
        }
        return self._upsert(
            Contact,
            values,
            key=("channel_handle", "source"),
            keep_when_null=("page_name", "phone", "email", "website", "address"),
        )

    def _upsert(self, model, values: dict, key: tuple, keep_when_null: tuple = (), create_only: tuple = ()) -> uuid.UUID:
        db = self._session_factory()
        try:
            insert = _DIALECT_INSERTS.get(db.get_bind().dialect.name)
            if insert is None:
                raise NotImplementedError(f"Upsert not supported on dialect {db.get_bind().dialect.name}")

            now = utcnow()
            table = model.__table__
            stmt = insert(table).values(id=uuid.uuid4(), created_at=now, updated_at=now, **values)

            updates = {}
            for column in values:
                if column in key or column in create_only:
                    continue
                if column in keep_when_null:
                    updates[column] = func.coalesce(stmt.excluded[column], table.c[column])
                else:
                    updates[column] = stmt.excluded[column]
            updates["updated_at"] = now

            stmt = stmt.on_conflict_do_update(index_elements=list(key), set_=updates).returning(table.c.id)
            row_id = db.execute(stmt).scalar_one()
            db.commit()
        except (IntegrityError, OperationalError) as e:
            db.rollback()
            natural_key = tuple(values[k] for k in key)
            raise PersistenceConflictError(f"Upsert into {table.name} failed for {natural_key}: {e}") from e
        finally:
            db.close()

        logger.debug(f"Upserted {table.name} {tuple(values[k] for k in key)} -> {row_id}")
        return row_id
