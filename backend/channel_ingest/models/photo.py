"""Photo model."""

from sqlalchemy import Column, Date, Enum, String, Text, UniqueConstraint

from channel_ingest.models.base import Base, JSONType, TimestampMixin, UUIDMixin
from channel_ingest.models.enums import Source


class Photo(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "photos"

    remote_id = Column(String(255), nullable=False)
    source = Column(Enum(Source, name="source"), nullable=False, index=True)

    remote_url = Column(Text, nullable=False)
    thumbnail_url = Column(Text)
    caption = Column(Text)
    album_id = Column(String(255))
    published_at = Column(Date)
    channel_handle = Column(String(500), nullable=False, index=True)

    raw_meta = Column(JSONType, default=dict)

    __table_args__ = (
        UniqueConstraint("remote_id", "source", name="uq_photo_remote_source"),
    )
