"""Event model."""

from sqlalchemy import Column, DateTime, Enum, String, Text, UniqueConstraint

from channel_ingest.models.base import Base, JSONType, TimestampMixin, UUIDMixin
from channel_ingest.models.enums import Source


class Event(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "events"

    remote_id = Column(String(255), nullable=False)
    source = Column(Enum(Source, name="source"), nullable=False, index=True)

    title = Column(Text, nullable=False)
    description = Column(Text)
    location = Column(String(500))
    start_at = Column(DateTime(timezone=True), index=True)
    end_at = Column(DateTime(timezone=True))
    remote_url = Column(Text, nullable=False)
    thumbnail_url = Column(Text)
    channel_handle = Column(String(500), nullable=False, index=True)

    raw_meta = Column(JSONType, default=dict)

    __table_args__ = (
        UniqueConstraint("remote_id", "source", name="uq_event_remote_source"),
    )
