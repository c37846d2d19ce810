"""Video model, one row per remote video per platform."""

from sqlalchemy import Column, Date, Enum, Integer, String, Text, UniqueConstraint

from channel_ingest.models.base import Base, JSONType, TimestampMixin, UUIDMixin
from channel_ingest.models.enums import Source


class Video(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "videos"

    # Natural key
    remote_id = Column(String(255), nullable=False)
    source = Column(Enum(Source, name="source"), nullable=False, index=True)

    title = Column(Text, nullable=False)
    description = Column(Text)
    remote_url = Column(Text, nullable=False)
    thumbnail_url = Column(Text)  # content-addressed object URL
    duration = Column(Integer)  # seconds
    published_at = Column(Date, index=True)
    channel_handle = Column(String(500), nullable=False, index=True)

    raw_meta = Column(JSONType, default=dict)

    __table_args__ = (
        UniqueConstraint("remote_id", "source", name="uq_video_remote_source"),
    )
