"""Contact model, one row per channel per platform."""

from sqlalchemy import Column, Enum, String, Text, UniqueConstraint

from channel_ingest.models.base import Base, JSONType, TimestampMixin, UUIDMixin
from channel_ingest.models.enums import Source


class Contact(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "contacts"

    # Natural key
    channel_handle = Column(String(500), nullable=False)
    source = Column(Enum(Source, name="source"), nullable=False, index=True)

    page_name = Column(String(500))
    phone = Column(String(100))
    email = Column(String(255))
    website = Column(Text)
    address = Column(Text)

    raw_meta = Column(JSONType, default=dict)

    __table_args__ = (
        UniqueConstraint("channel_handle", "source", name="uq_contact_channel_source"),
    )
