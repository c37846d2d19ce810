"""Base database configuration and mixins."""

import uuid
from datetime import datetime, timezone
from functools import lru_cache

from sqlalchemy import JSON, Column, DateTime, Uuid, create_engine
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, declared_attr, sessionmaker

from channel_ingest.config import get_settings

# JSONB on Postgres, plain JSON on SQLite and friends
JSONType = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _engine_options(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        return {}
    return {"pool_size": 5, "max_overflow": 10, "pool_timeout": 30, "pool_pre_ping": True}


def make_engine(database_url: str, echo: bool = False) -> Engine:
    return create_engine(database_url, echo=echo, **_engine_options(database_url))


@lru_cache
def get_sync_engine() -> Engine:
    settings = get_settings()
    return make_engine(settings.database_url, echo=settings.debug)


@lru_cache
def get_session_factory() -> sessionmaker:
    return sessionmaker(bind=get_sync_engine(), autocommit=False, autoflush=False)


def init_db(engine: Engine | None = None) -> None:
    """Create all tables. Importing the model modules registers them on Base."""
    import channel_ingest.models  # noqa: F401

    Base.metadata.create_all(engine or get_sync_engine())


class Base(DeclarativeBase):
    @declared_attr
    def __tablename__(cls) -> str:
        return cls.__name__.lower() + "s"


class TimestampMixin:
    created_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )


class UUIDMixin:
    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
