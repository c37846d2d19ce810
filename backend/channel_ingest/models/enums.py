"""Enumerations shared by models, scrapers and tasks."""

import enum


class Source(str, enum.Enum):
    YOUTUBE = "YOUTUBE"
    FACEBOOK = "FACEBOOK"


class ScrapeStatus(str, enum.Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (ScrapeStatus.SUCCESS, ScrapeStatus.FAILED)


class Trigger(str, enum.Enum):
    MANUAL = "MANUAL"
    SCHEDULED = "SCHEDULED"


class ContentType(str, enum.Enum):
    VIDEOS = "videos"
    PHOTOS = "photos"
    EVENTS = "events"
    CONTACTS = "contacts"


ALL_CONTENT_TYPES = (
    ContentType.VIDEOS,
    ContentType.PHOTOS,
    ContentType.EVENTS,
    ContentType.CONTACTS,
)

# Legal status edges. Terminal states have no outgoing edges.
RUN_TRANSITIONS: dict[ScrapeStatus, frozenset[ScrapeStatus]] = {
    ScrapeStatus.PENDING: frozenset({ScrapeStatus.RUNNING}),
    ScrapeStatus.RUNNING: frozenset({ScrapeStatus.SUCCESS, ScrapeStatus.FAILED}),
    ScrapeStatus.SUCCESS: frozenset(),
    ScrapeStatus.FAILED: frozenset(),
}


def can_transition(current: ScrapeStatus, target: ScrapeStatus) -> bool:
    return target in RUN_TRANSITIONS[current]
