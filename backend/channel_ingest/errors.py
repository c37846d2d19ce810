"""Exception types raised by the ingestion core."""


class IngestError(Exception):
    """Base class for all ingestion failures."""


class ToolInvocationError(IngestError):
    """The metadata extraction binary could not be launched or exited non-zero."""


class ToolResolutionError(IngestError):
    """No usable metadata extraction binary could be located or downloaded."""


class ParseError(IngestError):
    """A single line of tool output was not valid JSON."""


class AccessGatedError(IngestError):
    """The page exists but sits behind a login wall."""


class NavigationError(IngestError):
    """All navigation attempts to a URL failed."""


class UploadError(IngestError):
    """A thumbnail could not be downloaded or written to object storage."""


class PersistenceConflictError(IngestError):
    """The database rejected an upsert for a reason other than the natural key."""


class UnknownSourceError(IngestError):
    """No scraper is registered for the requested source."""


class InvalidRunTransition(IngestError):
    """A scrape run was moved along an edge the state machine does not allow.

    This signals a programming error, not a data fault.
    """

    def __init__(self, run_id, current, target):
        self.run_id = run_id
        self.current = current
        self.target = target
        super().__init__(f"Scrape run {run_id}: invalid transition {current} -> {target}")
