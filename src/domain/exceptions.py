"""Custom exception hierarchy for the engagement engine.

Expected business outcomes (not found, permission denied, already voted)
are returned as ``Err`` values, see ``src.domain.result``. Exceptions are
reserved for unexpected failures the caller has to log or retry.
"""


class EngineError(Exception):
    """Base exception for all engine errors."""

    pass


class RetryableError(EngineError):
    """Errors that can be retried (storage hiccups, temporary failures)."""

    pass


class RepositoryError(RetryableError):
    """Storage errors raised by repository implementations."""

    pass


class DuplicateRecordError(RepositoryError):
    """A write violated a uniqueness constraint of the store."""

    def __init__(self, entity: str, key: str) -> None:
        """Initialize with the entity name and offending key."""
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} already exists: {key}")
