"""Error types raised while talking to the Bitbucket API."""

from __future__ import annotations


class BitbucketError(RuntimeError):
    """Base class for collector failures."""


class ConfigurationError(BitbucketError):
    """Raised when a gather cycle is started with unusable settings."""


class BitbucketAPIError(BitbucketError):
    def __init__(self, message: str, *, status: int, url: str) -> None:
        super().__init__(message)
        self.status = status
        self.url = url


class PageParseError(BitbucketError):
    """A response body could not be read as a page of values."""

    def __init__(self, message: str, *, url: str) -> None:
        super().__init__(message)
        self.url = url


class RecordParseError(BitbucketError):
    """A raw record did not match the expected model."""


class EntityFetchError(BitbucketError):
    """Fetching pull requests for a single member or repository failed."""

    def __init__(self, entity_id: str, cause: Exception) -> None:
        super().__init__(f"Fetching pull requests for {entity_id} failed: {cause}")
        self.entity_id = entity_id
        self.cause = cause
