"""
Error Types

Every failure raised by the archiver derives from ArchiveError so the
controller can tell per-page failures apart from programming errors.
"""

from typing import Optional


class ArchiveError(Exception):
    """Base class for all archiver errors."""


class NetworkError(ArchiveError):
    """Transport-level failure (connection refused, timeout, reset)."""


class ServerError(ArchiveError):
    """The API answered with a non-2xx HTTP status."""

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"unexpected status code: {status_code}, {body}")


class ApiError(ServerError):
    """The API answered 2xx but the payload carries a MediaWiki error object."""

    def __init__(self, code: str, info: str = "", status_code: int = 200):
        super().__init__(status_code, info)
        self.code = code
        self.info = info
        self.args = (f"API error {code}: {info}",)


class DecodeError(ArchiveError):
    """The response body is not valid JSON or not shaped as expected."""


class NotFoundError(ArchiveError):
    """The requested title resolves to no page, or to a page with no revision."""

    def __init__(self, title: str, reason: Optional[str] = None):
        self.title = title
        message = f"no revision found for title: {title}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class StorageError(ArchiveError):
    """Writing to the database or the file system failed."""


class ConfigError(ArchiveError):
    """Configuration could not be resolved."""
