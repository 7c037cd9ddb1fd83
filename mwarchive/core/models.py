"""
Data types shared by the client, the persisters and the controller.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Optional


TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def utc_now() -> str:
    """Current UTC time in a sortable RFC 3339 form."""
    return datetime.now(timezone.utc).strftime(TIMESTAMP_FORMAT)


@dataclass(frozen=True)
class PageRef:
    page_id: int
    title: str
    namespace: int


@dataclass(frozen=True)
class ContinuationCursor:
    continue_token: str
    apcontinue: str


@dataclass(frozen=True)
class PageContent:
    page_id: int
    namespace: int
    title: str
    text: str
    rev_id: int = 0
    parent_id: int = 0
    timestamp: Optional[str] = None
    sha1: Optional[str] = None
    size: int = 0
    content_model: Optional[str] = None
    content_format: Optional[str] = None
    retrieved_at: Optional[str] = None

    def stamped(self, retrieved_at: Optional[str] = None) -> "PageContent":
        """Return a copy with retrieved_at set (defaults to now, UTC)."""
        return replace(self, retrieved_at=retrieved_at or utc_now())
