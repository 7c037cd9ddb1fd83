"""
Persister interface shared by the storage backends.
"""

from abc import ABC, abstractmethod

from .models import PageContent, PageRef


class Persister(ABC):
    """
    Writes fetched pages to durable storage.

    Implementations must be safe to re-run for the same page: either by
    overwriting by key, or by skipping pages already stored
    (``skips_existing``).
    """

    #: True when an existing record is never rewritten. The controller then
    #: checks ``exists`` before fetching.
    skips_existing = False

    @abstractmethod
    def persist(self, namespace: int, ref: PageRef, content: PageContent) -> bool:
        """
        Store one page.

        Returns:
            True if the page was written, False if it was skipped

        Raises:
            StorageError: The write failed
        """

    def exists(self, namespace: int, ref: PageRef) -> bool:
        return False

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
