"""
Archive Orchestrator: enumerates each configured namespace, then fetches and
stores every page, one at a time.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from .errors import ArchiveError
from .logger import ErrorTracker
from .mediawiki_client import MediaWikiClient
from .models import PageRef
from .persister import Persister
from mwarchive.config import ArchiveConfig


ARCHIVED = "archived"
SKIPPED = "skipped"
FAILED = "failed"


class ArchiveController:
    def __init__(self,
                 config: ArchiveConfig,
                 client: MediaWikiClient,
                 persister: Persister,
                 error_tracker: Optional[ErrorTracker] = None,
                 logger: Optional[logging.Logger] = None):
        self.config = config
        self.client = client
        self.persister = persister
        self.logger = logger or logging.getLogger(__name__)
        self.errors = error_tracker or ErrorTracker(self.logger)

    def run(self) -> Dict[int, Dict[str, int]]:
        """
        Archive every configured namespace in order.

        Returns:
            Per-namespace stats

        Raises:
            ArchiveError: Enumeration of a namespace failed
        """
        results: Dict[int, Dict[str, int]] = {}
        for namespace in self.config.namespaces:
            self.logger.info(f"Archiving namespace: namespace={namespace}")
            results[namespace] = self.archive_namespace(namespace, self.config.limit)
        return results

    def archive_namespace(self, namespace: int, limit: int) -> Dict[str, int]:
        """
        Archive up to `limit` pages of one namespace (<= 0 = all pages).

        A failure while listing pages propagates; a failure on a single page
        is recorded and the next page is processed.
        """
        stats = {"listed": 0, ARCHIVED: 0, SKIPPED: 0, FAILED: 0}

        pages: List[PageRef] = self.client.list_pages(namespace, limit)
        # The listing may overshoot by up to one batch
        if limit > 0 and len(pages) > limit:
            pages = pages[:limit]
        stats["listed"] = len(pages)

        for ref in pages:
            stats[self.archive_page(namespace, ref)] += 1

        self.logger.info(
            f"Namespace done: namespace={namespace} listed={stats['listed']} "
            f"archived={stats[ARCHIVED]} skipped={stats[SKIPPED]} failed={stats[FAILED]}"
        )
        return stats

    def archive_page(self, namespace: int, ref: PageRef) -> str:
        """Fetch and store one page. Returns "archived", "skipped" or "failed"."""
        self.logger.info(f"Archiving page: namespace={namespace} page_id={ref.page_id} title={ref.title!r}")
        try:
            # Write-once stores never rewrite, so skip the fetch entirely
            if self.persister.skips_existing and self.persister.exists(namespace, ref):
                self.logger.info(f"Already archived, skipping: page_id={ref.page_id} title={ref.title!r}")
                return SKIPPED

            content = self.client.fetch_latest_revision(ref.title)
            written = self.persister.persist(namespace, ref, content)
        except ArchiveError as e:
            self.errors.log_error(e, context=f"archive namespace={namespace}",
                                  page_id=ref.page_id, title=ref.title)
            return FAILED

        return ARCHIVED if written else SKIPPED
