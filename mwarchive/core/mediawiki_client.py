"""
MediaWiki API Client

This module handles communication with a MediaWiki action API: enumerating
every page of a namespace through the continuation protocol, and fetching the
latest revision of a single page.
"""

import requests
import time
from typing import Any, Dict, List, Optional
import logging

from .errors import ApiError, DecodeError, NetworkError, NotFoundError, ServerError
from .models import ContinuationCursor, PageContent, PageRef
from mwarchive.utils.rate_limiter import TokenBucket


class MediaWikiClient:
    """
    Client for the MediaWiki action API (api.php).

    One HTTP session is shared by every call. Each request carries an explicit
    timeout; transport failures and 429/5xx answers are retried with
    exponential backoff before giving up.
    """

    RETRY_STATUS_CODES = (429, 500, 502, 503, 504)

    def __init__(self,
                 api_url: str,
                 user_agent: Optional[str] = None,
                 timeout: float = 30.0,
                 max_retries: int = 3,
                 retry_delay: float = 1.0,
                 rate_limiter: Optional[TokenBucket] = None,
                 session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            api_url: Full URL of the wiki's api.php endpoint
            user_agent: Optional User-Agent header identifying the archiver
            timeout: Per-request timeout in seconds
            max_retries: Retry attempts for transient failures
            retry_delay: Base delay in seconds for exponential backoff
            rate_limiter: Optional pacing shared by all requests
            session: Pre-built session (mainly for tests)
        """
        self.api_url = api_url
        self.timeout = timeout
        self.max_retries = max(0, max_retries)
        self.retry_delay = retry_delay
        self.rate_limiter = rate_limiter
        self.logger = logging.getLogger(__name__)
        self.session = session if session is not None else requests.Session()
        if user_agent:
            self.session.headers.update({'User-Agent': user_agent})

    @classmethod
    def from_config(cls, config) -> "MediaWikiClient":
        return cls(
            config.api_url,
            user_agent=config.user_agent,
            timeout=config.timeout,
            max_retries=config.max_retries,
            retry_delay=config.retry_delay,
            rate_limiter=TokenBucket.from_interval(config.request_delay),
        )

    def list_pages(self, namespace: int, limit: int = 0) -> List[PageRef]:
        """
        Enumerate the pages of a namespace.

        Requests are issued until the API stops returning a continuation
        cursor, or until at least `limit` pages have been collected. The
        result may overshoot `limit` by up to one batch; callers needing an
        exact cap must truncate.

        Args:
            namespace: Namespace ID to list
            limit: Stop once this many pages are collected (<= 0 = no limit)

        Returns:
            PageRefs in API order

        Raises:
            NetworkError, ServerError, DecodeError
        """
        params: Dict[str, Any] = {
            'action': 'query',
            'format': 'json',
            'list': 'allpages',
            'apnamespace': namespace,
            'aplimit': 'max',
        }

        pages: List[PageRef] = []
        cursor: Optional[ContinuationCursor] = None
        while True:
            self.logger.info(f"Listing pages: namespace={namespace} cursor={cursor}")
            request_params = dict(params)
            if cursor:
                request_params['continue'] = cursor.continue_token
                request_params['apcontinue'] = cursor.apcontinue

            data = self._get(request_params)
            pages.extend(self._parse_allpages(data, namespace))
            cursor = self._parse_continuation(data)

            if cursor is None:
                break
            if limit > 0 and len(pages) >= limit:
                break

        self.logger.info(f"Listed {len(pages)} pages: namespace={namespace}")
        return pages

    def fetch_latest_revision(self, title: str) -> PageContent:
        """
        Fetch the latest revision of a page by exact title.

        Args:
            title: Page title, sent as-is

        Returns:
            PageContent for the first returned page that has a revision

        Raises:
            NotFoundError: No page, or no page with a revision
            NetworkError, ServerError, DecodeError
        """
        self.logger.info(f"Getting page: title={title!r}")

        params = {
            'action': 'query',
            'format': 'json',
            'titles': title,
            'prop': 'revisions',
            'rvlimit': 1,
            'rvprop': 'content|ids|timestamp|size|sha1',
            'rvslots': '*',
        }
        data = self._get(params)

        query = data.get('query') or {}
        if not isinstance(query, dict):
            raise DecodeError(f"unexpected 'query' value for title {title!r}")
        pages = query.get('pages') or {}
        if isinstance(pages, dict):
            entries = list(pages.values())
        elif isinstance(pages, list):
            entries = pages
        else:
            raise DecodeError(f"unexpected 'pages' value for title {title!r}")

        if not entries:
            raise NotFoundError(title, "no pages returned")

        for page in entries:
            if not isinstance(page, dict):
                raise DecodeError(f"unexpected page entry for title {title!r}")
            revisions = page.get('revisions') or []
            if revisions:
                return self._parse_page(page, revisions[0], title)

        raise NotFoundError(title, "no revisions")

    def _get(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Make a GET request against the API and decode the JSON body.

        Args:
            params: Query parameters

        Returns:
            Decoded JSON object

        Raises:
            NetworkError: Transport failure after all retries
            ServerError: Non-2xx status (after retries for transient codes)
            ApiError: MediaWiki error payload
            DecodeError: Body is not a JSON object
        """
        last_error: Optional[Exception] = None

        for attempt in range(self.max_retries + 1):
            if attempt > 0:
                delay = self.retry_delay * (2 ** (attempt - 1))  # Exponential backoff
                self.logger.info(f"Retry {attempt} after {delay:.1f}s delay")
                time.sleep(delay)

            if self.rate_limiter:
                self.rate_limiter.acquire()

            self.logger.debug(f"Making API request with params: {params}")
            try:
                response = self.session.get(self.api_url, params=params, timeout=self.timeout)
            except requests.RequestException as e:
                self.logger.warning(f"Request error (attempt {attempt + 1}): {e}")
                last_error = NetworkError(str(e))
                continue

            status = response.status_code
            if not 200 <= status < 300:
                error = ServerError(status, response.text)
                if status in self.RETRY_STATUS_CODES:
                    self.logger.warning(f"HTTP error {status} (attempt {attempt + 1})")
                    last_error = error
                    continue
                raise error

            try:
                data = response.json()
            except ValueError as e:
                raise DecodeError(f"malformed JSON response: {e}") from e

            if not isinstance(data, dict):
                raise DecodeError(f"expected a JSON object, got {type(data).__name__}")
            if 'error' in data:
                err = data['error'] if isinstance(data['error'], dict) else {}
                raise ApiError(str(err.get('code', 'unknown')), str(err.get('info', '')), status)
            return data

        self.logger.error(f"Giving up after {self.max_retries + 1} attempts: {last_error}")
        raise last_error

    def _parse_allpages(self, data: Dict[str, Any], namespace: int) -> List[PageRef]:
        query = data.get('query') or {}
        items = query.get('allpages', []) if isinstance(query, dict) else None
        if not isinstance(items, list):
            raise DecodeError("unexpected 'allpages' value in list response")

        refs = []
        for item in items:
            try:
                refs.append(PageRef(
                    page_id=int(item['pageid']),
                    title=str(item['title']),
                    namespace=int(item.get('ns', namespace)),
                ))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                raise DecodeError(f"malformed allpages entry {item!r}: {e}") from e
        return refs

    def _parse_continuation(self, data: Dict[str, Any]) -> Optional[ContinuationCursor]:
        """
        Extract the continuation cursor.

        Returns None when enumeration is complete: no 'continue' object, or an
        empty primary token.
        """
        cont = data.get('continue')
        if not cont:
            return None
        if not isinstance(cont, dict):
            raise DecodeError(f"unexpected 'continue' value: {cont!r}")

        token = cont.get('continue') or ''
        if not token:
            return None
        apcontinue = cont.get('apcontinue') or ''
        if not apcontinue:
            raise DecodeError(f"continuation without apcontinue token: {cont!r}")
        return ContinuationCursor(continue_token=str(token), apcontinue=str(apcontinue))

    def _parse_page(self, page: Dict[str, Any], revision: Dict[str, Any], title: str) -> PageContent:
        try:
            main = revision['slots']['main']
            return PageContent(
                page_id=int(page['pageid']),
                namespace=int(page.get('ns', 0)),
                title=str(page.get('title', title)),
                text=main.get('*', ''),
                rev_id=int(revision.get('revid', 0)),
                parent_id=int(revision.get('parentid', 0)),
                timestamp=revision.get('timestamp'),
                sha1=revision.get('sha1'),
                size=int(revision.get('size', 0)),
                content_model=main.get('contentmodel'),
                content_format=main.get('contentformat'),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise DecodeError(f"malformed revision for title {title!r}: {e}") from e

    def close(self):
        """Close the HTTP session."""
        self.session.close()
