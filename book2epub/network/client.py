"""
API Client Module
requests-based implementations of the Fetcher and PageSource interfaces
for the O'Reilly learning platform API.

Authentication is not handled here: pass a requests.Session that already
carries the account's cookies.
"""

import json
import logging
from typing import Any, Optional

import requests

from book2epub.conf import api_base_url, request_timeout, user_agent
from book2epub.core.exceptions import AcquisitionFailure, FetchError
from book2epub.ebook.models import BookMetadata
from book2epub.ebook.sources import ChapterPage
from book2epub.file.utils import is_absolute_url, resolve_url

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
    'User-Agent': user_agent,
}


class HttpFetcher:
    """
    Fetches URLs with a shared requests.Session.

    Relative URLs are resolved against ``base_url``. Redirects are followed
    by requests itself; no retries are made.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        base_url: str = api_base_url,
        timeout: int = request_timeout
    ):
        if session is None:
            session = requests.Session()
            session.headers.update(DEFAULT_HEADERS)
        self.session = session
        self.base_url = base_url
        self.timeout = timeout

    def _get(self, url: str) -> requests.Response:
        # An empty reference would resolve to base_url itself
        if not url or not url.strip():
            raise FetchError(url, FetchError.NOT_FOUND, "Empty URL")
        if not is_absolute_url(url):
            url = resolve_url(self.base_url, url)

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise FetchError(url, FetchError.NETWORK, f"Request to {url} failed: {e}") from e

        if response.status_code == 404:
            raise FetchError(url, FetchError.NOT_FOUND)
        if response.status_code in (401, 403):
            raise FetchError(url, FetchError.FORBIDDEN)
        if not response.ok:
            raise FetchError(url, FetchError.NETWORK, f"HTTP {response.status_code} for {url}")

        logger.debug(f"GET {url} -> {response.status_code}")
        return response

    def fetch(self, url: str) -> bytes:
        """Return the response body of ``url`` as bytes."""
        return self._get(url).content

    def fetch_text(self, url: str) -> str:
        """Return the response body of ``url`` decoded as text."""
        return self._get(url).text


class ApiPageSource:
    """
    Reads the chapter listing and book info endpoints.

    Args:
        fetcher: Fetcher used for the API calls
        base_url: API host
    """

    def __init__(self, fetcher, base_url: str = api_base_url):
        self.fetcher = fetcher
        self.base_url = base_url

    def _get_json(self, path: str) -> Any:
        url = resolve_url(self.base_url, path)
        try:
            return json.loads(self.fetcher.fetch_text(url))
        except FetchError as e:
            raise AcquisitionFailure(f"API: unable to retrieve {url}: {e}") from e
        except ValueError as e:
            raise AcquisitionFailure(f"API: invalid JSON from {url}: {e}") from e

    def list_chapter_page(self, book_id: str, page: int) -> ChapterPage:
        """
        Return one page of the chapter listing.

        A payload that is not an object, or has no 'results' array, is
        treated as an empty last page.
        """
        payload = self._get_json(f"/api/v1/book/{book_id}/chapter/?page={page}")
        if not isinstance(payload, dict) or not isinstance(payload.get('results'), list):
            return ChapterPage()

        records = [r for r in payload['results'] if isinstance(r, dict)]
        return ChapterPage(records=records, has_next=payload.get('next') is not None)

    def get_metadata(self, book_id: str) -> BookMetadata:
        """Return the book's metadata from the book info endpoint."""
        payload = self._get_json(f"/api/v1/book/{book_id}/")
        if not isinstance(payload, dict):
            raise AcquisitionFailure(f"API: unexpected response for book info of {book_id}")
        return BookMetadata.from_book_info(payload, book_id)
