"""
Test doubles and builders shared across the test suite.
"""
from typing import Dict, List, Optional

from book2epub.core.exceptions import FetchError
from book2epub.ebook.models import BookMetadata
from book2epub.ebook.sources import ChapterPage

BOOK_ID = "9781234567890"
BOOK_URL = f"https://learning.oreilly.com/library/view/test-book/{BOOK_ID}/"
ASSET_BASE = f"https://learning.oreilly.com/api/v2/epubs/urn:orm:book:{BOOK_ID}/files/"


class FakePageSource:
    """PageSource serving fixed listing pages and metadata."""

    def __init__(self, pages: List[List[dict]], metadata: Optional[BookMetadata] = None,
                 fail_on_page: Optional[int] = None):
        self.pages = pages
        self.metadata = metadata or BookMetadata(id=BOOK_ID, title="Test Book",
                                                 authors=["Author One"], web_url=BOOK_URL)
        self.fail_on_page = fail_on_page
        self.requested_pages = []

    def list_chapter_page(self, book_id: str, page: int) -> ChapterPage:
        self.requested_pages.append(page)
        if page == self.fail_on_page:
            raise FetchError(f"page-{page}", FetchError.NETWORK)
        if page > len(self.pages):
            return ChapterPage()
        return ChapterPage(records=self.pages[page - 1], has_next=page < len(self.pages))

    def get_metadata(self, book_id: str) -> BookMetadata:
        return self.metadata


class FakeFetcher:
    """Fetcher serving in-memory responses; unknown URLs raise NOT_FOUND."""

    def __init__(self, responses: Dict[str, bytes]):
        self.responses = responses
        self.requested = []

    def fetch(self, url: str) -> bytes:
        self.requested.append(url)
        if url not in self.responses:
            raise FetchError(url, FetchError.NOT_FOUND)
        return self.responses[url]

    def fetch_text(self, url: str) -> str:
        return self.fetch(url).decode("utf-8")


def content_url(filename: str) -> str:
    return f"https://learning.oreilly.com/api/v1/book/{BOOK_ID}/chapter-content/{filename}"


def make_record(filename: str, title: str, **extra) -> dict:
    """Build a chapter listing record the way the API returns it."""
    record = {
        "filename": filename,
        "title": title,
        "content": content_url(filename),
        "asset_base_url": ASSET_BASE,
        "stylesheets": [],
        "site_styles": [],
        "images": [],
    }
    record.update(extra)
    return record
