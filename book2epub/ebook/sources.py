"""
Collaborator Interfaces Module
Defines what the pipeline needs from the outside world: a way to fetch
bytes and a paginated source of chapter records and book metadata.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol

from .models import BookMetadata


@dataclass
class ChapterPage:
    """
    One page of the chapter listing.
    """
    records: List[Dict[str, Any]] = field(default_factory=list)
    has_next: bool = False


class Fetcher(Protocol):
    def fetch(self, url: str) -> bytes:
        """Return the body at ``url`` or raise FetchError."""
        ...

    def fetch_text(self, url: str) -> str:
        """Return the body at ``url`` decoded as text or raise FetchError."""
        ...


class PageSource(Protocol):
    def list_chapter_page(self, book_id: str, page: int) -> ChapterPage:
        """Return page ``page`` (1-based) of the chapter listing."""
        ...

    def get_metadata(self, book_id: str) -> BookMetadata:
        """Return the book's descriptive metadata."""
        ...
