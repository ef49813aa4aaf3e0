"""
Chapter Acquirer Module
Walks the paginated chapter listing of a book and returns its chapters in
reading order.
"""

import logging
from typing import Any, Dict, List

from book2epub.conf import default_chapter_filename, default_chapter_title, cover_keyword
from book2epub.core.exceptions import AcquisitionFailure, FetchError
from .models import Chapter
from .sources import PageSource

logger = logging.getLogger(__name__)


def _string(record: Dict[str, Any], key: str, default: str = '') -> str:
    value = record.get(key)
    if value is None:
        return default
    return str(value) or default


def _string_list(values: Any) -> List[str]:
    if not isinstance(values, list):
        return []
    return [str(value) for value in values if value is not None and str(value)]


def normalize_record(record: Dict[str, Any]) -> Chapter:
    """
    Convert one raw chapter listing record into a Chapter.

    Stylesheets come from 'stylesheets[].url' followed by the plain
    'site_styles' strings. Missing, null or empty fields take their
    defaults.

    Args:
        record: Decoded JSON object from the listing's 'results' array

    Returns:
        Chapter: Normalized chapter
    """
    stylesheets = []
    if isinstance(record.get('stylesheets'), list):
        for sheet in record['stylesheets']:
            if isinstance(sheet, dict) and sheet.get('url'):
                stylesheets.append(str(sheet['url']))
    stylesheets.extend(_string_list(record.get('site_styles')))

    return Chapter(
        filename=_string(record, 'filename', default_chapter_filename),
        title=_string(record, 'title', default_chapter_title),
        content_url=_string(record, 'content'),
        asset_base_url=_string(record, 'asset_base_url'),
        stylesheet_urls=tuple(stylesheets),
        image_urls=tuple(_string_list(record.get('images'))),
    )


def is_cover_like(chapter: Chapter) -> bool:
    """Return True if the chapter's file name or title mentions a cover."""
    return (cover_keyword in chapter.filename.lower()
            or cover_keyword in chapter.title.lower())


def promote_covers(chapters: List[Chapter]) -> List[Chapter]:
    """
    Move cover-like chapters to the front, keeping relative order within
    both groups.
    """
    covers = [c for c in chapters if is_cover_like(c)]
    rest = [c for c in chapters if not is_cover_like(c)]
    return covers + rest


def acquire_chapters(page_source: PageSource, book_id: str) -> List[Chapter]:
    """
    Fetch every page of the chapter listing for a book.

    Pages are requested from 1 upward until a page is empty or reports no
    next page. Cover promotion is applied to each page's batch on its own,
    so a cover listed on page 2 only moves ahead of the rest of page 2.

    Args:
        page_source: Source of listing pages
        book_id: Book identifier

    Returns:
        list: Chapters in reading order, empty if the first page is empty

    Raises:
        AcquisitionFailure: If any page cannot be retrieved or decoded
    """
    chapters = []
    page = 1

    while True:
        try:
            listing = page_source.list_chapter_page(book_id, page)
        except AcquisitionFailure:
            logger.error(f"Chapter listing failed on page {page} for book {book_id}")
            raise
        except (FetchError, ValueError) as e:
            logger.error(f"Chapter listing failed on page {page} for book {book_id}: {e}")
            raise AcquisitionFailure(f"Unable to retrieve chapter page {page} of book {book_id}: {e}") from e

        if not listing.records:
            break

        batch = promote_covers([normalize_record(r) for r in listing.records])
        chapters.extend(batch)
        logger.debug(f"Page {page}: {len(batch)} chapters")

        if not listing.has_next:
            break
        page += 1

    logger.info(f"Acquired {len(chapters)} chapters for book {book_id}")
    return chapters
