"""
EPUB Models Module
Defines data structures for book chapters, assets and metadata.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any, Tuple

from book2epub.conf import (
    api_base_url,
    default_book_title,
    default_chapter_filename,
    default_chapter_title
)


@dataclass(frozen=True)
class Chapter:
    """
    Represents a single chapter as listed by the remote book API.

    Immutable once acquired.
    """
    filename: str = default_chapter_filename
    title: str = default_chapter_title
    content_url: str = ''
    asset_base_url: str = ''  # Base for relative image URLs in this chapter
    stylesheet_urls: Tuple[str, ...] = ()
    image_urls: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ProcessedChapter:
    """
    A chapter paired with the file name it was written under in OEBPS/.
    """
    chapter: Chapter
    xhtml_filename: str


@dataclass
class GlobalAssetLists:
    """
    Stylesheet and image URLs collected across all chapters.

    Both lists keep first-seen order and never hold the same URL twice. The
    index of a stylesheet URL is its StyleNN.css slot.
    """
    css_urls: List[str] = field(default_factory=list)
    image_urls: List[str] = field(default_factory=list)

    def add_css(self, url: str) -> bool:
        """Append a stylesheet URL unless already present; return True if added."""
        if url in self.css_urls:
            return False
        self.css_urls.append(url)
        return True

    def add_image(self, url: str) -> bool:
        """Append an image URL unless already present; return True if added."""
        if url in self.image_urls:
            return False
        self.image_urls.append(url)
        return True


def _names(items: Any, key: str = 'name') -> List[str]:
    """Collect ``item[key]`` from a list of dicts, skipping blanks."""
    if not isinstance(items, list):
        return []
    names = []
    for item in items:
        if isinstance(item, dict) and item.get(key) is not None:
            value = str(item[key])
            if value:
                names.append(value)
    return names


def _text(info: Dict[str, Any], key: str, default: str = '') -> str:
    value = info.get(key)
    return default if value is None else str(value)


@dataclass
class BookMetadata:
    """
    Represents the descriptive metadata of a book.
    """
    id: str
    title: str = default_book_title
    description: str = ''
    authors: List[str] = field(default_factory=list)
    subjects: List[str] = field(default_factory=list)
    publishers: List[str] = field(default_factory=list)
    rights: str = ''
    issued_date: str = ''
    web_url: str = api_base_url

    @classmethod
    def from_book_info(cls, info: Dict[str, Any], book_id: str) -> 'BookMetadata':
        """
        Build metadata from the book info API payload.

        Missing or null fields fall back to defaults: the ISBN falls back to
        ``book_id``, subjects fall back to 'topics' and rights to 'copyright'.

        Args:
            info: Decoded JSON object describing the book
            book_id: Identifier the book was requested with

        Returns:
            BookMetadata: Normalized metadata
        """
        subjects = _names(info.get('subjects')) or _names(info.get('topics'))
        rights = _text(info, 'rights') or _text(info, 'copyright')

        return cls(
            id=_text(info, 'isbn') or book_id,
            title=_text(info, 'title', default_book_title),
            description=_text(info, 'description'),
            authors=_names(info.get('authors')),
            subjects=subjects,
            publishers=_names(info.get('publishers')),
            rights=rights,
            issued_date=_text(info, 'issued'),
            web_url=_text(info, 'web_url') or api_base_url,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert metadata to dictionary."""
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'authors': list(self.authors),
            'subjects': list(self.subjects),
            'publishers': list(self.publishers),
            'rights': self.rights,
            'issued_date': self.issued_date,
            'web_url': self.web_url,
        }


@dataclass
class BuildReport:
    """
    Outcome of one book build.
    """
    epub_path: str
    metadata: BookMetadata
    chapters: List[ProcessedChapter] = field(default_factory=list)
    css_urls: List[str] = field(default_factory=list)
    image_urls: List[str] = field(default_factory=list)
    warnings: List[Exception] = field(default_factory=list)
    cover_item_id: Optional[str] = None

    def __len__(self) -> int:
        """Return number of chapters written."""
        return len(self.chapters)
