"""
Ebook Module
Provides chapter acquisition, HTML transformation, EPUB package document
generation and archive writing.
"""

from .models import Chapter, ProcessedChapter, GlobalAssetLists, BookMetadata, BuildReport
from .sources import ChapterPage, Fetcher, PageSource
from .acquirer import acquire_chapters, normalize_record, promote_covers, is_cover_like
from .transformer import HtmlTransformer, build_xhtml, stylesheet_links
from .builder import (
    CONTAINER_XML,
    build_manifest_and_spine,
    build_content_opf,
    build_nav_map,
    build_toc_ncx,
    escape_xml,
    get_image_media_type
)
from .archive import write_archive

__all__ = [
    # Models
    'Chapter',
    'ProcessedChapter',
    'GlobalAssetLists',
    'BookMetadata',
    'BuildReport',
    # Sources
    'ChapterPage',
    'Fetcher',
    'PageSource',
    # Acquirer
    'acquire_chapters',
    'normalize_record',
    'promote_covers',
    'is_cover_like',
    # Transformer
    'HtmlTransformer',
    'build_xhtml',
    'stylesheet_links',
    # Builder
    'CONTAINER_XML',
    'build_manifest_and_spine',
    'build_content_opf',
    'build_nav_map',
    'build_toc_ncx',
    'escape_xml',
    'get_image_media_type',
    # Archive
    'write_archive',
]
