"""
File Module
Provides path sanitizing, URL resolution, working-tree management and
archive validation utilities.
"""

from .manager import prepare_book_dirs, write_file_atomic
from .validator import analyze_epub_archive
from .utils import (
    clean_file_name,
    clean_id,
    is_absolute_url,
    resolve_url,
    join_url,
    url_basename,
    replace_html_extension,
    chapter_file_name,
    rewrite_chapter_href
)

__all__ = [
    # Manager
    'prepare_book_dirs',
    'write_file_atomic',
    # Validator
    'analyze_epub_archive',
    # Utils
    'clean_file_name',
    'clean_id',
    'is_absolute_url',
    'resolve_url',
    'join_url',
    'url_basename',
    'replace_html_extension',
    'chapter_file_name',
    'rewrite_chapter_href',
]
