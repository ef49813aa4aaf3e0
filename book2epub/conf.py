"""
Configuration Module
Defines constants and environment-driven settings for book2epub.
"""

import logging
import os

# Remote API
api_base_url = os.getenv('BOOK2EPUB_API_BASE_URL', 'https://learning.oreilly.com')
request_timeout = int(os.getenv('BOOK2EPUB_REQUEST_TIMEOUT', '100'))  # seconds
user_agent = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) '
    'AppleWebKit/537.36 (KHTML, like Gecko) '
    'Chrome/124 Safari/537.36'
)

# Logging
log_level = os.getenv('BOOK2EPUB_LOG_LEVEL', 'INFO').upper()
log_format = '%(asctime)s %(levelname)s %(name)s: %(message)s'

# EPUB container layout
epub_mimetype = 'application/epub+zip'
meta_inf_dirname = 'META-INF'
oebps_dirname = 'OEBPS'
styles_dirname = 'Styles'
images_dirname = 'Images'
container_filename = 'container.xml'
content_opf_filename = 'content.opf'
toc_ncx_filename = 'toc.ncx'

# Chapter parsing
content_id = 'sbo-rt-content'
default_chapter_filename = 'chapter.xhtml'
default_chapter_title = 'Chapter'
default_book_title = 'n/a'
default_cover_item_id = 'cover'
cover_keyword = 'cover'

# Names
max_filename_length = 100
unknown_filename = 'unknown'
default_item_id = 'item'
item_id_prefix = 'item_'


def setup_logging(level: str = None) -> None:
    """
    Configure root logging for command-line use.

    Library modules only create loggers; call this once from the program
    entry point.

    Args:
        level: Level name overriding ``log_level`` (e.g. 'DEBUG')
    """
    logging.basicConfig(level=(level or log_level).upper(), format=log_format)
