"""
File Utilities Module
Provides name sanitizing and URL resolution helpers used when mapping
remote book assets to local archive paths.
"""

from urllib.parse import urljoin, urlsplit

import regex as re

from book2epub.conf import (
    max_filename_length,
    unknown_filename,
    default_item_id,
    item_id_prefix
)
from book2epub.core.exceptions import InvalidUrl

# Characters rejected by at least one common filesystem: < > : " / \ | ? *
# and the control characters 0x00-0x1F
_FORBIDDEN_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1F]')
_INVALID_ID_CHARS = re.compile(r'[^A-Za-z0-9_-]')
_UNDERSCORE_RUNS = re.compile(r'_+')
_HTML_EXTENSION = re.compile(r'\.html(?=$|[?#])')
_HREF_SUFFIX = re.compile(r'[?#]')


def clean_file_name(file_name: str) -> str:
    """
    Sanitize a string for use as a local file name.

    Forbidden characters become underscores, runs of underscores are
    collapsed, and leading/trailing underscores, spaces and dots are
    trimmed. The result is cut to ``max_filename_length`` characters.

    Args:
        file_name: Free text to sanitize

    Returns:
        str: Safe file name, 'unknown' when nothing usable remains
    """
    if not file_name:
        return unknown_filename

    cleaned = _FORBIDDEN_FILENAME_CHARS.sub('_', file_name)
    cleaned = _UNDERSCORE_RUNS.sub('_', cleaned)
    cleaned = cleaned.strip('_ .')

    if not cleaned:
        return unknown_filename

    return cleaned[:max_filename_length]


def clean_id(raw_id: str) -> str:
    """
    Sanitize a string into an XML ID token usable in OPF/NCX documents.

    Args:
        raw_id: Free text to sanitize

    Returns:
        str: Token matching [A-Za-z_][A-Za-z0-9_-]*, 'item' when empty
    """
    if not raw_id:
        return default_item_id

    cleaned = _INVALID_ID_CHARS.sub('_', raw_id)

    # XML IDs must start with a letter or underscore
    if not (cleaned[0].isalpha() or cleaned[0] == '_'):
        cleaned = item_id_prefix + cleaned

    cleaned = _UNDERSCORE_RUNS.sub('_', cleaned)
    cleaned = cleaned.rstrip('_')

    return cleaned or default_item_id


def is_absolute_url(url: str) -> bool:
    """Return True if ``url`` carries a scheme (single letters are drive names)."""
    if not url:
        return False
    try:
        scheme = urlsplit(url).scheme
    except ValueError:
        return False
    return len(scheme) > 1


def resolve_url(base: str, ref: str) -> str:
    """
    Resolve ``ref`` against ``base`` following RFC 3986.

    Absolute references are returned unchanged.

    Raises:
        InvalidUrl: If ``ref`` is relative and ``base`` is not an absolute URL
    """
    if is_absolute_url(ref):
        return ref

    try:
        base_parts = urlsplit(base or '')
    except ValueError:
        raise InvalidUrl(base, ref)
    if not (len(base_parts.scheme) > 1 and base_parts.netloc):
        raise InvalidUrl(base, ref)

    return urljoin(base, ref)


def join_url(base: str, ref: str) -> str:
    """
    Resolve an asset reference, passing it through when no base is known.
    """
    if not base or not base.strip():
        return ref
    return resolve_url(base, ref)


def url_basename(url: str) -> str:
    """
    Return the last path segment of ``url``, the name an asset gets under
    the archive's Images/ directory.
    """
    try:
        path = urlsplit(url).path
    except ValueError:
        path = url
    return path.split('/')[-1] or unknown_filename


def replace_html_extension(href: str) -> str:
    """
    Rewrite a trailing '.html' extension to '.xhtml', keeping any query
    string or fragment.
    """
    return _HTML_EXTENSION.sub('.xhtml', href)


def chapter_file_name(listed_name: str) -> str:
    """
    Map a chapter's listed name to its file name inside OEBPS/.

    '.html' becomes '.xhtml' and forbidden characters (including '/')
    become underscores. Overlong names lose characters from the end of the
    stem, never from the extension. Links to a chapter are rewritten with
    the same mapping (see ``rewrite_chapter_href``).

    Args:
        listed_name: File name or relative path as listed by the book API

    Returns:
        str: File name, 'unknown' when nothing usable remains
    """
    name = _FORBIDDEN_FILENAME_CHARS.sub('_', replace_html_extension(listed_name or ''))
    name = _UNDERSCORE_RUNS.sub('_', name).strip('_ .')
    if not name:
        return unknown_filename
    if len(name) <= max_filename_length:
        return name

    stem, dot, extension = name.rpartition('.')
    if not dot or len(extension) >= max_filename_length:
        return name[:max_filename_length]
    return stem[:max_filename_length - len(extension) - 1] + dot + extension


def rewrite_chapter_href(href: str) -> str:
    """
    Point a relative link at a chapter file inside the archive.

    Only links whose path ends in '.html' are changed; the path goes
    through ``chapter_file_name`` and any query or fragment is kept.
    """
    match = _HREF_SUFFIX.search(href)
    path, suffix = (href[:match.start()], href[match.start():]) if match else (href, '')
    if not path.endswith('.html'):
        return href
    return chapter_file_name(path) + suffix
