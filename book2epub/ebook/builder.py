"""
EPUB Builder Module
Generates the package documents of an EPUB 2 book: the OPF content
descriptor with its manifest and spine, and the NCX table of contents.
"""

import os
import logging
from typing import List, Optional, Sequence, Set, Tuple

from book2epub.conf import content_opf_filename, oebps_dirname, toc_ncx_filename, styles_dirname, images_dirname
from book2epub.core.exceptions import AssemblyFailure
from book2epub.file.utils import clean_id
from .models import ProcessedChapter

logger = logging.getLogger(__name__)

CONTAINER_XML = (
    '<?xml version="1.0"?>'
    '<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">'
    '<rootfiles>'
    f'<rootfile full-path="{oebps_dirname}/{content_opf_filename}" media-type="application/oebps-package+xml" />'
    '</rootfiles>'
    '</container>'
)

IMAGE_MEDIA_TYPES = {
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.png': 'image/png',
    '.gif': 'image/gif',
    '.svg': 'image/svg+xml',
    '.webp': 'image/webp',
}
DEFAULT_IMAGE_MEDIA_TYPE = 'image/jpeg'

# Manifest ID of the NCX item written by build_content_opf
NCX_ITEM_ID = 'ncx'


def escape_xml(text: Optional[str]) -> str:
    """Escape the five XML special characters; None and '' give ''."""
    if not text:
        return ''
    return (text.replace('&', '&amp;')
                .replace('<', '&lt;')
                .replace('>', '&gt;')
                .replace('"', '&quot;')
                .replace("'", '&apos;'))


def get_image_media_type(extension: str) -> str:
    """Return the media type for an image file extension (with dot)."""
    return IMAGE_MEDIA_TYPES.get(extension.lower(), DEFAULT_IMAGE_MEDIA_TYPE)


def _unique_id(candidate: str, used: Set[str]) -> str:
    """Return ``candidate``, suffixed with _2, _3... if already taken."""
    unique = candidate
    n = 2
    while unique in used:
        unique = f"{candidate}_{n}"
        n += 1
    used.add(unique)
    return unique


def build_manifest_and_spine(
    chapters: List[ProcessedChapter],
    stylesheet_count: int,
    images_dir: str
) -> Tuple[str, str, Optional[str]]:
    """
    Build the manifest and spine fragments of the OPF document.

    Manifest items are emitted for every chapter (reading order), every
    stylesheet slot Style00..StyleNN, and every file currently in
    ``images_dir``. Spine itemrefs follow chapter order exactly.

    Args:
        chapters: Processed chapters in reading order
        stylesheet_count: Number of stylesheet slots
        images_dir: Local OEBPS/Images directory

    Returns:
        tuple: (manifest_xml, spine_xml, cover_image_id). No image is
            marked as cover, so cover_image_id is always None.

    Raises:
        AssemblyFailure: If the images directory cannot be listed
    """
    manifest = []
    spine = []
    used_ids = {NCX_ITEM_ID}

    for processed in chapters:
        base = os.path.splitext(processed.xhtml_filename)[0]
        item_id = _unique_id(clean_id(base), used_ids)
        href = escape_xml(processed.xhtml_filename)
        manifest.append(f'<item id="{item_id}" href="{href}" media-type="application/xhtml+xml"/>\n')
        spine.append(f'<itemref idref="{item_id}"/>\n')

    for i in range(stylesheet_count):
        item_id = _unique_id(f"Style{i:02d}", used_ids)
        manifest.append(
            f'<item id="{item_id}" href="{styles_dirname}/Style{i:02d}.css" media-type="text/css"/>\n'
        )

    if os.path.isdir(images_dir):
        try:
            filenames = sorted(
                name for name in os.listdir(images_dir)
                if os.path.isfile(os.path.join(images_dir, name))
            )
        except OSError as e:
            raise AssemblyFailure(f"Unable to list images in {images_dir}: {e}") from e

        for filename in filenames:
            base, extension = os.path.splitext(filename)
            item_id = _unique_id(clean_id(base), used_ids)
            media_type = get_image_media_type(extension)
            manifest.append(
                f'<item id="{item_id}" href="{images_dirname}/{escape_xml(filename)}" media-type="{media_type}"/>\n'
            )

    logger.debug(f"Manifest: {len(manifest)} items, spine: {len(spine)} itemrefs")
    return ''.join(manifest), ''.join(spine), None


def build_content_opf(
    id: str,
    title: str,
    authors: Sequence[str],
    description: str,
    subjects: Sequence[str],
    publishers: Sequence[str],
    rights: str,
    issued: str,
    cover_item_id: str,
    manifest: str,
    spine: str,
    cover_href: str
) -> str:
    """
    Build the OPF content descriptor (EPUB 2.0 package document).

    Free-text values are XML-escaped. The manifest and spine fragments are
    embedded verbatim; an 'ncx' item for toc.ncx is added to the manifest.
    """
    authors_xml = '\n'.join(f"<dc:creator>{escape_xml(a)}</dc:creator>" for a in authors)
    subjects_xml = '\n'.join(f"<dc:subject>{escape_xml(s)}</dc:subject>" for s in subjects)
    publishers_text = ', '.join(publishers)

    return f"""<?xml version="1.0" encoding="utf-8"?>
<package xmlns="http://www.idpf.org/2007/opf" unique-identifier="bookid" version="2.0">
<metadata xmlns:dc="http://purl.org/dc/elements/1.1/" xmlns:opf="http://www.idpf.org/2007/opf">
<dc:title>{escape_xml(title)}</dc:title>
{authors_xml}
<dc:description>{escape_xml(description)}</dc:description>
{subjects_xml}
<dc:publisher>{escape_xml(publishers_text)}</dc:publisher>
<dc:rights>{escape_xml(rights)}</dc:rights>
<dc:language>en-US</dc:language>
<dc:date>{escape_xml(issued)}</dc:date>
<dc:identifier id="bookid">{escape_xml(id)}</dc:identifier>
<meta name="cover" content="{escape_xml(cover_item_id)}"/>
</metadata>
<manifest>
<item id="{NCX_ITEM_ID}" href="{toc_ncx_filename}" media-type="application/x-dtbncx+xml"/>
{manifest}
</manifest>
<spine toc="{NCX_ITEM_ID}">{spine}</spine>
<guide><reference href="{escape_xml(cover_href)}" title="Cover" type="cover"/></guide>
</package>"""


def build_nav_map(chapters: List[ProcessedChapter]) -> str:
    """Build the NCX navMap body: one navPoint per chapter, playOrder from 1."""
    nav_points = []
    for play_order, processed in enumerate(chapters, start=1):
        nav_points.append(
            f'<navPoint id="navPoint-{play_order}" playOrder="{play_order}">\n'
            f'<navLabel><text>{escape_xml(processed.chapter.title)}</text></navLabel>\n'
            f'<content src="{escape_xml(processed.xhtml_filename)}"/>\n'
            f'</navPoint>\n'
        )
    return ''.join(nav_points)


def build_toc_ncx(id: str, title: str, authors: Sequence[str], nav_map: str) -> str:
    """Build the NCX table of contents around a navMap fragment."""
    authors_text = ', '.join(authors)

    return f"""<?xml version="1.0" encoding="utf-8" standalone="no"?>
<!DOCTYPE ncx PUBLIC "-//NISO//DTD ncx 2005-1//EN" "http://www.daisy.org/z3986/2005/ncx-2005-1.dtd">
<ncx xmlns="http://www.daisy.org/z3986/2005/ncx/" version="2005-1">
<head>
<meta content="ID:ISBN:{escape_xml(id)}" name="dtb:uid"/>
<meta content="1" name="dtb:depth"/>
<meta content="0" name="dtb:totalPageCount"/>
<meta content="0" name="dtb:maxPageNumber"/>
</head>
<docTitle><text>{escape_xml(title)}</text></docTitle>
<docAuthor><text>{escape_xml(authors_text)}</text></docAuthor>
<navMap>{nav_map}</navMap>
</ncx>"""
