"""
EPUB Archive Module
Packs a book working tree into an .epub file.
"""

import os
import logging
import zipfile
from typing import Iterator, Tuple

from book2epub.conf import epub_mimetype, meta_inf_dirname, oebps_dirname, container_filename
from book2epub.core.exceptions import ArchiveWriteError
from .builder import CONTAINER_XML

logger = logging.getLogger(__name__)


def iter_tree(root: str, arc_prefix: str) -> Iterator[Tuple[str, str]]:
    """
    Yield (path, archive_name) for every file under ``root``.

    Directories and files are visited in sorted order so archives built
    from the same tree list their entries identically. Archive names use
    forward slashes.
    """
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for filename in sorted(filenames):
            path = os.path.join(dirpath, filename)
            relative = os.path.relpath(path, root).replace(os.sep, '/')
            yield path, f"{arc_prefix}/{relative}"


def write_archive(output_path: str, book_dir: str) -> str:
    """
    Write the EPUB archive for a book working tree.

    Entry order:
    1. 'mimetype', stored without compression (must be first)
    2. META-INF/container.xml (the standard one if the tree has none)
    3. Every file under OEBPS/, deflated

    The archive is written to a temp file next to ``output_path`` and
    renamed over it once complete, so a failed run never leaves a
    truncated .epub behind.

    Args:
        output_path: Destination .epub path, replaced if present
        book_dir: Directory holding META-INF/ and OEBPS/

    Returns:
        str: ``output_path``

    Raises:
        ArchiveWriteError: If the tree is missing, a file cannot be read or
            the archive cannot be written
    """
    if not os.path.isdir(book_dir):
        raise ArchiveWriteError(output_path, FileNotFoundError(book_dir))

    temp_path = output_path + '.tmp'
    container_path = os.path.join(book_dir, meta_inf_dirname, container_filename)
    oebps_dir = os.path.join(book_dir, oebps_dirname)
    count = 0

    try:
        with zipfile.ZipFile(temp_path, 'w', compression=zipfile.ZIP_DEFLATED) as zf:
            zf.writestr(zipfile.ZipInfo('mimetype'), epub_mimetype.encode('ascii'),
                        compress_type=zipfile.ZIP_STORED)

            container_name = f"{meta_inf_dirname}/{container_filename}"
            if os.path.isfile(container_path):
                zf.write(container_path, container_name)
            else:
                zf.writestr(container_name, CONTAINER_XML)

            for path, arc_name in iter_tree(oebps_dir, oebps_dirname):
                zf.write(path, arc_name)
                count += 1

        os.replace(temp_path, output_path)
    except OSError as e:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        logger.error(f"Archive {output_path} not written: {e}")
        raise ArchiveWriteError(output_path, e) from e

    logger.info(f"Wrote {output_path} ({count + 2} entries)")
    return output_path
