"""
File Manager Module
Provides utilities for preparing the book working tree and writing files
atomically into it.
"""

import os
import logging
from typing import Dict, Union

from book2epub.conf import meta_inf_dirname, oebps_dirname, styles_dirname, images_dirname

logger = logging.getLogger(__name__)


def prepare_book_dirs(book_dir: str) -> Dict[str, str]:
    """
    Create the EPUB working tree for one book.

    Layout::

        <book_dir>/META-INF/
        <book_dir>/OEBPS/Styles/
        <book_dir>/OEBPS/Images/

    Existing directories and their files are kept so an interrupted build
    can reuse assets that were already downloaded.

    Args:
        book_dir: Root directory of the book

    Returns:
        dict: Paths keyed by 'book_dir', 'meta_inf_dir', 'oebps_dir',
            'styles_dir' and 'images_dir'
    """
    oebps_dir = os.path.join(book_dir, oebps_dirname)
    dirs = {
        'book_dir': book_dir,
        'meta_inf_dir': os.path.join(book_dir, meta_inf_dirname),
        'oebps_dir': oebps_dir,
        'styles_dir': os.path.join(oebps_dir, styles_dirname),
        'images_dir': os.path.join(oebps_dir, images_dirname),
    }
    for path in dirs.values():
        os.makedirs(path, exist_ok=True)

    logger.debug(f"Prepared book directories under {book_dir}")
    return dirs


def write_file_atomic(path: str, data: Union[str, bytes]) -> None:
    """
    Write ``data`` to ``path`` so that readers see either the old file or
    the complete new one.

    Text is encoded as UTF-8 without a BOM. The data goes to a sibling temp
    file first, which is then renamed over the target.

    Raises:
        OSError: If the file cannot be written; the temp file is removed
    """
    if isinstance(data, str):
        data = data.encode('utf-8')

    temp_path = path + '.tmp'
    try:
        with open(temp_path, 'wb') as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, path)
    except OSError:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise
