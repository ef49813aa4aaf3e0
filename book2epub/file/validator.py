"""
File Validator Module
Provides structural checks for EPUB archives.
"""

import os
import zipfile
import xml.etree.ElementTree as ET
from typing import List

from book2epub.conf import epub_mimetype, meta_inf_dirname, container_filename

CONTAINER_NS = 'urn:oasis:names:tc:opendocument:xmlns:container'


def analyze_epub_archive(epub_path: str) -> List[str]:
    """
    Check an archive against the EPUB container rules.

    Checks that:
    1. The file exists and is a ZIP archive
    2. The first entry is 'mimetype', stored uncompressed, holding
       'application/epub+zip'
    3. META-INF/container.xml exists and every root file it names is present

    Args:
        epub_path: Path to the archive to analyze

    Returns:
        list: Human readable problems, empty when the archive is valid
    """
    if not os.path.exists(epub_path):
        return [f"The file does not exist: {os.path.basename(epub_path)}"]
    if not zipfile.is_zipfile(epub_path):
        return ["The file is not a valid ZIP archive."]

    problems = []
    container_entry = f"{meta_inf_dirname}/{container_filename}"

    with zipfile.ZipFile(epub_path, 'r') as zf:
        entries = zf.infolist()
        names = {info.filename for info in entries}

        if not entries or entries[0].filename != 'mimetype':
            problems.append("First entry is not 'mimetype'")
        else:
            first = entries[0]
            if first.compress_type != zipfile.ZIP_STORED:
                problems.append("'mimetype' entry is compressed")
            if zf.read(first) != epub_mimetype.encode('ascii'):
                problems.append(f"'mimetype' entry does not contain '{epub_mimetype}'")

        if container_entry not in names:
            problems.append(f"Missing {container_entry}")
            return problems

        try:
            root = ET.fromstring(zf.read(container_entry))
        except ET.ParseError as e:
            problems.append(f"Unparsable {container_entry}: {e}")
            return problems

        for rootfile in root.iter(f"{{{CONTAINER_NS}}}rootfile"):
            full_path = rootfile.get('full-path', '')
            if full_path not in names:
                problems.append(f"Missing root file {full_path}")

    return problems
