"""
book2epub
Builds EPUB archives from paginated, per-chapter online books.
"""

import logging

from .conf import setup_logging
from .pipeline import build_epub

__version__ = '1.0.0'

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    'build_epub',
    'setup_logging',
    '__version__',
]
