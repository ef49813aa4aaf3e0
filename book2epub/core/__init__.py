"""
Core Module
Provides the exception taxonomy shared across book2epub.
"""

from .exceptions import (
    Book2EpubError,
    InvalidUrl,
    FetchError,
    AcquisitionFailure,
    ChapterFetchError,
    TransformWarning,
    AssetDownloadWarning,
    AssemblyFailure,
    ArchiveWriteError
)

__all__ = [
    'Book2EpubError',
    'InvalidUrl',
    'FetchError',
    'AcquisitionFailure',
    'ChapterFetchError',
    'TransformWarning',
    'AssetDownloadWarning',
    'AssemblyFailure',
    'ArchiveWriteError',
]
