"""
Core Exceptions Module
Defines the error taxonomy for the book2epub pipeline.

Fatal errors (AcquisitionFailure, AssemblyFailure) propagate to the caller
and abort the build. Warning types (TransformWarning, AssetDownloadWarning)
are recorded by the driver and the build continues.
"""


class Book2EpubError(Exception):
    """
    Base class for all book2epub errors.
    """
    pass


class InvalidUrl(Book2EpubError, ValueError):
    """
    Exception raised when a relative URL cannot be resolved because its
    base is not an absolute URL.
    """

    def __init__(self, base: str, ref: str):
        super().__init__(f"Cannot resolve '{ref}' against non-absolute base '{base}'")
        self.base = base
        self.ref = ref


class FetchError(Book2EpubError):
    """
    Exception raised by a Fetcher when a URL cannot be retrieved.

    ``kind`` is one of NETWORK, NOT_FOUND or FORBIDDEN.
    """

    NETWORK = 'network'
    NOT_FOUND = 'not_found'
    FORBIDDEN = 'forbidden'

    def __init__(self, url: str, kind: str = NETWORK, message: str = None):
        super().__init__(message or f"Failed to fetch {url} ({kind})")
        self.url = url
        self.kind = kind


class AcquisitionFailure(Book2EpubError):
    """
    Exception raised when the chapter listing or book metadata cannot be
    retrieved. Always fatal.
    """
    pass


class ChapterFetchError(Book2EpubError):
    """
    Exception raised when a single chapter body cannot be retrieved.
    """

    def __init__(self, chapter, cause: Exception = None):
        super().__init__(
            f"Unable to retrieve chapter {chapter.filename} ({chapter.title}) "
            f"from {chapter.content_url}: {cause}"
        )
        self.chapter = chapter
        self.cause = cause


class TransformWarning(Book2EpubError, UserWarning):
    """
    Non-fatal problem with a single chapter; the chapter is skipped.
    """
    pass


class AssetDownloadWarning(Book2EpubError, UserWarning):
    """
    Non-fatal problem downloading a stylesheet or image; the asset is
    left out of the archive.
    """

    def __init__(self, url: str, cause: Exception = None):
        super().__init__(f"Unable to download asset {url}: {cause}")
        self.url = url
        self.cause = cause


class AssemblyFailure(Book2EpubError):
    """
    Exception raised when the package documents or archive cannot be
    produced. Always fatal.
    """
    pass


class ArchiveWriteError(AssemblyFailure):
    """
    Exception raised when the EPUB archive cannot be written.
    """

    def __init__(self, path: str, cause: Exception = None):
        super().__init__(f"Failed to write archive {path}: {cause}")
        self.path = path
        self.cause = cause
