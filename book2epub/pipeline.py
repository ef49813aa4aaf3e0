"""
Pipeline Module
Drives one book from chapter listing to finished .epub file.

Stages:
1. Metadata and chapter listing (fatal on failure)
2. Chapter download and transformation, strictly in reading order
3. Stylesheet and image download (failures are recorded as warnings)
4. OPF / NCX / container generation
5. Archive writing

Chapters are transformed one at a time; the GlobalAssetLists accumulator
is only touched from this loop, and its first-seen order decides each
stylesheet's StyleNN slot.
"""

import os
import logging
from typing import List, Optional, Set

from tqdm import tqdm

from book2epub.conf import (
    container_filename,
    content_opf_filename,
    default_cover_item_id,
    toc_ncx_filename,
)
from book2epub.core.exceptions import (
    AcquisitionFailure,
    AssemblyFailure,
    AssetDownloadWarning,
    ChapterFetchError,
    FetchError,
    TransformWarning
)
from book2epub.ebook.acquirer import acquire_chapters
from book2epub.ebook.archive import write_archive
from book2epub.ebook.builder import (
    CONTAINER_XML,
    build_content_opf,
    build_manifest_and_spine,
    build_nav_map,
    build_toc_ncx
)
from book2epub.ebook.models import BookMetadata, BuildReport, Chapter, GlobalAssetLists, ProcessedChapter
from book2epub.ebook.sources import Fetcher, PageSource
from book2epub.ebook.transformer import HtmlTransformer, build_xhtml, stylesheet_links
from book2epub.file.manager import prepare_book_dirs, write_file_atomic
from book2epub.file.utils import chapter_file_name, clean_file_name, url_basename

logger = logging.getLogger(__name__)


def chapter_xhtml_filename(chapter: Chapter, used: Set[str]) -> str:
    """
    Return the OEBPS file name for a chapter: ``chapter_file_name`` of its
    listed name, made unique within ``used``.
    """
    filename = chapter_file_name(chapter.filename)
    if filename in used:
        base, extension = os.path.splitext(filename)
        n = 2
        while f"{base}-{n}{extension}" in used:
            n += 1
        unique = f"{base}-{n}{extension}"
        logger.warning(f"Duplicate chapter file name {filename}, writing {unique}")
        filename = unique
    used.add(filename)
    return filename


def fetch_chapter(fetcher: Fetcher, chapter: Chapter) -> str:
    """
    Download a chapter page.

    Raises:
        ChapterFetchError: If the chapter has no content URL or the page
            cannot be retrieved
    """
    if not chapter.content_url or not chapter.content_url.strip():
        raise ChapterFetchError(
            chapter, FetchError(chapter.content_url, FetchError.NOT_FOUND, "Chapter has no content URL")
        )
    try:
        return fetcher.fetch_text(chapter.content_url)
    except FetchError as e:
        raise ChapterFetchError(chapter, e) from e


def download_assets(
    fetcher: Fetcher,
    assets: GlobalAssetLists,
    styles_dir: str,
    images_dir: str,
    progress: bool = False
) -> List[AssetDownloadWarning]:
    """
    Download stylesheets to Styles/StyleNN.css and images to
    Images/<basename>.

    Files already on disk are kept. A download or write failure is logged
    and returned as a warning; the remaining assets are still fetched.

    Returns:
        list: One AssetDownloadWarning per asset that could not be fetched
    """
    warnings = []
    targets = [(url, os.path.join(styles_dir, f"Style{i:02d}.css")) for i, url in enumerate(assets.css_urls)]
    targets += [(url, os.path.join(images_dir, url_basename(url))) for url in assets.image_urls]

    logger.info(f"Downloading {len(assets.css_urls)} stylesheets and {len(assets.image_urls)} images")
    with tqdm(total=len(targets), unit='files', disable=not progress) as t:
        for url, path in targets:
            if not os.path.exists(path):
                try:
                    write_file_atomic(path, fetcher.fetch(url))
                except (FetchError, OSError) as e:
                    warning = AssetDownloadWarning(url, e)
                    logger.warning(str(warning))
                    warnings.append(warning)
            t.update(1)

    return warnings


def write_package_documents(
    dirs: dict,
    metadata: BookMetadata,
    chapters: List[ProcessedChapter],
    stylesheet_count: int
) -> Optional[str]:
    """
    Write META-INF/container.xml, OEBPS/content.opf and OEBPS/toc.ncx.

    Returns:
        str | None: Cover image ID reported by the manifest builder

    Raises:
        AssemblyFailure: If a document cannot be generated or written
    """
    manifest, spine, cover_image_id = build_manifest_and_spine(
        chapters, stylesheet_count, dirs['images_dir']
    )
    content_opf = build_content_opf(
        id=metadata.id,
        title=metadata.title,
        authors=metadata.authors,
        description=metadata.description,
        subjects=metadata.subjects,
        publishers=metadata.publishers,
        rights=metadata.rights,
        issued=metadata.issued_date,
        cover_item_id=cover_image_id or default_cover_item_id,
        manifest=manifest,
        spine=spine,
        cover_href=chapters[0].xhtml_filename
    )
    toc_ncx = build_toc_ncx(
        id=metadata.id,
        title=metadata.title,
        authors=metadata.authors,
        nav_map=build_nav_map(chapters)
    )

    try:
        write_file_atomic(os.path.join(dirs['meta_inf_dir'], container_filename), CONTAINER_XML)
        write_file_atomic(os.path.join(dirs['oebps_dir'], content_opf_filename), content_opf)
        write_file_atomic(os.path.join(dirs['oebps_dir'], toc_ncx_filename), toc_ncx)
    except OSError as e:
        logger.error(f"Unable to write package documents: {e}")
        raise AssemblyFailure(f"Unable to write package documents: {e}") from e

    return cover_image_id


def build_epub(
    book_id: str,
    page_source: PageSource,
    fetcher: Fetcher,
    book_dir: str,
    *,
    kindle: bool = False,
    continue_on_chapter_fetch_error: bool = False,
    deferred_stylesheet_links: bool = False,
    progress: bool = False,
    epub_path: Optional[str] = None
) -> BuildReport:
    """
    Build the EPUB for one book.

    Args:
        book_id: Book identifier
        page_source: Source of chapter listing pages and metadata
        fetcher: Fetcher for chapter pages, stylesheets and images
        book_dir: Working directory for the book (created if missing)
        kindle: Add e-reader friendly CSS to every chapter
        continue_on_chapter_fetch_error: Skip chapters whose page cannot be
            fetched instead of aborting the build
        deferred_stylesheet_links: Link every stylesheet of the book from
            every chapter. By default each chapter only links the
            stylesheets discovered up to and including itself.
        progress: Show tqdm progress bars
        epub_path: Output file, defaults to <book_dir>/<book_id>.epub

    Returns:
        BuildReport: Paths, processed chapters, asset lists and warnings

    Raises:
        AcquisitionFailure: If metadata or the chapter listing cannot be
            retrieved, or (strict mode) a chapter page cannot be fetched
        AssemblyFailure: If the package documents or archive cannot be written
    """
    logger.info(f"Retrieving book info for {book_id}")
    metadata = page_source.get_metadata(book_id)

    logger.info("Retrieving book chapters")
    chapters = acquire_chapters(page_source, book_id)
    if not chapters:
        raise AcquisitionFailure(f"API: unable to retrieve book chapters for {book_id}")

    dirs = prepare_book_dirs(book_dir)
    assets = GlobalAssetLists()
    transformer = HtmlTransformer(
        book_id,
        base_url=metadata.web_url,
        link_stylesheets=not deferred_stylesheet_links
    )

    processed_chapters = []
    pending = []
    warnings = []
    used_filenames = set()

    logger.info(f"Downloading book contents ({len(chapters)} chapters)")
    with tqdm(total=len(chapters), unit='chapters', disable=not progress) as t:
        for i, chapter in enumerate(chapters):
            try:
                html = fetch_chapter(fetcher, chapter)
            except ChapterFetchError as e:
                if not continue_on_chapter_fetch_error:
                    logger.error(str(e))
                    raise AcquisitionFailure(str(e)) from e
                warning = TransformWarning(str(e))
                logger.warning(f"Skipping chapter: {warning}")
                warnings.append(warning)
                t.update(1)
                continue

            head_content, body_markup = transformer.transform(html, chapter, i == 0, assets)
            processed = ProcessedChapter(chapter, chapter_xhtml_filename(chapter, used_filenames))
            processed_chapters.append(processed)

            if deferred_stylesheet_links:
                pending.append((processed, head_content, body_markup))
            else:
                _write_chapter(dirs['oebps_dir'], processed, build_xhtml(kindle, head_content, body_markup))
            t.update(1)

    links = stylesheet_links(len(assets.css_urls))
    for processed, head_content, body_markup in pending:
        _write_chapter(dirs['oebps_dir'], processed, build_xhtml(kindle, head_content + links, body_markup))

    if not processed_chapters:
        raise AssemblyFailure(f"No chapter of book {book_id} could be retrieved")

    warnings.extend(download_assets(fetcher, assets, dirs['styles_dir'], dirs['images_dir'], progress))

    logger.info("Creating EPUB file")
    cover_item_id = write_package_documents(dirs, metadata, processed_chapters, len(assets.css_urls))
    epub_path = epub_path or os.path.join(book_dir, f"{clean_file_name(book_id)}.epub")
    write_archive(epub_path, book_dir)

    logger.info(f"Done: {epub_path} ({len(warnings)} warnings)")
    return BuildReport(
        epub_path=epub_path,
        metadata=metadata,
        chapters=processed_chapters,
        css_urls=list(assets.css_urls),
        image_urls=list(assets.image_urls),
        warnings=warnings,
        cover_item_id=cover_item_id
    )


def _write_chapter(oebps_dir: str, processed: ProcessedChapter, xhtml: str) -> None:
    try:
        write_file_atomic(os.path.join(oebps_dir, processed.xhtml_filename), xhtml)
    except OSError as e:
        logger.error(f"Unable to write {processed.xhtml_filename}: {e}")
        raise AssemblyFailure(f"Unable to write chapter {processed.xhtml_filename}: {e}") from e
