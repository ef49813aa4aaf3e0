"""
HTML Transformer Module
Rewrites one chapter's HTML into XHTML body markup for the archive.

Stylesheet and image URLs found along the way are added to the shared
GlobalAssetLists, and references are rewritten to the local paths the
assets will have inside OEBPS/.
"""

import logging
from typing import Optional, Tuple, Union

import regex as re
from bs4 import BeautifulSoup
from bs4.element import CData, Comment, Declaration, Doctype, ProcessingInstruction

from book2epub.conf import content_id, styles_dirname, images_dirname
from book2epub.core.exceptions import InvalidUrl
from book2epub.file.utils import (
    is_absolute_url,
    join_url,
    resolve_url,
    rewrite_chapter_href,
    url_basename
)
from .models import Chapter, GlobalAssetLists

logger = logging.getLogger(__name__)

KINDLE_CSS = (
    f"#{content_id} *{{word-wrap:break-word!important;word-break:break-word!important;}}"
    f"#{content_id} table,#{content_id} pre{{overflow-x:unset!important;overflow:unset!important;"
    "overflow-y:unset!important;white-space:pre-wrap!important;}"
)


_HYPHEN_RUNS = re.compile(r'-{2,}')


def _cdata_body(text: str) -> str:
    """Split ']]>' so ``text`` can sit inside a CDATA section."""
    return text.replace(']]>', ']]]]><![CDATA[>')


def xml_text(text: str) -> str:
    """Return raw script or style text in a form an XML parser accepts."""
    if '<' not in text and '&' not in text:
        return text
    return f"<![CDATA[{_cdata_body(text)}]]>"


def make_xml_safe(region) -> None:
    """
    Fix the parts of an html.parser tree that serialize as invalid XML.

    Doctypes, declarations and processing instructions are dropped, '--'
    inside comments is collapsed, and <script>/<style> text holding '<' or
    '&' is wrapped in CDATA.
    """
    for node in region.find_all(string=lambda s: isinstance(s, (Doctype, Declaration, ProcessingInstruction))):
        node.extract()

    for comment in region.find_all(string=lambda s: isinstance(s, Comment)):
        text = _HYPHEN_RUNS.sub('-', str(comment))
        if text.endswith('-'):
            text += ' '
        comment.replace_with(Comment(text))

    for tag in region.find_all(['script', 'style']):
        text = tag.get_text()
        if '<' in text or '&' in text:
            tag.string = CData(_cdata_body(text))


def stylesheet_link(index: int) -> str:
    """Return the <link> element for stylesheet slot ``index``."""
    return f'<link href="{styles_dirname}/Style{index:02d}.css" rel="stylesheet" type="text/css" />\n'


def stylesheet_links(count: int) -> str:
    """Return <link> elements for stylesheet slots 0..count-1."""
    return ''.join(stylesheet_link(i) for i in range(count))


class HtmlTransformer:
    """
    Transforms chapter pages of one book.

    Args:
        book_id: Identifier of the book; absolute links containing it are
            turned into links inside the archive
        base_url: Base for relative <link rel="stylesheet"> hrefs; when
            None each chapter's asset_base_url is used
        link_stylesheets: Append a <link> for every stylesheet collected so
            far to the head content. Turn off to emit the links later with
            ``stylesheet_links`` once all chapters are known.
    """

    def __init__(self, book_id: str, base_url: Optional[str] = None, link_stylesheets: bool = True):
        self.book_id = book_id
        self.base_url = base_url
        self.link_stylesheets = link_stylesheets

    def transform(
        self,
        raw_html: Union[str, bytes, None],
        chapter: Chapter,
        first_page: bool,
        assets: GlobalAssetLists
    ) -> Tuple[str, str]:
        """
        Transform one chapter page.

        Steps:
        1. Register <link rel="stylesheet"> hrefs as absolute URLs
        2. Copy inline <style> blocks into the head content
        3. Register the chapter's declared stylesheets
        4. Select the content region (#sbo-rt-content, else <body>, else
           the whole document)
        5. Register images and point them at Images/<basename>
        6. Point .html links at chapter files (``rewrite_chapter_href``), making
           same-book absolute links relative first
        7. Make the region XML-safe and serialize its inner markup
        8. Link every stylesheet collected so far

        ``assets`` is mutated in place. Parsing is lenient: malformed or
        empty HTML produces best-effort or empty output, never an error.

        Args:
            raw_html: Chapter page as fetched
            chapter: Chapter being transformed
            first_page: True for the first chapter of the book
            assets: Book-wide stylesheet and image accumulator

        Returns:
            tuple: (head_content, body_markup)
        """
        soup = BeautifulSoup(raw_html or '', 'html.parser')
        base_url = self.base_url if self.base_url is not None else chapter.asset_base_url

        for link in soup.find_all('link', rel='stylesheet'):
            href = (link.get('href') or '').strip()
            if not href:
                continue
            try:
                url = resolve_url(base_url, href)
            except InvalidUrl as e:
                logger.warning(f"{chapter.filename}: skipping stylesheet: {e}")
                continue
            if assets.add_css(url):
                logger.debug(f"{chapter.filename}: stylesheet {url}")

        head_parts = []
        for style in soup.find_all('style'):
            css = ''.join(str(s) for s in style.contents)
            head_parts.append(f"<style>{xml_text(css)}</style>\n")

        for url in chapter.stylesheet_urls:
            assets.add_css(url)

        # Tags with no children are falsy, so compare against None
        region = soup.find(id=content_id)
        if region is None:
            region = soup.body if soup.body is not None else soup

        for img in region.find_all('img', src=True):
            src = img['src'].strip()
            if not src:
                continue
            try:
                url = join_url(chapter.asset_base_url, src)
            except InvalidUrl as e:
                logger.warning(f"{chapter.filename}: keeping unresolved image {src}: {e}")
                url = src
            if assets.add_image(url):
                logger.debug(f"{chapter.filename}: image {url}")
            img['src'] = f"{images_dirname}/{url_basename(url)}"

        for node in region.find_all(href=True):
            href = node['href'].strip()
            if not href:
                continue
            if not is_absolute_url(href):
                node['href'] = rewrite_chapter_href(href)
            elif self.book_id and self.book_id in href:
                idx = href.index(self.book_id)
                relative = href[idx + len(self.book_id):].lstrip('/')
                node['href'] = rewrite_chapter_href(relative)

        make_xml_safe(region)
        body_markup = region.decode_contents()

        if self.link_stylesheets:
            head_parts.append(stylesheet_links(len(assets.css_urls)))

        if first_page:
            logger.debug(f"{chapter.filename}: first page of book {self.book_id}")

        return ''.join(head_parts), body_markup


def build_xhtml(kindle: bool, head_content: str, body_markup: str) -> str:
    """
    Wrap transformed chapter content in an XHTML document.

    Args:
        kindle: Add rules that keep tables and <pre> blocks from overflowing
            on e-ink readers
        head_content: Inline styles and stylesheet links
        body_markup: Transformed body markup

    Returns:
        str: Complete XHTML document
    """
    kindle_css = KINDLE_CSS if kindle else ''

    return f"""<!DOCTYPE html>
<html lang="en" xml:lang="en" xmlns="http://www.w3.org/1999/xhtml"
      xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"
      xsi:schemaLocation="http://www.w3.org/2002/06/xhtml2/ http://www.w3.org/MarkUp/SCHEMA/xhtml2.xsd"
      xmlns:epub="http://www.idpf.org/2007/ops">
<head>
{head_content}
<style type="text/css">
body{{margin:1em;background-color:transparent!important;}}
#{content_id} *{{text-indent:0pt!important;}}
#{content_id} .bq{{margin-right:1em!important;}}
{kindle_css}
</style>
</head>
<body>{body_markup}</body>
</html>"""
