"""
Tests for book2epub/ebook/transformer.py

Tests HtmlTransformer.transform() - chapter HTML to archive XHTML - and
build_xhtml().
"""

import xml.etree.ElementTree as ET
import pytest
from bs4 import BeautifulSoup
from book2epub.ebook.models import Chapter, GlobalAssetLists
from book2epub.ebook.transformer import HtmlTransformer, build_xhtml, stylesheet_links
from tests.helpers import ASSET_BASE, BOOK_ID, BOOK_URL


# ============================================================================
# Helper Functions
# ============================================================================

def make_chapter(**kwargs):
    """Create a chapter with the test asset base URL."""
    defaults = {"filename": "ch01.html", "title": "Intro", "asset_base_url": ASSET_BASE}
    defaults.update(kwargs)
    return Chapter(**defaults)


def transform(html, chapter=None, assets=None, **kwargs):
    """Run a transformer with the test book settings."""
    transformer = HtmlTransformer(BOOK_ID, base_url=kwargs.pop("base_url", BOOK_URL), **kwargs)
    assets = assets if assets is not None else GlobalAssetLists()
    head, body = transformer.transform(html, chapter or make_chapter(), True, assets)
    return head, body, assets


# ============================================================================
# Tests for stylesheet collection
# ============================================================================

class TestStylesheets:
    """Test <link>, <style> and declared stylesheet handling."""

    def test_link_resolved_against_base(self, sample_chapter_html):
        """Test that a relative stylesheet href becomes absolute."""
        _, _, assets = transform(sample_chapter_html)

        assert assets.css_urls == ["https://learning.oreilly.com/static/CACHE/css/output.css"]

    def test_inline_style_copied_to_head(self, sample_chapter_html):
        """Test that <style> content is wrapped and kept in head content."""
        head, _, _ = transform(sample_chapter_html)

        assert "<style>p { color: red; }</style>" in head

    def test_declared_stylesheets_appended_in_order(self):
        """Test that chapter stylesheets follow page stylesheets, deduplicated."""
        html = '<html><head><link rel="stylesheet" href="https://cdn.example.com/a.css"></head><body></body></html>'
        chapter = make_chapter(stylesheet_urls=("https://cdn.example.com/b.css", "https://cdn.example.com/a.css"))

        _, _, assets = transform(html, chapter)

        assert assets.css_urls == ["https://cdn.example.com/a.css", "https://cdn.example.com/b.css"]

    def test_links_reflect_cumulative_list(self):
        """Test that each chapter links every stylesheet known when it was processed."""
        assets = GlobalAssetLists()
        first = make_chapter(stylesheet_urls=("https://cdn.example.com/a.css",))
        second = make_chapter(filename="ch02.html",
                              stylesheet_urls=("https://cdn.example.com/a.css", "https://cdn.example.com/b.css"))

        head1, _, _ = transform("<p>one</p>", first, assets)
        head2, _, _ = transform("<p>two</p>", second, assets)

        assert "Styles/Style00.css" in head1
        assert "Styles/Style01.css" not in head1
        assert "Styles/Style00.css" in head2
        assert "Styles/Style01.css" in head2

    def test_styles_before_links(self, sample_chapter_html):
        """Test that inline styles come before stylesheet links."""
        head, _, _ = transform(sample_chapter_html)

        assert head.index("<style>") < head.index("<link")

    def test_deferred_links(self, sample_chapter_html):
        """Test that link emission can be turned off."""
        head, _, assets = transform(sample_chapter_html, link_stylesheets=False)

        assert "<link" not in head
        assert len(assets.css_urls) == 1

    def test_unresolvable_link_skipped(self):
        """Test that a relative link with no usable base is skipped."""
        html = '<html><head><link rel="stylesheet" href="a.css"></head><body><p>x</p></body></html>'

        _, body, assets = transform(html, make_chapter(asset_base_url=""), base_url="")

        assert assets.css_urls == []
        assert "<p>x</p>" in body

    def test_stylesheet_links_format(self):
        """Test the <link> markup for stylesheet slots."""
        assert stylesheet_links(2) == (
            '<link href="Styles/Style00.css" rel="stylesheet" type="text/css" />\n'
            '<link href="Styles/Style01.css" rel="stylesheet" type="text/css" />\n'
        )


# ============================================================================
# Tests for body selection and rewriting
# ============================================================================

class TestBody:
    """Test content region selection, image and link rewriting."""

    def test_content_region_preferred(self, sample_chapter_html):
        """Test that #sbo-rt-content is used over <body>."""
        _, body, _ = transform(sample_chapter_html)

        assert "<h1>Intro</h1>" in body
        assert "Site navigation" not in body
        assert 'id="sbo-rt-content"' not in body

    def test_body_fallback(self):
        """Test that <body> is used when there is no content region."""
        _, body, _ = transform("<html><body><p>Hello</p></body></html>")

        assert body == "<p>Hello</p>"

    def test_document_fallback(self):
        """Test that a fragment without <body> is used whole."""
        _, body, _ = transform("<p>Fragment</p>")

        assert body == "<p>Fragment</p>"

    def test_empty_content_region(self):
        """Test that an empty content region gives an empty body."""
        _, body, _ = transform('<html><body><nav>x</nav><div id="sbo-rt-content"></div></body></html>')

        assert body == ""

    @pytest.mark.parametrize("html", ["", None, "<<<>>>", "<div><p>unclosed"])
    def test_malformed_or_missing_html(self, html):
        """Test that bad input never raises."""
        head, body, _ = transform(html)

        assert isinstance(head, str)
        assert isinstance(body, str)

    def test_image_resolved_and_rewritten(self, sample_chapter_html):
        """Test that relative images resolve against asset_base_url and point into Images/."""
        _, body, assets = transform(sample_chapter_html)

        assert assets.image_urls == [ASSET_BASE + "assets/figure1.png"]
        img = BeautifulSoup(body, "html.parser").find("img")
        assert img["src"] == "Images/figure1.png"
        assert img["alt"] == "Figure 1"

    def test_absolute_image_passes_through(self):
        """Test that an absolute image URL is kept as the asset URL."""
        _, body, assets = transform('<img src="https://cdn.example.com/x/logo.gif">')

        assert assets.image_urls == ["https://cdn.example.com/x/logo.gif"]
        assert 'src="Images/logo.gif"' in body

    def test_image_without_base(self):
        """Test that images are kept as-is when the chapter has no asset base."""
        _, body, assets = transform('<img src="images/a.png">', make_chapter(asset_base_url=""))

        assert assets.image_urls == ["images/a.png"]
        assert 'src="Images/a.png"' in body

    def test_shared_image_deduplicated(self):
        """Test that an image used by two chapters is collected once."""
        assets = GlobalAssetLists()
        html = '<p><img src="https://cdn.example.com/shared.png"></p>'

        _, body1, _ = transform(html, make_chapter(), assets)
        _, body2, _ = transform(html, make_chapter(filename="ch02.html"), assets)

        assert assets.image_urls == ["https://cdn.example.com/shared.png"]
        assert 'src="Images/shared.png"' in body1
        assert 'src="Images/shared.png"' in body2

    def test_relative_link_rewritten(self, sample_chapter_html):
        """Test that relative .html links become .xhtml, keeping fragments."""
        _, body, _ = transform(sample_chapter_html)

        assert 'href="ch02.xhtml#sec1"' in body

    def test_same_book_absolute_link_made_relative(self, sample_chapter_html):
        """Test that absolute links into the same book become archive links."""
        _, body, _ = transform(sample_chapter_html)

        assert 'href="ch03.xhtml"' in body
        assert BOOK_ID not in body

    def test_external_link_untouched(self, sample_chapter_html):
        """Test that absolute links to other sites are left alone."""
        _, body, _ = transform(sample_chapter_html)

        assert 'href="https://example.com/page.html"' in body

    def test_void_elements_self_closed(self):
        """Test that void elements serialize in XHTML form."""
        _, body, _ = transform("<body><p>a<br>b</p></body>")

        assert "<br/>" in body

    def test_link_uses_chapter_file_name(self):
        """Test that links follow the same name mapping as written chapter files."""
        _, body, _ = transform('<body><a href="part/ch:02.html#s">x</a></body>')

        assert 'href="part_ch_02.xhtml#s"' in body


# ============================================================================
# Tests for XML well-formedness
# ============================================================================

class TestXmlSafety:
    """Test that chapter markup parses as XML."""

    def parse_body(self, body):
        return ET.fromstring(f"<div>{body}</div>")

    def test_script_with_markup_characters(self):
        """Test that script text holding < and && is wrapped in CDATA."""
        _, body, _ = transform("<body><script>if (a && b < c) { go(); }</script></body>")

        assert "<![CDATA[if (a && b < c) { go(); }]]>" in body
        script = self.parse_body(body).find("script")
        assert script.text == "if (a && b < c) { go(); }"

    def test_cdata_terminator_split(self):
        """Test that ']]>' inside script text cannot end the CDATA section early."""
        _, body, _ = transform("<body><script>x = a[b[0]]>1 && y;</script></body>")

        assert self.parse_body(body).find("script").text == "x = a[b[0]]>1 && y;"

    def test_plain_script_untouched(self):
        """Test that script text without markup characters is left as-is."""
        _, body, _ = transform("<body><script>var x = 1;</script></body>")

        assert "<script>var x = 1;</script>" in body

    def test_comment_double_hyphens(self):
        """Test that '--' inside comments is collapsed."""
        _, body, _ = transform("<body><p>a</p><!-- one -- two ---></body>")

        assert "--" not in body.replace("<!--", "").replace("-->", "")
        self.parse_body(body)

    def test_doctype_dropped_from_fragment(self):
        """Test that a doctype in a body-less document is not copied into the body."""
        _, body, _ = transform("<!DOCTYPE html><p>Fragment</p>")

        assert body == "<p>Fragment</p>"

    def test_inline_style_with_markup_characters(self):
        """Test that head styles holding < or & are wrapped in CDATA."""
        head, _, _ = transform('<head><style>a[href*="&"] { color: red; }</style></head><body></body>')

        assert '<style><![CDATA[a[href*="&"] { color: red; }]]></style>' in head

    def test_full_document_parses(self, sample_chapter_html):
        """Test that a complete chapter document is well-formed XML."""
        html = sample_chapter_html.replace(
            "<h1>Intro</h1>", "<h1>Intro</h1><script>if (a && b < c) {}</script><!-- x -- y -->"
        )
        head, body, _ = transform(html)

        ET.fromstring(build_xhtml(True, head, body).encode("utf-8"))


# ============================================================================
# Tests for build_xhtml()
# ============================================================================

class TestBuildXhtml:
    """Test XHTML document generation."""

    def test_document_shell(self):
        """Test that head and body content are placed in the shell."""
        doc = build_xhtml(False, "<style>x{}</style>\n", "<p>Body</p>")

        assert doc.startswith("<!DOCTYPE html>")
        assert 'xmlns="http://www.w3.org/1999/xhtml"' in doc
        assert 'xmlns:epub="http://www.idpf.org/2007/ops"' in doc
        assert "<style>x{}</style>" in doc
        assert "<body><p>Body</p></body>" in doc
        assert "body{margin:1em;background-color:transparent!important;}" in doc
        assert "word-break" not in doc

    def test_kindle_css(self):
        """Test that kindle mode adds wrapping rules."""
        doc = build_xhtml(True, "", "")

        assert "#sbo-rt-content *{word-wrap:break-word!important;word-break:break-word!important;}" in doc
        assert "#sbo-rt-content table,#sbo-rt-content pre{overflow-x:unset!important;" in doc
