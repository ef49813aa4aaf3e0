"""
Pytest configuration and shared fixtures.

This module provides:
- Temporary directory fixture
- Sample chapter HTML

Test doubles live in tests/helpers.py.
"""
import sys
import tempfile
from pathlib import Path
from typing import Generator
import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from tests.helpers import BOOK_ID  # noqa: E402


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create and cleanup a temporary directory."""
    with tempfile.TemporaryDirectory(prefix="book2epub_test_") as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_chapter_html() -> str:
    """Chapter page with a stylesheet, an inline style, an image and links."""
    return f"""<!DOCTYPE html>
<html>
<head>
  <link rel="stylesheet" href="/static/CACHE/css/output.css" type="text/css">
  <style>p {{ color: red; }}</style>
</head>
<body>
  <nav>Site navigation</nav>
  <div id="sbo-rt-content">
    <h1>Intro</h1>
    <p>See <a href="ch02.html#sec1">the next chapter</a>.</p>
    <p><a href="https://learning.oreilly.com/library/view/test-book/{BOOK_ID}/ch03.html">Chapter 3</a></p>
    <p><a href="https://example.com/page.html">External</a></p>
    <img src="assets/figure1.png" alt="Figure 1">
  </div>
</body>
</html>"""
