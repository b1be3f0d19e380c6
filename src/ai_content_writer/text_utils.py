"""
Text helpers shared by the scorer, generator, scanner and learning system.

Content may be HTML or plain text, so every helper accepts either.
"""

import re
from typing import Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup

# Letters with optional inner apostrophes or hyphens ("don't", "well-known")
WORD_PATTERN = re.compile(r"[^\W\d_]+(?:['’-][^\W\d_]+)*")
SENTENCE_SPLIT_PATTERN = re.compile(r"[.!?]+")
HTML_HEADING_PATTERN = re.compile(r"<h[2-6][^>]*>", re.IGNORECASE)
MARKDOWN_HEADING_PATTERN = re.compile(r"^#{2,6}\s", re.MULTILINE)
MARKDOWN_LINK_PATTERN = re.compile(r"(?<!!)\[[^\]]*\]\(([^)\s]+)[^)]*\)")


def _soup(content: str) -> BeautifulSoup:
    return BeautifulSoup(content, "lxml")


def strip_tags(content: str) -> str:
    """Remove HTML tags, keeping the text. Plain text is returned unchanged."""
    if not content:
        return ""
    if "<" not in content:
        return content
    return _soup(content).get_text(" ")


def words(text: str) -> list[str]:
    """Split text into words."""
    return WORD_PATTERN.findall(text or "")


def count_words(content: str) -> int:
    """Count words in content after stripping tags."""
    return len(words(strip_tags(content)))


def split_sentences(text: str) -> list[str]:
    """Split text on runs of sentence terminators, dropping empty pieces."""
    return [s.strip() for s in SENTENCE_SPLIT_PATTERN.split(text or "") if s.strip()]


def first_paragraph(content: str) -> str:
    """Return the text up to the first blank line."""
    if not content:
        return ""
    return content.replace("\r\n", "\n").split("\n\n", 1)[0]


def trim_words(content: str, num_words: int, more: str = "...") -> str:
    """Keep the first ``num_words`` words of the tag-stripped content."""
    tokens = strip_tags(content).split()
    if len(tokens) > num_words:
        return " ".join(tokens[:num_words]) + more
    return " ".join(tokens)


def has_headings(content: str) -> bool:
    """Check for H2-H6 tags or their markdown equivalents."""
    if not content:
        return False
    return bool(HTML_HEADING_PATTERN.search(content) or MARKDOWN_HEADING_PATTERN.search(content))


def extract_links(content: str) -> list[str]:
    """Collect link targets from HTML anchors and markdown links."""
    if not content:
        return []
    hrefs: list[str] = []
    if "<" in content:
        hrefs.extend(a["href"] for a in _soup(content).find_all("a", href=True))
    hrefs.extend(MARKDOWN_LINK_PATTERN.findall(content))
    return hrefs


def is_internal_url(url: str, site_url: Optional[str] = None) -> bool:
    """
    Decide whether a link points at the site itself.

    Root-relative paths are internal. Absolute URLs are internal when their
    host matches the site's host.
    """
    url = (url or "").strip()
    if not url:
        return False
    if url.startswith("/") and not url.startswith("//"):
        return True
    if not site_url:
        return False
    site_host = urlparse(site_url).netloc.lower()
    link_host = urlparse(url).netloc.lower()
    return bool(site_host) and link_host == site_host


def has_internal_links(content: str, site_url: Optional[str] = None) -> bool:
    """Check whether any link in the content is internal."""
    return any(is_internal_url(href, site_url) for href in extract_links(content))


def images_without_alt(content: str) -> int:
    """Count ``<img>`` tags with a missing or empty alt attribute."""
    if not content or "<img" not in content.lower():
        return 0
    return sum(1 for img in _soup(content).find_all("img") if not (img.get("alt") or "").strip())
