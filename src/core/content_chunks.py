"""Extract knowledge chunks from crawled HTML. Pure functions, no I/O."""

from __future__ import annotations

import re

from bs4 import BeautifulSoup

# Block-level tags whose text becomes one knowledge chunk each
_CHUNK_TAGS = ["h1", "h2", "h3", "h4", "p", "li", "blockquote", "td"]

# Boilerplate containers dropped before extraction
_IGNORED_TAGS = ["script", "style", "noscript", "template", "nav", "footer"]

_WHITESPACE = re.compile(r"\s+")


def extract_knowledge_chunks(html: str, min_length: int = 20) -> list[str]:
    """Return the distinct text blocks of a page, in document order.

    Blocks shorter than ``min_length`` characters after whitespace
    normalization are dropped, as are exact duplicates.
    """
    if not html or not html.strip():
        return []

    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all(_IGNORED_TAGS):
        tag.decompose()

    chunks: list[str] = []
    seen: set[str] = set()
    for tag in soup.find_all(_CHUNK_TAGS):
        # Nested chunk tags (e.g. <p> inside <li>) are counted once, at the leaf
        if tag.find(_CHUNK_TAGS):
            continue
        text = _WHITESPACE.sub(" ", tag.get_text(" ", strip=True)).strip()
        if len(text) < min_length or text in seen:
            continue
        seen.add(text)
        chunks.append(text)

    return chunks


def extract_page_title(html: str) -> str | None:
    """Return the page <title>, or the first <h1> when there is none."""
    soup = BeautifulSoup(html, "html.parser")
    if soup.title and soup.title.string:
        return soup.title.string.strip() or None
    heading = soup.find("h1")
    if heading:
        return heading.get_text(strip=True) or None
    return None
