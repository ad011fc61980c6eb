"""Quick check of whether a page is worth running the full extraction on."""

from __future__ import annotations

import math

from bs4 import BeautifulSoup, Tag

from readerly.extractors.dom import has_ancestor_tag, is_probably_visible, match_string, text_content
from readerly.extractors.patterns import is_unlikely_candidate

DEFAULT_MIN_CONTENT_LENGTH = 140
DEFAULT_MIN_SCORE = 20


def _candidate_nodes(soup: BeautifulSoup) -> list[Tag]:
    nodes = list(soup.select("p, pre, article"))
    seen = {id(node) for node in nodes}
    for br in soup.select("div > br"):
        parent = br.parent
        if id(parent) not in seen:
            seen.add(id(parent))
            nodes.append(parent)
    return nodes


def is_probably_readerable(
    document: BeautifulSoup | str | bytes,
    min_content_length: int = DEFAULT_MIN_CONTENT_LENGTH,
    min_score: float = DEFAULT_MIN_SCORE,
) -> bool:
    """Return True when the page has enough visible paragraph text.

    Each visible, likely paragraph longer than *min_content_length* adds
    ``sqrt(length - min_content_length)``; the page qualifies once the total
    exceeds *min_score*.  *document* is never modified.
    """
    soup = document if isinstance(document, BeautifulSoup) else BeautifulSoup(document, "lxml")

    score = 0.0
    for node in _candidate_nodes(soup):
        if not is_probably_visible(node):
            continue
        if is_unlikely_candidate(node.name, match_string(node)):
            continue
        if node.name == "p" and has_ancestor_tag(node, "li", max_depth=0):
            continue
        length = len(text_content(node).strip())
        if length < min_content_length:
            continue
        score += math.sqrt(length - min_content_length)
        if score > min_score:
            return True
    return False
