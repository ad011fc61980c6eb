"""Document preparation before metadata and content extraction.

All functions mutate the working copy they are given in place.
"""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup, Tag

from readerly.extractors.dom import (
    is_element,
    is_phrasing_content,
    is_single_image,
    is_whitespace,
    previous_element_sibling,
    rename,
    safe_str,
    skip_blank_siblings,
)
from readerly.extractors.patterns import IMAGE_EXT_RE

logger = logging.getLogger(__name__)

_IMAGE_SOURCE_ATTRS = frozenset({"src", "srcset", "data-src", "data-srcset"})


def _has_image_source(img: Tag) -> bool:
    return any(
        name in _IMAGE_SOURCE_ATTRS or IMAGE_EXT_RE.search(safe_str(value))
        for name, value in img.attrs.items()
    )


def _noscript_fragment(noscript: Tag) -> Tag | None:
    """Parse the markup inside *noscript* on its own and return its body."""
    inner = noscript.decode_contents()
    if not inner.strip():
        return None
    return BeautifulSoup(inner, "lxml").body


def unwrap_noscript_images(soup: BeautifulSoup) -> None:
    """Replace lazy-load placeholders with the real image kept in ``<noscript>``.

    Images without any usable source are dropped first.  When a noscript
    holding a single image follows an element that is itself a single image,
    the placeholder is replaced by the noscript image, which inherits the
    placeholder's image attributes it lacks.
    """
    for img in soup.find_all("img"):
        if not _has_image_source(img):
            img.extract()

    for noscript in soup.find_all("noscript"):
        if noscript.parent is None:
            continue
        fragment = _noscript_fragment(noscript)
        if fragment is None or not is_single_image(fragment):
            continue
        previous = previous_element_sibling(noscript)
        if previous is None or not is_single_image(previous):
            continue

        prev_img = previous if previous.name == "img" else previous.find("img")
        new_img = fragment.find("img")
        if prev_img is None or new_img is None:
            continue
        for name, value in prev_img.attrs.items():
            value = safe_str(value)
            if not value:
                continue
            if name in ("src", "srcset") or IMAGE_EXT_RE.search(value):
                if safe_str(new_img.get(name)) == value:
                    continue
                target = f"data-old-{name}" if new_img.has_attr(name) else name
                new_img[target] = value
        replacement = next(child for child in fragment.contents if is_element(child))
        previous.replace_with(replacement.extract())
        logger.debug("Unwrapped noscript image %s", new_img.get("src"))


def remove_scripts(soup: BeautifulSoup) -> None:
    for node in soup.find_all(["script", "noscript"]):
        node.extract()


def replace_brs(root: Tag, soup: BeautifulSoup) -> None:
    """Turn runs of two or more ``<br>`` into paragraphs.

    The phrasing content following the run, up to the next run or block
    element, moves into a new ``<p>`` that takes the place of the first
    ``<br>``.
    """
    for br in root.find_all("br"):
        if br.parent is None:
            continue
        replaced = False
        following = skip_blank_siblings(br.next_sibling)
        while is_element(following) and following.name == "br":
            replaced = True
            after = following.next_sibling
            following.extract()
            following = skip_blank_siblings(after)
        if not replaced:
            continue

        paragraph = soup.new_tag("p")
        br.replace_with(paragraph)
        sibling = paragraph.next_sibling
        while sibling is not None:
            if is_element(sibling) and sibling.name == "br":
                after = skip_blank_siblings(sibling.next_sibling)
                if is_element(after) and after.name == "br":
                    break
            if not is_phrasing_content(sibling):
                break
            after = sibling.next_sibling
            paragraph.append(sibling)
            sibling = after

        while paragraph.contents and is_whitespace(paragraph.contents[-1]):
            paragraph.contents[-1].extract()
        if is_element(paragraph.parent) and paragraph.parent.name == "p":
            rename(paragraph.parent, "div")


def prep_document(soup: BeautifulSoup) -> None:
    """Remove styles, rebuild ``<br>`` paragraphs and turn ``font`` into ``span``."""
    for style in soup.find_all("style"):
        style.extract()
    if soup.body is not None:
        replace_brs(soup.body, soup)
    for font in soup.find_all("font"):
        rename(font, "span")
