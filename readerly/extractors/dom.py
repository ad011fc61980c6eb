"""Tree helpers on top of BeautifulSoup.

bs4 compares tags structurally (``==`` and ``in`` look at markup, not
identity), so every helper here compares nodes with ``is``.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from typing import Any

from bs4 import BeautifulSoup, NavigableString, PageElement, Tag
from bs4.element import PreformattedString

from readerly.extractors.patterns import (
    DIV_TO_P_ELEMS,
    HASH_URL_RE,
    NORMALIZE_RE,
    PHRASING_ELEMS,
)

_HAS_CONTENT_RE = re.compile(r"\S$")
_DISPLAY_NONE_RE = re.compile(r"display\s*:\s*none", re.IGNORECASE)
_VISIBILITY_HIDDEN_RE = re.compile(r"visibility\s*:\s*hidden", re.IGNORECASE)

# Anchors that only point inside the page count less towards link density.
HASH_LINK_COEFFICIENT = 0.3


# ---------------------------------------------------------------------------
# Node kinds
# ---------------------------------------------------------------------------

def is_element(node: Any) -> bool:
    """Return True for element nodes (the document object itself is not one)."""
    return isinstance(node, Tag) and not isinstance(node, BeautifulSoup)


def is_text(node: Any) -> bool:
    """Return True for character data (comments, doctypes and CDATA excluded)."""
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def safe_str(val: Any, default: str = "") -> str:
    """Safely convert a BeautifulSoup attribute value (str | list | None) to str."""
    if val is None:
        return default
    if isinstance(val, list):
        return " ".join(str(v) for v in val)
    return str(val)


def class_name(tag: Tag) -> str:
    return safe_str(tag.get("class"))


def node_id(tag: Tag) -> str:
    return safe_str(tag.get("id"))


def match_string(tag: Tag) -> str:
    """The ``class id`` string matched against the heuristic patterns."""
    return f"{class_name(tag)} {node_id(tag)}"


# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------

def element_children(tag: Tag) -> list[Tag]:
    return [child for child in tag.contents if is_element(child)]


def first_element_child(tag: Tag) -> Tag | None:
    for child in tag.contents:
        if is_element(child):
            return child
    return None


def next_element_sibling(node: PageElement) -> Tag | None:
    sibling = node.next_sibling
    while sibling is not None and not is_element(sibling):
        sibling = sibling.next_sibling
    return sibling


def previous_element_sibling(node: PageElement) -> Tag | None:
    sibling = node.previous_sibling
    while sibling is not None and not is_element(sibling):
        sibling = sibling.previous_sibling
    return sibling


def next_node(node: Tag, ignore_self_and_kids: bool = False) -> Tag | None:
    """Depth-first traversal step over elements only.

    With *ignore_self_and_kids* the subtree of *node* is skipped.
    """
    if not ignore_self_and_kids:
        child = first_element_child(node)
        if child is not None:
            return child
    sibling = next_element_sibling(node)
    if sibling is not None:
        return sibling
    parent = node.parent
    while is_element(parent) and next_element_sibling(parent) is None:
        parent = parent.parent
    if not is_element(parent):
        return None
    return next_element_sibling(parent)


def remove_and_get_next(node: Tag) -> Tag | None:
    following = next_node(node, ignore_self_and_kids=True)
    node.extract()
    return following


def skip_blank_siblings(node: PageElement | None) -> PageElement | None:
    """Advance over whitespace-only text until an element or real text shows up."""
    while node is not None and not is_element(node) and not text_content(node).strip():
        node = node.next_sibling
    return node


def node_ancestors(node: PageElement, max_depth: int = 0) -> list[Tag]:
    """Element ancestors of *node*, nearest first, at most *max_depth* when set."""
    ancestors: list[Tag] = []
    parent = node.parent
    while is_element(parent):
        ancestors.append(parent)
        if max_depth and len(ancestors) == max_depth:
            break
        parent = parent.parent
    return ancestors


def has_ancestor_tag(
    node: PageElement,
    tag_name: str,
    max_depth: int = 3,
    filter_fn: Callable[[Tag], bool] | None = None,
) -> bool:
    """Return True if an ancestor named *tag_name* sits within *max_depth* levels.

    A non-positive *max_depth* searches all the way up.
    """
    depth = 0
    parent = node.parent
    while is_element(parent):
        if max_depth > 0 and depth > max_depth:
            return False
        if parent.name == tag_name and (filter_fn is None or filter_fn(parent)):
            return True
        parent = parent.parent
        depth += 1
    return False


def rename(tag: Tag, name: str) -> Tag:
    """Change the element type of *tag* in place, keeping attributes and children."""
    tag.name = name
    return tag


# ---------------------------------------------------------------------------
# Text measures
# ---------------------------------------------------------------------------

def text_content(node: PageElement) -> str:
    if isinstance(node, Tag):
        return node.get_text()
    if is_text(node):
        return str(node)
    return ""


def inner_text(node: PageElement, normalize_spaces: bool = True) -> str:
    text = text_content(node).strip()
    if normalize_spaces:
        return NORMALIZE_RE.sub(" ", text)
    return text


def char_count(tag: Tag, separator: str = ",") -> int:
    return len(inner_text(tag).split(separator)) - 1


def link_density(tag: Tag) -> float:
    """Share of the text of *tag* that sits inside anchors (0.0 - 1.0)."""
    text_length = len(inner_text(tag))
    if text_length == 0:
        return 0.0
    link_length = 0.0
    for anchor in tag.find_all("a"):
        href = safe_str(anchor.get("href"))
        coefficient = HASH_LINK_COEFFICIENT if href and HASH_URL_RE.match(href) else 1.0
        link_length += len(inner_text(anchor)) * coefficient
    return link_length / text_length


def text_density(tag: Tag, names: Iterable[str]) -> float:
    """Share of the text of *tag* found inside descendants named in *names*."""
    text_length = len(inner_text(tag))
    if text_length == 0:
        return 0.0
    children_length = sum(len(inner_text(child)) for child in tag.find_all(list(names)))
    return children_length / text_length


# ---------------------------------------------------------------------------
# Structural predicates
# ---------------------------------------------------------------------------

def is_whitespace(node: PageElement) -> bool:
    if is_text(node):
        return not str(node).strip()
    return is_element(node) and node.name == "br"


def is_phrasing_content(node: PageElement) -> bool:
    if is_text(node):
        return True
    if not is_element(node):
        return False
    if node.name in PHRASING_ELEMS:
        return True
    return node.name in ("a", "del", "ins") and all(
        is_phrasing_content(child) for child in node.contents
    )


def has_single_tag_inside(tag: Tag, name: str) -> bool:
    """True when *tag* has exactly one child element, named *name*, and no text."""
    children = element_children(tag)
    if len(children) != 1 or children[0].name != name:
        return False
    return not any(
        is_text(child) and _HAS_CONTENT_RE.search(str(child)) for child in tag.contents
    )


def has_child_block_element(tag: Tag) -> bool:
    return tag.find(list(DIV_TO_P_ELEMS)) is not None


def is_element_without_content(tag: Tag) -> bool:
    if text_content(tag).strip():
        return False
    children = element_children(tag)
    if not children:
        return True
    return len(children) == len(tag.find_all(["br", "hr"]))


def is_single_image(tag: Tag) -> bool:
    while True:
        if tag.name == "img":
            return True
        children = element_children(tag)
        if len(children) != 1 or text_content(tag).strip():
            return False
        tag = children[0]


def is_probably_visible(tag: Tag) -> bool:
    style = safe_str(tag.get("style"))
    if style and (_DISPLAY_NONE_RE.search(style) or _VISIBILITY_HIDDEN_RE.search(style)):
        return False
    if tag.has_attr("hidden"):
        return False
    if safe_str(tag.get("aria-hidden")) == "true":
        return "fallback-image" in class_name(tag)
    return True
