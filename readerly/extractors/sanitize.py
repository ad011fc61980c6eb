"""Clean the gathered article container.

:func:`prep_article` runs once per attempt right after scoring and removes
what is left of navigation, widgets and link farms.  :func:`post_process_content`
runs once on the winning container: it resolves URLs, flattens useless
wrappers and strips classes.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable

from bs4 import BeautifulSoup, NavigableString, Tag

from readerly.extractors.context import ExtractionContext, Flags
from readerly.extractors.dom import (
    char_count,
    class_name,
    element_children,
    first_element_child,
    has_ancestor_tag,
    has_single_tag_inside,
    inner_text,
    is_element,
    is_element_without_content,
    is_phrasing_content,
    is_text,
    link_density,
    match_string,
    next_node,
    node_id,
    remove_and_get_next,
    rename,
    safe_str,
    skip_blank_siblings,
    text_content,
    text_density,
)
from readerly.extractors.nodes import NodeTable
from readerly.extractors.patterns import (
    B64_DATA_URL_RE,
    B64_PLACEHOLDER_MAX_LENGTH,
    DEPRECATED_SIZE_ATTRIBUTE_ELEMS,
    EMBED_TAGS,
    HEADING_TAGS,
    IMAGE_EXT_RE,
    PRESENTATIONAL_ATTRIBUTES,
    SHARE_ELEMENTS_RE,
    SRC_CANDIDATE_RE,
    SRCSET_CANDIDATE_RE,
    VIDEOS_RE,
)
from readerly.extractors.scoring import class_weight
from readerly.extractors.urlnorm import resolve_srcset, to_absolute_url

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Tunables
# ---------------------------------------------------------------------------

# Share widgets with less text than this are removed.
SHARE_ELEMENT_THRESHOLD = 500

# Junk classification (conditional cleaning).
CONDITIONAL_MIN_COMMAS = 10
LIST_TEXT_RATIO = 0.9
LI_ALLOWANCE = 100
MIN_IMAGE_PARAGRAPH_RATIO = 0.5
INPUT_PARAGRAPH_DIVISOR = 3
HEADING_DENSITY_LIMIT = 0.9
MIN_CONTENT_LENGTH = 25
STRONG_WEIGHT = 25
LINK_DENSITY_LIMIT = 0.2
WEIGHTED_LINK_DENSITY_LIMIT = 0.5
SINGLE_EMBED_MIN_LENGTH = 75

# Data tables.
DATA_TABLE_MIN_ROWS = 10
DATA_TABLE_MAX_COLUMNS = 4
DATA_TABLE_MIN_CELLS = 10
_DATA_TABLE_DESCENDANTS = ("col", "colgroup", "tfoot", "thead", "th")

_BASE64_MARKER_RE = re.compile(r"base64\s*", re.IGNORECASE)
_MEDIA_TAGS = ("img", "picture", "figure", "video", "audio", "source")


def _video_pattern(ctx: ExtractionContext) -> re.Pattern[str]:
    if ctx.options.allowed_video_regex:
        return re.compile(ctx.options.allowed_video_regex, re.IGNORECASE)
    return VIDEOS_RE


def _is_allowed_embed(tag: Tag, videos: re.Pattern[str]) -> bool:
    """True when an embed points at a known video host."""
    for value in tag.attrs.values():
        if videos.search(safe_str(value)):
            return True
    return tag.name == "object" and videos.search(tag.decode_contents()) is not None


def _remove_nodes(nodes: list[Tag], predicate: Callable[[Tag], bool] | None = None) -> None:
    """Remove *nodes* (last first) that are still attached and match *predicate*."""
    for node in reversed(nodes):
        if node.parent is None:
            continue
        if predicate is None or predicate(node):
            node.extract()


# ---------------------------------------------------------------------------
# Attribute clean-up
# ---------------------------------------------------------------------------

def clean_styles(root: Tag) -> None:
    """Drop presentational attributes everywhere below *root* (``svg`` excluded)."""
    stack = [root]
    while stack:
        tag = stack.pop()
        if tag.name == "svg":
            continue
        for attr in PRESENTATIONAL_ATTRIBUTES:
            tag.attrs.pop(attr, None)
        if tag.name in DEPRECATED_SIZE_ATTRIBUTE_ELEMS:
            tag.attrs.pop("width", None)
            tag.attrs.pop("height", None)
        stack.extend(reversed(element_children(tag)))


def _row_and_column_count(table: Tag) -> tuple[int, int]:
    rows = columns = 0
    for tr in table.find_all("tr"):
        try:
            rows += int(safe_str(tr.get("rowspan")) or 1)
        except ValueError:
            rows += 1
        columns_in_row = 0
        for cell in tr.find_all("td"):
            try:
                columns_in_row += int(safe_str(cell.get("colspan")) or 1)
            except ValueError:
                columns_in_row += 1
        columns = max(columns, columns_in_row)
    return rows, columns


def _is_data_table(table: Tag) -> bool:
    if safe_str(table.get("role")) == "presentation":
        return False
    if safe_str(table.get("datatable")) == "0":
        return False
    if table.get("summary"):
        return True
    caption = table.find("caption")
    if caption is not None and caption.contents:
        return True
    if table.find(list(_DATA_TABLE_DESCENDANTS)) is not None:
        return True
    if table.find("table") is not None:
        return False
    rows, columns = _row_and_column_count(table)
    if rows >= DATA_TABLE_MIN_ROWS or columns > DATA_TABLE_MAX_COLUMNS:
        return True
    return rows * columns > DATA_TABLE_MIN_CELLS


def mark_data_tables(root: Tag, table: NodeTable) -> None:
    """Record which tables hold data (as opposed to layout)."""
    for node in root.find_all("table"):
        table.mark_data_table(node, _is_data_table(node))


def fix_lazy_images(doc: BeautifulSoup, root: Tag) -> None:
    """Promote lazy-loading attributes to ``src``/``srcset``; drop tiny placeholders."""
    for elem in root.find_all(["img", "picture", "figure"]):
        src = safe_str(elem.get("src"))
        data_url = B64_DATA_URL_RE.match(src) if src else None
        if data_url:
            if data_url.group(1) == "image/svg+xml":
                continue
            src_could_be_removed = any(
                name != "src" and IMAGE_EXT_RE.search(safe_str(value))
                for name, value in elem.attrs.items()
            )
            if src_could_be_removed:
                marker = _BASE64_MARKER_RE.search(src)
                payload_length = len(src) - (marker.start() + 7 if marker else 0)
                if payload_length < B64_PLACEHOLDER_MAX_LENGTH:
                    del elem["src"]

        srcset = safe_str(elem.get("srcset"))
        if (elem.get("src") or (srcset and srcset != "null")) and "lazy" not in class_name(elem).lower():
            continue

        for name, value in list(elem.attrs.items()):
            if name in ("src", "srcset", "alt"):
                continue
            value = safe_str(value)
            copy_to = None
            if SRCSET_CANDIDATE_RE.search(value):
                copy_to = "srcset"
            elif SRC_CANDIDATE_RE.match(value):
                copy_to = "src"
            if copy_to is None:
                continue
            if elem.name in ("img", "picture"):
                elem[copy_to] = value
            elif elem.name == "figure" and elem.find(["img", "picture"]) is None:
                img = doc.new_tag("img")
                img[copy_to] = value
                elem.append(img)


# ---------------------------------------------------------------------------
# Removal passes
# ---------------------------------------------------------------------------

def clean(root: Tag, tag_name: str, ctx: ExtractionContext) -> None:
    """Remove every *tag_name* element, keeping embeds of allowed video hosts."""
    is_embed = tag_name in EMBED_TAGS
    videos = _video_pattern(ctx)
    _remove_nodes(
        root.find_all(tag_name),
        lambda node: not (is_embed and _is_allowed_embed(node, videos)),
    )


def clean_matched_nodes(root: Tag, predicate: Callable[[Tag, str], bool]) -> None:
    """Remove descendants of *root* for which ``predicate(node, match_string)`` holds."""
    end = next_node(root, ignore_self_and_kids=True)
    node = next_node(root)
    while node is not None and node is not end:
        if predicate(node, match_string(node)):
            node = remove_and_get_next(node)
        else:
            node = next_node(node)


def clean_headers(root: Tag, flags: Flags) -> None:
    """Drop ``h1``/``h2`` headings whose class/id weight is negative."""
    _remove_nodes(root.find_all(["h1", "h2"]), lambda node: class_weight(node, flags) < 0)


def is_conditionally_junk(
    node: Tag,
    tag_name: str,
    flags: Flags,
    table: NodeTable,
    videos: re.Pattern[str],
) -> bool:
    """Decide whether a block looks like boilerplate rather than article text.

    Data tables, anything inside a data table and anything inside ``code``
    are always kept.  Next, a negative class weight is always junk, and a
    block holding an allowed video embed is always kept.  Otherwise four
    signals vote and the node is junk when a strict majority of them fire:

    links     link density above the limit for the node's class weight
    media     too many images per paragraph, more list items than
              paragraphs, too many inputs, or stray embeds
    commas    fewer than ``CONDITIONAL_MIN_COMMAS`` commas
    length    less than ``MIN_CONTENT_LENGTH`` characters of non-heading text
    """
    is_list = tag_name in ("ul", "ol")
    text_length = len(inner_text(node))
    if not is_list:
        list_length = sum(len(inner_text(lst)) for lst in node.find_all(["ul", "ol"]))
        is_list = bool(text_length) and list_length / text_length > LIST_TEXT_RATIO

    if tag_name == "table" and table.is_data_table(node):
        return False
    if has_ancestor_tag(node, "table", -1, table.is_data_table):
        return False
    if has_ancestor_tag(node, "code"):
        return False

    weight = class_weight(node, flags)
    if weight < 0:
        return True

    paragraphs = len(node.find_all("p"))
    images = len(node.find_all("img"))
    list_items = len(node.find_all("li")) - LI_ALLOWANCE
    inputs = len(node.find_all("input"))
    heading_density = text_density(node, HEADING_TAGS)

    embeds = 0
    for embed in node.find_all(list(EMBED_TAGS)):
        if _is_allowed_embed(embed, videos):
            return False
        embeds += 1

    density = link_density(node)
    in_figure = has_ancestor_tag(node, "figure")

    votes = (
        (not is_list and weight < STRONG_WEIGHT and density > LINK_DENSITY_LIMIT)
        or (weight >= STRONG_WEIGHT and density > WEIGHTED_LINK_DENSITY_LIMIT),
        (images > 1 and paragraphs / images < MIN_IMAGE_PARAGRAPH_RATIO and not in_figure)
        or (not is_list and list_items > paragraphs)
        or inputs > paragraphs // INPUT_PARAGRAPH_DIVISOR
        or (embeds == 1 and text_length < SINGLE_EMBED_MIN_LENGTH)
        or embeds > 1,
        char_count(node, ",") < CONDITIONAL_MIN_COMMAS,
        (
            not is_list
            and heading_density < HEADING_DENSITY_LIMIT
            and text_length < MIN_CONTENT_LENGTH
            and (images == 0 or images > 2)
            and not in_figure
        ),
    )
    have_to_remove = sum(votes) * 2 > len(votes)

    # Simple lists of images stay.
    if is_list and have_to_remove:
        for child in element_children(node):
            if len(element_children(child)) > 1:
                return have_to_remove
        if images == len(node.find_all("li")):
            return False
    return have_to_remove


def clean_conditionally(
    root: Tag,
    tag_name: str,
    flags: Flags,
    ctx: ExtractionContext,
    table: NodeTable,
) -> None:
    if not flags.clean_conditionally:
        return
    videos = _video_pattern(ctx)

    def _junk(node: Tag) -> bool:
        if is_conditionally_junk(node, tag_name, flags, table, videos):
            logger.debug("Conditionally removing <%s> %r", node.name, match_string(node).strip())
            return True
        return False

    _remove_nodes(root.find_all(tag_name), _junk)


def _is_empty_paragraph(p: Tag) -> bool:
    if p.find(["img", "embed", "object", "iframe"]) is not None:
        return False
    return not inner_text(p, normalize_spaces=False)


def _unwrap_single_cell_tables(root: Tag) -> None:
    for table in root.find_all("table"):
        if table.parent is None:
            continue
        tbody = first_element_child(table) if has_single_tag_inside(table, "tbody") else table
        if not has_single_tag_inside(tbody, "tr"):
            continue
        row = first_element_child(tbody)
        if not has_single_tag_inside(row, "td"):
            continue
        cell = first_element_child(row)
        rename(cell, "p" if all(is_phrasing_content(c) for c in cell.contents) else "div")
        table.replace_with(cell)


def prep_article(
    doc: BeautifulSoup,
    content: Tag,
    flags: Flags,
    ctx: ExtractionContext,
    table: NodeTable,
) -> None:
    """Strip boilerplate left inside *content* after scoring. Mutates *content*."""
    clean_styles(content)
    mark_data_tables(content, table)
    fix_lazy_images(doc, content)

    clean_conditionally(content, "form", flags, ctx, table)
    clean_conditionally(content, "fieldset", flags, ctx, table)
    for tag_name in ("object", "embed", "footer", "link", "aside"):
        clean(content, tag_name, ctx)

    for child in element_children(content):
        clean_matched_nodes(
            child,
            lambda node, match: bool(SHARE_ELEMENTS_RE.search(match))
            and len(text_content(node)) < SHARE_ELEMENT_THRESHOLD,
        )

    for tag_name in ("iframe", "input", "textarea", "select", "button"):
        clean(content, tag_name, ctx)
    clean_headers(content, flags)

    for tag_name in ("table", "ul", "div"):
        clean_conditionally(content, tag_name, flags, ctx, table)

    for h1 in content.find_all("h1"):
        rename(h1, "h2")

    _remove_nodes(content.find_all("p"), _is_empty_paragraph)

    for br in content.find_all("br"):
        following = skip_blank_siblings(br.next_sibling)
        if is_element(following) and following.name == "p":
            br.extract()

    _unwrap_single_cell_tables(content)


# ---------------------------------------------------------------------------
# Post-processing
# ---------------------------------------------------------------------------

def fix_relative_uris(content: Tag, ctx: ExtractionContext) -> None:
    """Make links and media absolute; unwrap ``javascript:`` links."""
    base_url, document_url = ctx.base_url, ctx.document_url

    for link in content.find_all("a"):
        href = safe_str(link.get("href"))
        if not href:
            continue
        if href.startswith("javascript:"):
            if len(link.contents) == 1 and is_text(link.contents[0]):
                link.replace_with(NavigableString(text_content(link)))
            else:
                link.name = "span"
                link.attrs = {}
        else:
            link["href"] = to_absolute_url(href, base_url, document_url)

    for media in content.find_all(list(_MEDIA_TAGS)):
        for attr in ("src", "poster"):
            value = safe_str(media.get(attr))
            if value:
                media[attr] = to_absolute_url(value, base_url, document_url)
        srcset = safe_str(media.get("srcset"))
        if srcset:
            media["srcset"] = resolve_srcset(srcset, base_url, document_url)


def simplify_nested_elements(content: Tag) -> None:
    """Remove empty ``div``/``section`` wrappers and collapse single-child ones."""
    node: Tag | None = content
    while node is not None:
        if (
            node.parent is not None
            and node.name in ("div", "section")
            and not node_id(node).startswith("readability")
        ):
            if is_element_without_content(node):
                node = remove_and_get_next(node)
                continue
            if has_single_tag_inside(node, "div") or has_single_tag_inside(node, "section"):
                child = element_children(node)[0]
                for name, value in node.attrs.items():
                    child[name] = value
                node.replace_with(child)
                node = child
                continue
        node = next_node(node)


def clean_classes(content: Tag, preserved: frozenset[str]) -> None:
    """Keep only *preserved* class names on *content* and its descendants."""
    for tag in [content, *content.find_all(True)]:
        kept = [cls for cls in safe_str(tag.get("class")).split() if cls in preserved]
        if kept:
            tag["class"] = kept
        else:
            tag.attrs.pop("class", None)


def post_process_content(content: Tag, ctx: ExtractionContext) -> None:
    fix_relative_uris(content, ctx)
    simplify_nested_elements(content)
    if not ctx.options.keep_classes:
        clean_classes(content, ctx.options.preserved_classes)
