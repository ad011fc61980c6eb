"""Candidate scoring: pick the node most likely to hold the article.

One call of :func:`select_content` walks the working tree once, dropping
obvious boilerplate and rebuilding loose phrasing content into paragraphs,
then scores paragraph-like nodes and propagates those scores to their
ancestors.  The best-scoring ancestor becomes the container, and siblings
that look like part of the same article are gathered alongside it into a
fresh ``<div>``.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

from bs4 import BeautifulSoup, Tag

from readerly.extractors.context import ExtractionContext, Flags
from readerly.extractors.dom import (
    class_name,
    element_children,
    first_element_child,
    has_ancestor_tag,
    has_child_block_element,
    has_single_tag_inside,
    inner_text,
    is_element,
    is_element_without_content,
    is_phrasing_content,
    is_probably_visible,
    is_whitespace,
    link_density,
    match_string,
    next_node,
    node_ancestors,
    node_id,
    remove_and_get_next,
    rename,
    safe_str,
    text_content,
)
from readerly.extractors.metadata import TITLE_SIMILARITY_THRESHOLD, text_similarity
from readerly.extractors.nodes import NodeTable
from readerly.extractors.patterns import (
    ALTER_TO_DIV_EXCEPTIONS,
    BYLINE_RE,
    COMMAS_RE,
    NEGATIVE_RE,
    POSITIVE_RE,
    SENTENCE_END_RE,
    TAGS_TO_SCORE,
    UNLIKELY_ROLES,
    is_unlikely_candidate,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Tunables
# ---------------------------------------------------------------------------

# Base score per element type, before class weight and text contribution.
TAG_BASE_SCORES: dict[str, float] = {
    "div": 5,
    "pre": 3, "td": 3, "blockquote": 3,
    "address": -3, "ol": -3, "ul": -3, "dl": -3, "dd": -3, "dt": -3, "li": -3,
    "form": -3,
    "h1": -5, "h2": -5, "h3": -5, "h4": -5, "h5": -5, "h6": -5, "th": -5,
}

# Added (positive pattern) or subtracted (negative pattern) per class and id.
CLASS_WEIGHT = 25

# Paragraphs shorter than this contribute nothing.
MIN_PARAGRAPH_LENGTH = 25
# One point per this many characters, up to TEXT_LENGTH_BONUS_CAP points.
TEXT_LENGTH_DIVISOR = 100
TEXT_LENGTH_BONUS_CAP = 3
# How many ancestors receive a share of a paragraph's score.
ANCESTOR_DEPTH = 5

# A div wrapping a single paragraph is replaced by it below this density.
SINGLE_P_LINK_DENSITY = 0.25

# Alternatives scoring at least this share of the top candidate count as
# competing containers; MINIMUM_TOP_CANDIDATES of them sharing an ancestor
# promote that ancestor.
ALTERNATIVE_CANDIDATE_RATIO = 0.75
MINIMUM_TOP_CANDIDATES = 3
# Climbing to a parent stops once its score falls below top / this.
PARENT_SCORE_DIVISOR = 3

# Sibling merge.
SIBLING_SCORE_RATIO = 0.2
SIBLING_MIN_SCORE = 10
SIBLING_CLASS_BONUS_RATIO = 0.2
SIBLING_PARAGRAPH_LENGTH = 80
SIBLING_LINK_DENSITY = 0.25

_MAX_BYLINE_LENGTH = 100
_EMPTY_CONTAINER_TAGS = frozenset({"div", "section", "header", "h1", "h2", "h3", "h4", "h5", "h6"})


def ancestor_divider(level: int) -> int:
    """Share of a paragraph score given to the ancestor *level* steps up (0 = parent)."""
    if level == 0:
        return 1
    if level == 1:
        return 2
    return level * 3


class Selection(NamedTuple):
    """Outcome of one scoring pass."""

    content: Tag
    top_candidate: Tag
    # Parent of the top candidate at the time siblings were gathered.
    parent: Tag
    # True when no candidate qualified and the body was wrapped instead.
    needed_to_create: bool


# ---------------------------------------------------------------------------
# Scores
# ---------------------------------------------------------------------------

def class_weight(tag: Tag, flags: Flags) -> int:
    """Class/id based adjustment, 0 when weight classes are disabled."""
    if not flags.use_weight_classes:
        return 0
    weight = 0
    for value in (class_name(tag), node_id(tag)):
        if not value:
            continue
        if NEGATIVE_RE.search(value):
            weight -= CLASS_WEIGHT
        if POSITIVE_RE.search(value):
            weight += CLASS_WEIGHT
    return weight


def initialize_node(tag: Tag, flags: Flags, table: NodeTable) -> None:
    table.initialize(tag, TAG_BASE_SCORES.get(tag.name, 0) + class_weight(tag, flags))


def paragraph_score(text: str) -> float:
    """Score a paragraph contributes before it is spread over its ancestors."""
    score = 1.0
    score += len(COMMAS_RE.split(text))
    score += min(len(text) // TEXT_LENGTH_DIVISOR, TEXT_LENGTH_BONUS_CAP)
    return score


# ---------------------------------------------------------------------------
# Walk
# ---------------------------------------------------------------------------

def _is_valid_byline(text: str) -> bool:
    text = text.strip()
    return 0 < len(text) < _MAX_BYLINE_LENGTH


def _check_byline(tag: Tag, match: str, ctx: ExtractionContext) -> bool:
    """Record *tag* as the byline if it looks like one and none was found yet."""
    if ctx.article_byline:
        return False
    rel = safe_str(tag.get("rel"))
    itemprop = safe_str(tag.get("itemprop"))
    if rel == "author" or "author" in itemprop or BYLINE_RE.search(match):
        text = text_content(tag)
        if _is_valid_byline(text):
            ctx.article_byline = text.strip()
            return True
    return False


def _header_duplicates_title(tag: Tag, ctx: ExtractionContext) -> bool:
    if tag.name not in ("h1", "h2") or not ctx.article_title:
        return False
    heading = inner_text(tag, normalize_spaces=False)
    return text_similarity(ctx.article_title, heading) > TITLE_SIMILARITY_THRESHOLD


def _wrap_phrasing_content(doc: BeautifulSoup, div: Tag) -> None:
    """Group runs of phrasing children of *div* into ``<p>`` elements."""
    paragraph: Tag | None = None
    for child in list(div.contents):
        if is_phrasing_content(child):
            if paragraph is not None:
                paragraph.append(child)
            elif not is_whitespace(child):
                paragraph = doc.new_tag("p")
                child.replace_with(paragraph)
                paragraph.append(child)
        elif paragraph is not None:
            while paragraph.contents and is_whitespace(paragraph.contents[-1]):
                paragraph.contents[-1].extract()
            paragraph = None


def collect_elements_to_score(
    doc: BeautifulSoup,
    flags: Flags,
    ctx: ExtractionContext,
) -> list[Tag]:
    """Walk the tree, remove boilerplate, and return paragraph-like nodes.

    Mutates *doc*: hidden nodes, modal dialogs, the byline, the heading that
    repeats the title and (with ``strip_unlikelys``) unlikely candidates are
    removed; divs holding only phrasing content become paragraphs.
    """
    elements: list[Tag] = []
    should_remove_title_header = True

    node = first_element_child(doc)
    while node is not None:
        if node.name == "html":
            ctx.article_lang = safe_str(node.get("lang"))

        match = match_string(node)

        if not is_probably_visible(node):
            logger.debug("Removing hidden node <%s> %r", node.name, match.strip())
            node = remove_and_get_next(node)
            continue

        if safe_str(node.get("aria-modal")) == "true" and safe_str(node.get("role")) == "dialog":
            node = remove_and_get_next(node)
            continue

        if _check_byline(node, match, ctx):
            node = remove_and_get_next(node)
            continue

        if should_remove_title_header and _header_duplicates_title(node, ctx):
            logger.debug("Removing header duplicating the title: %r", inner_text(node))
            should_remove_title_header = False
            node = remove_and_get_next(node)
            continue

        if flags.strip_unlikelys:
            if (
                is_unlikely_candidate(node.name, match)
                and not has_ancestor_tag(node, "table")
                and not has_ancestor_tag(node, "code")
            ):
                logger.debug("Removing unlikely candidate %r", match.strip())
                node = remove_and_get_next(node)
                continue
            if safe_str(node.get("role")) in UNLIKELY_ROLES:
                logger.debug("Removing node with role %r", node.get("role"))
                node = remove_and_get_next(node)
                continue

        if node.name in _EMPTY_CONTAINER_TAGS and is_element_without_content(node):
            node = remove_and_get_next(node)
            continue

        if node.name in TAGS_TO_SCORE:
            elements.append(node)

        if node.name == "div":
            _wrap_phrasing_content(doc, node)
            if has_single_tag_inside(node, "p") and link_density(node) < SINGLE_P_LINK_DENSITY:
                paragraph = element_children(node)[0]
                node.replace_with(paragraph)
                node = paragraph
                elements.append(node)
            elif not has_child_block_element(node):
                rename(node, "p")
                elements.append(node)

        node = next_node(node)

    return elements


# ---------------------------------------------------------------------------
# Scoring and ranking
# ---------------------------------------------------------------------------

def score_elements(elements: list[Tag], flags: Flags, table: NodeTable) -> list[Tag]:
    """Propagate paragraph scores to ancestors; return the scored ancestors.

    Candidates come back in the order they were first reached, which keeps
    ranking ties in document order.
    """
    candidates: list[Tag] = []
    for element in elements:
        if not is_element(element.parent):
            continue
        text = inner_text(element)
        if len(text) < MIN_PARAGRAPH_LENGTH:
            continue
        ancestors = node_ancestors(element, ANCESTOR_DEPTH)
        if not ancestors:
            continue

        score = paragraph_score(text)
        for level, ancestor in enumerate(ancestors):
            # The root element is never a candidate.
            if not is_element(ancestor.parent):
                break
            if not table.is_initialized(ancestor):
                initialize_node(ancestor, flags, table)
                candidates.append(ancestor)
            table.add_score(ancestor, score / ancestor_divider(level))
    return candidates


def rank_candidates(candidates: list[Tag], table: NodeTable, limit: int) -> list[Tag]:
    """Scale scores by link density and keep the best *limit* (stable order)."""
    top: list[Tag] = []
    for candidate in candidates:
        score = table.score(candidate) * (1 - link_density(candidate))
        table.set_score(candidate, score)
        for position in range(limit):
            if position >= len(top) or score > table.score(top[position]):
                top.insert(position, candidate)
                if len(top) > limit:
                    top.pop()
                break
    return top


def _consolidate_alternatives(top_candidates: list[Tag], table: NodeTable) -> Tag:
    """Promote a shared ancestor when several strong alternatives sit under it."""
    top = top_candidates[0]
    top_score = table.score(top)
    alternative_ancestors: list[list[Tag]] = [
        node_ancestors(candidate)
        for candidate in top_candidates[1:]
        if top_score and table.score(candidate) / top_score >= ALTERNATIVE_CANDIDATE_RATIO
    ]
    if len(alternative_ancestors) < MINIMUM_TOP_CANDIDATES:
        return top

    parent = top.parent
    while is_element(parent) and parent.name != "body":
        containing = 0
        for ancestors in alternative_ancestors:
            if containing >= MINIMUM_TOP_CANDIDATES:
                break
            containing += any(ancestor is parent for ancestor in ancestors)
        if containing >= MINIMUM_TOP_CANDIDATES:
            logger.debug("Promoting shared ancestor <%s> of top candidates", parent.name)
            return parent
        parent = parent.parent
    return top


def _climb_to_better_parent(top: Tag, table: NodeTable) -> Tag:
    """Move up while parents keep a comparable score; stop at a better one."""
    parent = top.parent
    last_score = table.score(top)
    threshold = last_score / PARENT_SCORE_DIVISOR
    while is_element(parent) and parent.name != "body":
        if not table.is_initialized(parent):
            parent = parent.parent
            continue
        parent_score = table.score(parent)
        if parent_score < threshold:
            break
        if parent_score > last_score:
            return parent
        last_score = parent_score
        parent = parent.parent
    return top


def _climb_single_child_wrappers(top: Tag) -> Tag:
    parent = top.parent
    while is_element(parent) and parent.name != "body" and len(element_children(parent)) == 1:
        top = parent
        parent = top.parent
    return top


def _should_merge_sibling(sibling: Tag, top: Tag, table: NodeTable) -> bool:
    top_score = table.score(top)
    threshold = max(SIBLING_MIN_SCORE, top_score * SIBLING_SCORE_RATIO)

    bonus = 0.0
    top_class = class_name(top)
    if top_class and class_name(sibling) == top_class:
        bonus += top_score * SIBLING_CLASS_BONUS_RATIO

    if table.is_initialized(sibling) and table.score(sibling) + bonus >= threshold:
        return True
    if sibling.name != "p":
        return False

    density = link_density(sibling)
    text = inner_text(sibling)
    if len(text) > SIBLING_PARAGRAPH_LENGTH and density < SIBLING_LINK_DENSITY:
        return True
    return (
        0 < len(text) < SIBLING_PARAGRAPH_LENGTH
        and density == 0
        and SENTENCE_END_RE.search(text) is not None
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def select_content(
    doc: BeautifulSoup,
    flags: Flags,
    ctx: ExtractionContext,
    table: NodeTable,
) -> Selection | None:
    """Run one scoring pass over *doc* and gather the article container.

    Returns None only when the document has no ``<body>``.
    """
    page = doc.body
    if page is None:
        return None

    elements = collect_elements_to_score(doc, flags, ctx)
    candidates = score_elements(elements, flags, table)
    top_candidates = rank_candidates(candidates, table, ctx.options.nb_top_candidates)
    for candidate in top_candidates:
        logger.debug(
            "Candidate <%s class=%r> score=%.2f",
            candidate.name, class_name(candidate), table.score(candidate),
        )

    needed_to_create = False
    if not top_candidates or top_candidates[0].name == "body":
        top = doc.new_tag("div")
        for child in list(page.contents):
            top.append(child)
        page.append(top)
        initialize_node(top, flags, table)
        needed_to_create = True
    else:
        top = _consolidate_alternatives(top_candidates, table)
        if not table.is_initialized(top):
            initialize_node(top, flags, table)
        top = _climb_to_better_parent(top, table)
        top = _climb_single_child_wrappers(top)
        if not table.is_initialized(top):
            initialize_node(top, flags, table)

    content = doc.new_tag("div")
    parent = top.parent
    for sibling in element_children(parent):
        if sibling is not top and not _should_merge_sibling(sibling, top, table):
            continue
        if sibling is not top:
            logger.debug("Merging sibling <%s> into the article", sibling.name)
        if sibling.name not in ALTER_TO_DIV_EXCEPTIONS:
            rename(sibling, "div")
        content.append(sibling)

    return Selection(content, top, parent, needed_to_create)
