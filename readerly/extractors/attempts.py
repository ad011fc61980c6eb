"""Attempt controller: retry extraction with progressively looser heuristics.

Every attempt starts over from a fresh copy of the preprocessed document
with a fresh score table.  The first attempt whose text reaches the
configured threshold wins; when every flag has been relaxed, the longest
attempt is used instead.
"""

from __future__ import annotations

import copy
import logging

from bs4 import BeautifulSoup, Tag

from readerly.extractors.context import Attempt, ExtractionContext, Flags
from readerly.extractors.dom import inner_text, node_ancestors, safe_str
from readerly.extractors.nodes import NodeTable
from readerly.extractors.sanitize import prep_article
from readerly.extractors.scoring import Selection, select_content

logger = logging.getLogger(__name__)

# Order in which flags are switched off after a short attempt.
FLAG_RELAXATION_ORDER: tuple[str, ...] = (
    "clean_conditionally",
    "strip_unlikelys",
    "use_weight_classes",
)

PAGE_ID = "readability-page-1"
PAGE_CLASS = "page"


def _wrap_page(doc: BeautifulSoup, selection: Selection) -> Tag:
    """Put the gathered content inside the ``readability-page-1`` page div."""
    content = selection.content
    if selection.needed_to_create:
        selection.top_candidate["id"] = PAGE_ID
        selection.top_candidate["class"] = PAGE_CLASS
        return content
    page = doc.new_tag("div", attrs={"id": PAGE_ID, "class": PAGE_CLASS})
    for child in list(content.contents):
        page.append(child)
    content.append(page)
    return content


def _direction(selection: Selection) -> str | None:
    """First ``dir`` attribute found around the top candidate."""
    parent = selection.parent
    for tag in (parent, selection.top_candidate, *node_ancestors(parent)):
        direction = safe_str(tag.get("dir"))
        if direction:
            return direction
    return None


def run_attempt(prepared: BeautifulSoup, flags: Flags, ctx: ExtractionContext) -> Attempt:
    """Score and sanitize one fresh copy of *prepared* under *flags*."""
    doc = copy.copy(prepared)
    table = NodeTable()
    selection = select_content(doc, flags, ctx, table)
    if selection is None:
        return Attempt(flags, None, 0)

    prep_article(doc, selection.content, flags, ctx, table)
    content = _wrap_page(doc, selection)
    text_length = len(inner_text(content))
    return Attempt(flags, content, text_length, _direction(selection))


def run_attempts(prepared: BeautifulSoup, ctx: ExtractionContext) -> Attempt | None:
    """Run attempts until one is long enough or all flags are relaxed.

    Every attempt is appended to ``ctx.attempts``.  Returns None when even
    the best attempt produced no text.
    """
    threshold = ctx.options.char_threshold
    flags: Flags | None = Flags()
    while flags is not None:
        attempt = run_attempt(prepared, flags, ctx)
        ctx.attempts.append(attempt)
        logger.debug("Attempt %d with %s: %d chars", len(ctx.attempts), flags, attempt.text_length)
        if attempt.text_length >= threshold:
            return attempt
        flags = flags.relax_next(FLAG_RELAXATION_ORDER)

    # max() keeps the earliest attempt on ties.
    best = max(ctx.attempts, key=lambda a: a.text_length)
    if not best.text_length:
        return None
    logger.debug("No attempt reached %d chars; using the longest (%d)", threshold, best.text_length)
    return best
