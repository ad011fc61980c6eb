"""readerly.parser: public entry points and result assembly.

Usage::

    from readerly import Parser, parse

    article = parse(html, url="https://example.com/blog/post")
    print(article.title, article.length)

    # Reusable configuration
    parser = Parser(char_threshold=250, keep_classes=True)
    article = parser.parse(html, url="https://example.com/blog/post")

    # From a tree you already hold (it is copied, never modified)
    soup = BeautifulSoup(html, "lxml")
    article = parser.parse_document(soup, url="https://example.com/blog/post")
"""

from __future__ import annotations

import copy
import logging
import re
from typing import IO, Any

from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup

from readerly.extractors.attempts import run_attempts
from readerly.extractors.context import Attempt, ExtractionContext
from readerly.extractors.dates import parse_date
from readerly.extractors.dom import first_element_child, text_content
from readerly.extractors.metadata import extract_jsonld, extract_metadata, first_paragraph_text
from readerly.extractors.preprocess import prep_document, remove_scripts, unwrap_noscript_images
from readerly.extractors.sanitize import post_process_content
from readerly.extractors.urlnorm import document_base_url
from readerly.items import Article, ParserOptions

logger = logging.getLogger(__name__)

# Lone surrogates left behind by lossy decoding.
_INVALID_TEXT_RE = re.compile(r"[\ud800-\udfff]+")


class ReaderlyError(RuntimeError):
    """Base class for errors that abort an extraction."""


class DocumentTooLargeError(ReaderlyError):
    """Raised when a document has more elements than ``max_elems_to_parse``.

    Attributes:
        element_count -- number of elements found
        limit         -- the configured maximum
    """

    def __init__(self, element_count: int, limit: int) -> None:
        super().__init__(f"document too large: {element_count} elements (limit {limit})")
        self.element_count = element_count
        self.limit = limit


class ParseError(ReaderlyError):
    """Raised when the markup cannot be turned into a document tree."""


def to_valid_text(value: str, replacement: str = "") -> str:
    """Replace each run of invalid characters in *value* with *replacement*."""
    return _INVALID_TEXT_RE.sub(replacement, value)


class Parser:
    """Reusable, immutable extraction configuration.

    A ``Parser`` holds no per-call state: every call builds its own working
    tree and context, so one instance can serve several threads.

    Args:
        **options: Fields of :class:`~readerly.items.ParserOptions`
                   (``max_elems_to_parse``, ``char_threshold``, ...).
    """

    def __init__(self, **options: Any) -> None:
        self.options = ParserOptions(**options)

    def parse(self, markup: str | bytes | IO[Any], url: str = "") -> Article:
        """Build a tree from *markup* and extract the article.

        Raises:
            :class:`ParseError`: The markup could not be parsed.
            :class:`DocumentTooLargeError`: Too many elements.
        """
        if not isinstance(markup, (str, bytes)) and not hasattr(markup, "read"):
            raise ParseError(f"unsupported markup type: {type(markup).__name__}")
        try:
            soup = BeautifulSoup(markup, "lxml")
        except (ParserRejectedMarkup, TypeError, ValueError) as exc:
            raise ParseError(f"failed to parse input: {exc}") from exc
        return self._extract(soup, url)

    def parse_document(self, soup: BeautifulSoup, url: str = "") -> Article:
        """Extract from a caller-owned tree.  *soup* itself is never modified."""
        return self._extract(copy.copy(soup), url)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_size(self, doc: BeautifulSoup) -> None:
        limit = self.options.max_elems_to_parse
        if not limit:
            return
        count = len(doc.find_all(True))
        if count > limit:
            raise DocumentTooLargeError(count, limit)

    def _extract(self, doc: BeautifulSoup, url: str) -> Article:
        self._check_size(doc)
        ctx = ExtractionContext(options=self.options, document_url=url)

        unwrap_noscript_images(doc)
        jsonld = {} if self.options.disable_jsonld else extract_jsonld(doc)
        remove_scripts(doc)
        prep_document(doc)

        ctx.base_url = document_base_url(doc, url)
        metadata = extract_metadata(doc, jsonld, ctx.base_url)
        ctx.article_title = metadata["title"]

        attempt = run_attempts(doc, ctx)
        return self._assemble(attempt, metadata, ctx)

    def _assemble(
        self,
        attempt: Attempt | None,
        metadata: dict[str, str],
        ctx: ExtractionContext,
    ) -> Article:
        url = ctx.document_url
        content = attempt.content if attempt else None
        excerpt = metadata["excerpt"]
        html = text = ""
        node = None

        if content is not None:
            post_process_content(content, ctx)
            if not excerpt:
                excerpt = first_paragraph_text(content)
            text = text_content(content).strip()
            if text:
                html = content.decode_contents()
                node = first_element_child(content)

        excerpt = " ".join(excerpt.split())
        title = to_valid_text(ctx.article_title or url, url)
        byline = to_valid_text(metadata["byline"] or ctx.article_byline)

        published = parse_date(metadata["date_published"]) if metadata["date_published"] else None
        modified = parse_date(metadata["date_modified"]) if metadata["date_modified"] else None

        logger.debug(
            "Extracted %r: %d chars after %d attempt(s)",
            title, len(text), len(ctx.attempts),
        )
        return Article(
            url=url,
            title=title,
            byline=byline,
            content=html,
            text_content=text,
            length=len(text),
            excerpt=to_valid_text(excerpt),
            site_name=metadata["site_name"],
            image=metadata["image"],
            favicon=metadata["favicon"],
            language=ctx.article_lang,
            direction=attempt.direction if attempt else None,
            published_time=published,
            modified_time=modified,
            node=node,
        )


def parse(markup: str | bytes | IO[Any], url: str = "", **options: Any) -> Article:
    """Extract the readable article from *markup*.

    Args:
        markup:    HTML as str, bytes, or an open file object.
        url:       Page URL, used to resolve relative links and as the
                   title of last resort.
        **options: See :class:`~readerly.items.ParserOptions`.

    Returns:
        :class:`~readerly.items.Article`.  When no content is found the
        article still carries its metadata and ``length`` is 0.
    """
    return Parser(**options).parse(markup, url=url)


def parse_document(soup: BeautifulSoup, url: str = "", **options: Any) -> Article:
    """Like :func:`parse`, for an existing tree (copied, never modified)."""
    return Parser(**options).parse_document(soup, url=url)
