"""readerly - extract the readable article from any HTML document.

Quick usage::

    from readerly import parse

    article = parse(html, url="https://example.com/blog/some-post")
    print(article.title)
    print(article.byline)
    print(article.text_content)

    # As a plain dict
    data = article.model_dump()

Reusable configuration::

    from readerly import Parser

    parser = Parser(char_threshold=250, max_elems_to_parse=50_000)
    article = parser.parse(html, url="https://example.com/blog/some-post")

Cheap pre-check::

    from readerly import is_probably_readerable

    if is_probably_readerable(html):
        article = parse(html)
"""

from readerly.extractors.heuristics import is_probably_readerable
from readerly.items import Article, ParserOptions
from readerly.parser import (
    DocumentTooLargeError,
    ParseError,
    Parser,
    ReaderlyError,
    parse,
    parse_document,
)

__version__ = "0.1.0"
__all__ = [
    "Article",
    "DocumentTooLargeError",
    "ParseError",
    "Parser",
    "ParserOptions",
    "ReaderlyError",
    "is_probably_readerable",
    "parse",
    "parse_document",
]
