"""Tests for the readerable pre-check."""

from __future__ import annotations

from readerly import is_probably_readerable

LONG = (
    "A paragraph long enough to count toward the readerable score has to go well past "
    "the minimum content length, so this one keeps talking about nothing in particular "
    "for a good while longer than anyone would like."
)


def _page(body: str) -> str:
    return f"<html><body>{body}</body></html>"


class TestIsProbablyReaderable:
    def test_article_page(self, article_html):
        assert is_probably_readerable(article_html)

    def test_accepts_bytes_and_soup(self, article_html, make_soup):
        assert is_probably_readerable(article_html.encode("utf-8"))
        assert is_probably_readerable(make_soup(article_html))

    def test_tiny_page(self, short_html):
        assert not is_probably_readerable(short_html)

    def test_hidden_paragraphs_ignored(self):
        hidden = "".join(f'<p style="display: none">{LONG}</p>' for _ in range(5))
        assert not is_probably_readerable(_page(hidden))

    def test_unlikely_paragraphs_ignored(self):
        sidebar = "".join(f'<p class="sidebar">{LONG}</p>' for _ in range(5))
        assert not is_probably_readerable(_page(sidebar))

    def test_list_paragraphs_ignored(self):
        items = "".join(f"<li><p>{LONG}</p></li>" for _ in range(5))
        assert not is_probably_readerable(_page(f"<ul>{items}</ul>"))

    def test_br_separated_text_counts(self):
        assert is_probably_readerable(_page(f"<div>{LONG}<br>{LONG}<br>{LONG}</div>"))

    def test_thresholds(self):
        page = _page(f"<p>{LONG}</p>")
        assert not is_probably_readerable(page)
        assert is_probably_readerable(page, min_content_length=20, min_score=5)

    def test_document_not_modified(self, article_html, make_soup):
        soup = make_soup(article_html)
        before = str(soup)
        is_probably_readerable(soup)
        assert str(soup) == before
