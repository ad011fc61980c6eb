"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest
from bs4 import BeautifulSoup

from readerly.extractors.context import ExtractionContext
from readerly.items import ParserOptions

FIXTURES_DIR = Path(__file__).parent / "fixtures"

ARTICLE_URL = "https://example.com/blog/reading-the-signal"


def _read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture
def article_html() -> str:
    return _read_fixture("article.html")


@pytest.fixture
def sibling_html() -> str:
    return _read_fixture("sibling.html")


@pytest.fixture
def short_html() -> str:
    return _read_fixture("short.html")


@pytest.fixture
def article_path() -> Path:
    return FIXTURES_DIR / "article.html"


@pytest.fixture
def make_soup():
    def _make(html: str) -> BeautifulSoup:
        return BeautifulSoup(html, "lxml")
    return _make


@pytest.fixture
def ctx() -> ExtractionContext:
    return ExtractionContext(options=ParserOptions(), document_url=ARTICLE_URL, base_url=ARTICLE_URL)
